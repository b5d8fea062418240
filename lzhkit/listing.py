"""Listing of archive contents in the classic LHA table layout."""

from __future__ import annotations

import struct
import sys
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, TextIO

from .file_header import (
    COMPRESS_TYPE_DIR,
    OS_TYPE_AMIGA,
    OS_TYPE_ATARI,
    OS_TYPE_CPM,
    OS_TYPE_FLEX,
    OS_TYPE_HUMAN68K,
    OS_TYPE_JAVA,
    OS_TYPE_LHARK,
    OS_TYPE_MACOS,
    OS_TYPE_MSDOS,
    OS_TYPE_OS2,
    OS_TYPE_OS386,
    OS_TYPE_OS9,
    OS_TYPE_OS9_68K,
    OS_TYPE_RUNSER,
    OS_TYPE_TOWNSOS,
    OS_TYPE_UNIX,
    OS_TYPE_UNKNOWN,
    OS_TYPE_WIN95,
    OS_TYPE_WINNT,
    ExtraFlag,
    FileHeader,
)
from .options import Options
from .safe import sanitize

_OS_NAMES = {
    OS_TYPE_MSDOS: "[MS-DOS]",
    OS_TYPE_WIN95: "[Win9x]",
    OS_TYPE_WINNT: "[WinNT]",
    OS_TYPE_UNIX: "[Unix]",
    OS_TYPE_OS2: "[OS/2]",
    OS_TYPE_CPM: "[CP/M]",
    OS_TYPE_MACOS: "[Mac OS]",
    OS_TYPE_JAVA: "[Java]",
    OS_TYPE_FLEX: "[FLEX]",
    OS_TYPE_RUNSER: "[Runser]",
    OS_TYPE_TOWNSOS: "[TownsOS]",
    OS_TYPE_OS9: "[OS-9]",
    OS_TYPE_OS9_68K: "[OS-9/68K]",
    OS_TYPE_OS386: "[OS-386]",
    OS_TYPE_HUMAN68K: "[Human68K]",
    OS_TYPE_ATARI: "[Atari]",
    OS_TYPE_AMIGA: "[Amiga]",
    OS_TYPE_LHARK: "[LHARK]",
    OS_TYPE_UNKNOWN: "[generic]",
}

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Timestamps older than this (in seconds) show the year, not the time.
_RECENT_SECONDS = 6 * 30 * 24 * 60 * 60

_U32 = 0xFFFFFFFF


def os_type_name(os_type: int) -> str:
    """Bracketed name of the OS an archive entry was created on."""
    return _OS_NAMES.get(os_type, "[unknown]")


def _unix_permissions(header: FileHeader) -> str:
    if not header.is_dir():
        kind = "-"
    elif header.symlink_target is not None:
        kind = "l"
    else:
        kind = "d"
    bits = "".join(
        ch if header.unix_perms & (1 << (8 - i)) else "-"
        for i, ch in enumerate("rwxrwxrwx")
    )
    return kind + bits


def _os9_permissions(header: FileHeader) -> str:
    kind = "d" if header.is_dir() else "-"
    bits = "".join(
        ch if header.os9_perms & (1 << (6 - i)) else "-"
        for i, ch in enumerate("sewrewr")
    )
    return kind + bits + "  "


def format_permissions(header: FileHeader) -> str:
    """Permission column text, falling back to the OS type."""
    if header.has_extra(ExtraFlag.OS9_PERMS):
        return _os9_permissions(header)
    if header.has_extra(ExtraFlag.UNIX_PERMS):
        return _unix_permissions(header)
    return f"{os_type_name(header.os_type):<10}"


@dataclass
class _Stats:
    num_files: int = 0
    compressed_length: int = 0
    length: int = 0
    timestamp: int = 0


@dataclass(eq=False)
class _Column:
    name: str
    width: int
    handler: Callable[[FileHeader, float], str]
    footer: Optional[Callable[[_Stats, float], str]] = None


def _f32(x: float) -> float:
    return struct.unpack("f", struct.pack("f", x))[0]


def _compression_percent(compressed: int, uncompressed: int) -> float:
    if uncompressed > 0:
        return _f32(_f32(_f32(compressed) * 100.0) / _f32(uncompressed))
    return 100.0


def _timestamp(timestamp: int, now: float) -> str:
    if timestamp == 0:
        return " " * 12
    ts = time.localtime(timestamp)
    text = f"{_MONTHS[ts.tm_mon - 1]} {ts.tm_mday:2d} "
    if timestamp > now - _RECENT_SECONDS:
        return text + f"{ts.tm_hour:02d}:{ts.tm_min:02d}"
    return text + f" {ts.tm_year:04d}"


def _full_timestamp(timestamp: int, now: float) -> str:
    if timestamp == 0:
        return " " * 19
    ts = time.localtime(timestamp)
    return (
        f"{ts.tm_year:04d}-{ts.tm_mon:02d}-{ts.tm_mday:02d} "
        f"{ts.tm_hour:02d}:{ts.tm_min:02d}:{ts.tm_sec:02d}"
    )


def _uid_gid(header: FileHeader, now: float) -> str:
    if header.has_extra(ExtraFlag.UNIX_UID_GID):
        return f"{header.unix_uid:5d}/{header.unix_gid:<5d}"
    return " " * 11


def _uid_gid_footer(stats: _Stats, now: float) -> str:
    if stats.num_files == 1:
        return f"{stats.num_files:5d} file "
    return f"{stats.num_files:5d} files"


def _ratio(header: FileHeader, now: float) -> str:
    if header.compress_method == COMPRESS_TYPE_DIR:
        return "******"
    return f"{_compression_percent(header.compressed_length, header.length):5.1f}%"


def _ratio_footer(stats: _Stats, now: float) -> str:
    if stats.length == 0:
        return "******"
    return f"{_compression_percent(stats.compressed_length, stats.length):5.1f}%"


def _name(header: FileHeader, now: float) -> str:
    text = sanitize(header.path or "") + sanitize(header.filename or "")
    if header.symlink_target is not None:
        text += " -> " + sanitize(header.symlink_target)
    return text


def _whole_line_name(header: FileHeader, now: float) -> str:
    # In wide mode the symlink separator is '|', as stored in the header.
    text = sanitize(header.path or "") + sanitize(header.filename or "")
    if header.symlink_target is not None:
        text += sanitize("|" + header.symlink_target)
    return text + "\n"


_PERMISSION = _Column(
    " PERMSSN", 10, lambda h, now: format_permissions(h), lambda s, now: " Total    "
)
_UID_GID = _Column(" UID  GID", 11, _uid_gid, _uid_gid_footer)
_PACKED = _Column(
    " PACKED", 7,
    lambda h, now: f"{h.compressed_length:7d}",
    lambda s, now: f"{s.compressed_length:7d}",
)
_SIZE = _Column(
    "   SIZE", 7,
    lambda h, now: f"{h.length:7d}",
    lambda s, now: f"{s.length:7d}",
)
_RATIO = _Column(" RATIO", 6, _ratio, _ratio_footer)
_METHOD_CRC = _Column(
    "METHOD CRC", 10, lambda h, now: f"{h.compress_method:<5} {h.crc:04x}"
)
_TIMESTAMP = _Column(
    "    STAMP", 12,
    lambda h, now: _timestamp(h.timestamp, now),
    lambda s, now: _timestamp(s.timestamp, now),
)
_FULL_TIMESTAMP = _Column(
    "    STAMP", 19,
    lambda h, now: _full_timestamp(h.timestamp, now),
    lambda s, now: _full_timestamp(s.timestamp, now),
)
_NAME = _Column("       NAME", 20, _name)
_SHORT_NAME = _Column("      NAME", 13, _name)
_WHOLE_LINE_NAME = _Column("", 0, _whole_line_name)
_HEADER_LEVEL = _Column(" LV", 3, lambda h, now: f"[{h.header_level}]")

_BASIC = (_PERMISSION, _UID_GID, _SIZE, _RATIO, _TIMESTAMP, _NAME)
_BASIC_VERBOSE = (
    _WHOLE_LINE_NAME, _PERMISSION, _UID_GID, _SIZE, _RATIO, _TIMESTAMP,
    _HEADER_LEVEL,
)
_VERBOSE = (
    _PERMISSION, _UID_GID, _PACKED, _SIZE, _RATIO, _METHOD_CRC, _TIMESTAMP,
    _SHORT_NAME,
)
_VERBOSE_VERBOSE = (
    _WHOLE_LINE_NAME, _PERMISSION, _UID_GID, _PACKED, _SIZE, _RATIO,
    _METHOD_CRC, _FULL_TIMESTAMP, _HEADER_LEVEL,
)


def _last_column(columns: Sequence[_Column]) -> Optional[_Column]:
    last = None
    for column in columns:
        if column.width != 0:
            last = column
    return last


def _headings(columns: Sequence[_Column]) -> str:
    last = _last_column(columns)
    parts = []
    for column in columns:
        if column.width > 0 and column is not last:
            parts.append(column.name.ljust(column.width + 1))
        else:
            parts.append(column.name)
    return "".join(parts) + "\n"


def _separators(columns: Sequence[_Column]) -> str:
    last = _last_column(columns)
    parts = []
    for column in columns:
        parts.append("-" * column.width)
        if column.width != 0 and column is not last:
            parts.append(" ")
    return "".join(parts) + "\n"


def _row(columns: Sequence[_Column], header: FileHeader, now: float) -> str:
    last = _last_column(columns)
    parts = []
    for column in columns:
        parts.append(column.handler(header, now))
        if column.width != 0 and column is not last:
            parts.append(" ")
    return "".join(parts) + "\n"


def _footers(columns: Sequence[_Column], stats: _Stats, now: float) -> str:
    count = len(columns)
    while count > 0 and columns[count - 1].footer is None:
        count -= 1

    parts = []
    for i, column in enumerate(columns[:count]):
        not_last = i + 1 < count
        if column.footer is not None:
            parts.append(column.footer(stats, now))
        elif not_last:
            parts.append(" " * len(column.name))
        if column.width != 0 and not_last:
            parts.append(" ")
    return "".join(parts) + "\n"


def _list_contents(
    headers: Iterable[FileHeader],
    options: Options,
    archive_mtime: Optional[int],
    out: Optional[TextIO],
    now: Optional[float],
    columns: Sequence[_Column],
) -> None:
    out = sys.stdout if out is None else out
    now = time.time() if now is None else now

    if options.quiet < 2:
        out.write(_headings(columns))
        out.write(_separators(columns))

    stats = _Stats(timestamp=(archive_mtime or 0) & _U32)

    for header in headers:
        out.write(_row(columns, header, now))
        stats.num_files += 1
        stats.length = (stats.length + header.length) & _U32
        stats.compressed_length = (
            stats.compressed_length + header.compressed_length
        ) & _U32

    if options.quiet < 2:
        out.write(_separators(columns))
        out.write(_footers(columns, stats, now))


def list_file_basic(
    filter: Iterable[FileHeader],
    options: Options,
    archive_mtime: Optional[int] = None,
    out: Optional[TextIO] = None,
    now: Optional[float] = None,
) -> None:
    """Write the short listing (``l``); ``archive_mtime`` stamps the footer."""
    columns = _BASIC_VERBOSE if options.verbose else _BASIC
    _list_contents(filter, options, archive_mtime, out, now, columns)


def list_file_verbose(
    filter: Iterable[FileHeader],
    options: Options,
    archive_mtime: Optional[int] = None,
    out: Optional[TextIO] = None,
    now: Optional[float] = None,
) -> None:
    """Write the verbose listing (``v``) with packed size, method and CRC."""
    columns = _VERBOSE_VERBOSE if options.verbose else _VERBOSE
    _list_contents(filter, options, archive_mtime, out, now, columns)