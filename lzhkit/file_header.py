"""Decoded header of a file stored in an LZH archive."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Optional

OS_TYPE_UNKNOWN = 0x00
OS_TYPE_MSDOS = ord("M")
OS_TYPE_WIN95 = ord("w")
OS_TYPE_WINNT = ord("W")
OS_TYPE_UNIX = ord("U")
OS_TYPE_OS2 = ord("2")
OS_TYPE_MACOS = ord("m")
OS_TYPE_AMIGA = ord("A")
OS_TYPE_ATARI = ord("a")
OS_TYPE_JAVA = ord("J")
OS_TYPE_CPM = ord("C")
OS_TYPE_FLEX = ord("F")
OS_TYPE_RUNSER = ord("R")
OS_TYPE_TOWNSOS = ord("T")
OS_TYPE_OS9 = ord("9")
OS_TYPE_OS9_68K = ord("K")
OS_TYPE_OS386 = ord("3")
OS_TYPE_HUMAN68K = ord("H")
OS_TYPE_LHARK = ord(" ")

# Compression method of a stored directory; also used for symbolic links.
COMPRESS_TYPE_DIR = "-lhd-"


class ExtraFlag(IntFlag):
    """Which optional extended-header data a header carries."""

    UNIX_PERMS = 0x01
    UNIX_UID_GID = 0x02
    COMMON_CRC = 0x04
    WINDOWS_TIMESTAMPS = 0x08
    OS9_PERMS = 0x10


@dataclass
class FileHeader:
    """Metadata for one archived file."""

    path: Optional[str] = None
    filename: Optional[str] = None
    symlink_target: Optional[str] = None
    compress_method: str = ""
    compressed_length: int = 0
    length: int = 0
    header_level: int = 0
    os_type: int = OS_TYPE_UNKNOWN
    crc: int = 0
    timestamp: int = 0
    raw_data: bytes = b""
    extra_flags: ExtraFlag = ExtraFlag(0)
    unix_perms: int = 0
    unix_uid: int = 0
    unix_gid: int = 0
    os9_perms: int = 0
    unix_username: Optional[str] = None
    unix_group: Optional[str] = None
    common_crc: int = 0
    win_creation_time: int = 0
    win_modification_time: int = 0
    win_access_time: int = 0

    def has_extra(self, flag: ExtraFlag) -> bool:
        """True if the extended data named by ``flag`` was present."""
        return (int(self.extra_flags) & int(flag)) != 0

    def is_dir(self) -> bool:
        """True for a directory or symbolic link entry."""
        return self.compress_method == COMPRESS_TYPE_DIR