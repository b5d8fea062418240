"""Testing, extracting and printing the files held in an archive."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, TextIO

from .file_header import FileHeader
from .filter import ArchiveFilter
from .options import Options, OverwritePolicy
from .safe import sanitize

# Longest progress bar, in dots.
MAX_PROGRESS_LEN = 58

# Bytes read from the archive per write when printing a file.
_PRINT_CHUNK = 512

ProgressCallback = Callable[[int, int], None]
AskCallback = Callable[[str], str]


class ArchiveReader(Protocol):
    """The reader operations used while testing and extracting."""

    def next_file(self) -> Optional[FileHeader]:
        ...

    def check(self, callback: Optional[ProgressCallback] = None) -> bool:
        ...

    def extract(
        self,
        filename: Optional[str] = None,
        callback: Optional[ProgressCallback] = None,
    ) -> bool:
        ...

    def read(self, size: int) -> bytes:
        ...

    def current_is_fake(self) -> bool:
        ...


class ExtractError(Exception):
    """The state of the file system could not be determined."""


def file_full_path(header: FileHeader, options: Options) -> str:
    """Path to extract ``header`` to, never absolute within the archive part."""
    parts = []
    if options.extract_path is not None:
        parts.append(options.extract_path + "/")
    # Leading '/'s are dropped so that an archive cannot write to
    # arbitrary locations in the file system.
    if options.use_path and header.path is not None:
        parts.append(header.path.lstrip("/"))
    if header.filename is not None:
        parts.append(header.filename.lstrip("/"))
    return "".join(parts)


def _status_line(filename: str, status: str) -> str:
    return "\r" + sanitize(filename) + f"\t- {status}  "


def _symlink_line(src: str, dest: str) -> str:
    return sanitize(f"Symbolic Link {src} -> {dest}") + "\n"


@dataclass
class _Progress:
    filename: str
    operation: str
    options: Options
    out: TextIO
    invoked: bool = field(default=False)

    def __call__(self, block: int, num_blocks: int) -> None:
        self.invoked = True
        quiet = self.options.quiet

        if quiet >= 2:
            return
        if quiet == 1:
            if block == 0:
                self.out.write("\r" + sanitize(self.filename + " :"))
                self.out.flush()
            return

        # Scale the bar so that the line never grows too long.
        factor = 1 + num_blocks // MAX_PROGRESS_LEN
        num_blocks = (num_blocks + factor - 1) // factor

        if block == 0:
            line = _status_line(self.filename, self.operation)
            self.out.write(line + "." * num_blocks + line)
        elif (block + factor - 1) % factor == 0:
            self.out.write("o")
        self.out.flush()


def _file_type(path: str) -> str:
    """Return "dir", "file" or "none"; other failures raise OSError."""
    try:
        return "dir" if os.path.isdir(path) and os.stat(path) else _stat_kind(path)
    except (FileNotFoundError, NotADirectoryError):
        return "none"


def _stat_kind(path: str) -> str:
    os.stat(path)
    return "file"


def _file_exists(filename: str) -> bool:
    try:
        return _file_type(filename) != "none"
    except OSError as exc:
        raise ExtractError(
            sanitize(f"Failed to read file type of '{filename}'")
        ) from exc


def _check_parent_directory(path: str, err: TextIO) -> bool:
    try:
        kind = _file_type(path)
    except OSError:
        err.write(sanitize(f"Failed to stat {path}") + "\n")
        return False

    if kind == "dir":
        return True
    if kind == "file":
        err.write(sanitize(f"Parent path {path} is not a directory!") + "\n")
        return False
    try:
        os.mkdir(path, 0o755)
    except OSError:
        err.write(sanitize(f"Failed to create parent directory {path}") + "\n")
        return False
    return True


def make_parent_directories(path: str, err: Optional[TextIO] = None) -> bool:
    """Create every missing parent directory of ``path``.

    Problems are reported on ``err``; returns False if one occurred.
    """
    err = sys.stderr if err is None else err
    stripped = path.rstrip("/")
    pos = len(stripped) - len(stripped.lstrip("/"))

    while True:
        index = stripped.find("/", pos)
        if index < 0:
            return True
        if not _check_parent_directory(stripped[:index], err):
            return False
        pos = index + 1


def _default_ask(err: TextIO) -> AskCallback:
    def ask(message: str) -> str:
        err.write(message)
        err.flush()
        line = sys.stdin.readline()
        if not line.endswith("\n"):
            raise EOFError("no answer on standard input")
        return line

    return ask


def _confirm_overwrite(
    filename: str, options: Options, err: TextIO, ask: AskCallback
) -> bool:
    if options.overwrite_policy is OverwritePolicy.SKIP:
        return False
    if options.overwrite_policy is OverwritePolicy.ALL:
        return True

    while True:
        err.write(sanitize(f"{filename} "))
        line = ask("OverWrite ?(Yes/[No]/All/Skip) ")
        response = (line[:1] or "\n").lower()
        if response == "y":
            return True
        if response in ("n", "\n"):
            return False
        if response == "a":
            options.overwrite_policy = OverwritePolicy.ALL
            return True
        if response == "s":
            options.overwrite_policy = OverwritePolicy.SKIP
            return False


def _test_archived_file(
    reader: ArchiveReader, header: FileHeader, options: Options, out: TextIO
) -> bool:
    filename = file_full_path(header, options)

    if options.dry_run:
        if not header.is_dir():
            out.write(sanitize(f"VERIFY {filename}") + "\n")
        return True

    progress = _Progress(filename, "Testing  :", options, out)
    success = bool(reader.check(progress))

    if progress.invoked and options.quiet < 2:
        status = "Tested" if success else "CRC error"
        out.write(_status_line(filename, status) + "\n")
        out.flush()

    return success


def test_file_crc(
    filter: ArchiveFilter, options: Options, out: Optional[TextIO] = None
) -> bool:
    """Check the CRC of every selected file; True if all were correct."""
    out = sys.stdout if out is None else out
    result = True
    for header in filter:
        if not _test_archived_file(filter.reader, header, options, out):
            result = False
    return result


def _extract_archived_file(
    reader: ArchiveReader,
    header: FileHeader,
    options: Options,
    out: TextIO,
    err: TextIO,
    ask: AskCallback,
) -> bool:
    filename = file_full_path(header, options)
    is_symlink = header.symlink_target is not None
    is_dir = header.is_dir() and not is_symlink

    if (
        not is_dir
        and not is_symlink
        and _file_exists(filename)
        and not _confirm_overwrite(filename, options, err, ask)
    ):
        if options.overwrite_policy is OverwritePolicy.SKIP:
            out.write(sanitize(f"{filename} : Skipped...") + "\n")
        return True

    # Directories are not needed when paths are ignored.
    if not options.use_path and is_dir:
        return True

    if not make_parent_directories(filename, err):
        return False

    progress = _Progress(filename, "Melting  :", options, out)
    success = bool(reader.extract(filename, progress))

    if not reader.current_is_fake() and options.quiet < 2:
        if progress.invoked:
            status = "Melted" if success else "Failure"
            out.write(_status_line(filename, status) + "\n")
        elif is_symlink:
            out.write(_symlink_line(filename, header.symlink_target or ""))
        out.flush()

    return success


def _extract_dry_run(filter: ArchiveFilter, options: Options, out: TextIO) -> bool:
    for header in filter:
        filename = file_full_path(header, options)
        line = f"EXTRACT {filename}"

        # Symlinks are reported as directories, the way they are stored.
        if header.symlink_target is not None:
            line += f"|{header.symlink_target} (directory)"
        elif header.is_dir():
            line += " (directory)"
        elif _file_exists(filename):
            line += " but file is exist."
        out.write(sanitize(line) + "\n")
    return True


def extract_archive(
    filter: ArchiveFilter,
    options: Options,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
    ask: Optional[AskCallback] = None,
) -> bool:
    """Extract every selected file; True if all succeeded.

    ``ask(message)`` returns the user's answer to an overwrite prompt.
    """
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err
    ask = _default_ask(err) if ask is None else ask

    if options.dry_run:
        return _extract_dry_run(filter, options, out)

    result = True
    for header in filter:
        if not _extract_archived_file(filter.reader, header, options, out, err, ask):
            result = False
    return result


def _write_bytes(out: TextIO, data: bytes) -> bool:
    try:
        buffer = getattr(out, "buffer", None)
        if buffer is not None:
            out.flush()
            buffer.write(data)
            buffer.flush()
        else:
            out.write(data.decode("latin-1"))
    except OSError:
        return False
    return True


def _print_archived_file(reader: ArchiveReader, out: TextIO) -> bool:
    while True:
        data = reader.read(_PRINT_CHUNK)
        if not data:
            return True
        if not _write_bytes(out, data):
            return False


def print_archive(
    filter: ArchiveFilter, options: Options, out: Optional[TextIO] = None
) -> bool:
    """Write the contents of every selected file to ``out``."""
    out = sys.stdout if out is None else out

    # A dry run of printing behaves like a dry run of extraction.
    if options.dry_run:
        return _extract_dry_run(filter, options, out)

    for header in filter:
        is_normal_file = not header.is_dir()

        if options.quiet < 2:
            full_path = file_full_path(header, options)
            if header.symlink_target is not None:
                out.write(_symlink_line(full_path, header.symlink_target))
            elif is_normal_file:
                out.write("::::::::\n" + sanitize(full_path) + "\n::::::::\n")

        if is_normal_file and not _print_archived_file(filter.reader, out):
            return False

    return True