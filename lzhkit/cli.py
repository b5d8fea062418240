"""Command-line parsing and dispatch for the LHA tool."""

from __future__ import annotations

import sys
from enum import Enum, auto
from typing import Optional, TextIO, Tuple

from .extract import extract_archive, print_archive, test_file_crc
from .filter import ArchiveFilter
from .listing import list_file_basic, list_file_verbose
from .options import Options, OverwritePolicy

PROGRAM_NAME = "lzhkit"
VERSION = "0.4.0"


class UsageError(ValueError):
    """The command argument could not be understood."""


class Mode(Enum):
    """The operation selected by the command argument."""

    UNKNOWN = auto()
    LIST = auto()
    LIST_VERBOSE = auto()
    CRC_CHECK = auto()
    EXTRACT = auto()
    PRINT = auto()


_MODES = {
    "l": Mode.LIST,
    "v": Mode.LIST_VERBOSE,
    "t": Mode.CRC_CHECK,
    "e": Mode.EXTRACT,
    "x": Mode.EXTRACT,
    "p": Mode.PRINT,
}


def mode_for_char(c: str) -> Mode:
    """Mode named by the first character of the command argument."""
    return _MODES.get(c, Mode.UNKNOWN)


def parse_options(arg: str, options: Options) -> None:
    """Apply the option letters in ``arg`` to ``options``."""
    i = 0
    while i < len(arg):
        c = arg[i]
        if c == "f":
            options.overwrite_policy = OverwritePolicy.ALL
        elif c == "i":
            options.use_path = False
        elif c == "n":
            options.dry_run = True
        elif c == "q":
            # An optional digit gives the level; alone it means level 2.
            # Every quiet level implies overwriting without asking.
            if i + 1 < len(arg) and arg[i + 1] in "0123456789":
                i += 1
                options.quiet = int(arg[i])
            else:
                options.quiet = 2
            options.overwrite_policy = OverwritePolicy.ALL
        elif c == "v":
            options.verbose = True
        elif c == "w":
            # The extract directory takes the rest of the argument.
            rest = arg[i + 1:]
            if rest.startswith("="):
                rest = rest[1:]
            options.extract_path = rest
            return
        else:
            raise UsageError(f"unknown option {c!r}")
        i += 1


def parse_command_line(cmd: str) -> Tuple[Mode, Options]:
    """Parse the command argument into a mode and options."""
    if cmd.startswith("-"):
        cmd = cmd[1:]
    mode = mode_for_char(cmd[:1])
    if mode is Mode.UNKNOWN:
        raise UsageError(f"unknown command {cmd[:1]!r}")
    options = Options()
    parse_options(cmd[1:], options)
    return mode, options


def help_text(progname: str) -> str:
    """Usage summary shown when the command line is not understood."""
    return (
        f"{PROGRAM_NAME} v{VERSION} command line LHA tool\n"
        f"usage: {progname} [-]{{lvtxep[q{{num}}][finv]}}[w=<dir>] archive_file [file...]\n"
        "commands:                          options:\n"
        " l,v List / Verbose List            f  Force overwrite (no prompt)\n"
        " t   Test file CRC in archive       i  Ignore directory path\n"
        " x,e Extract from archive           n  Perform dry run\n"
        " p   Print to stdout from archive   q{num}  Quiet mode\n"
        "                                    v  Verbose\n"
        "                                    w=<dir> Specify extract directory\n"
    )


def run_command(
    mode: Mode,
    filter: ArchiveFilter,
    options: Options,
    archive_mtime: Optional[int] = None,
    out: Optional[TextIO] = None,
) -> bool:
    """Run ``mode`` over the files selected by ``filter``; True on success."""
    out = sys.stdout if out is None else out

    if mode is Mode.LIST:
        list_file_basic(filter, options, archive_mtime, out)
        return True
    if mode is Mode.LIST_VERBOSE:
        list_file_verbose(filter, options, archive_mtime, out)
        return True
    if mode is Mode.CRC_CHECK:
        return test_file_crc(filter, options, out)
    if mode is Mode.EXTRACT:
        return extract_archive(filter, options, out)
    if mode is Mode.PRINT:
        return print_archive(filter, options, out)
    return True