"""Selection of archived files by glob-style patterns."""

from __future__ import annotations

from typing import Iterator, Optional, Protocol, Sequence

from .file_header import FileHeader


class HeaderSource(Protocol):
    """Anything that yields file headers one at a time."""

    def next_file(self) -> Optional[FileHeader]:
        ...


def match_glob(glob: str, text: str) -> bool:
    """Match ``text`` against a pattern where '*' is any run and '?' any one character."""
    g = 0
    for i, ch in enumerate(text):
        if g < len(glob) and glob[g] == "*":
            # Try matching the rest of the pattern from here; otherwise
            # let the '*' swallow this character.
            if match_glob(glob[g + 1:], text[i:]):
                return True
        elif g < len(glob) and (glob[g] == "?" or glob[g] == ch):
            g += 1
        else:
            return False

    # Trailing '*'s match the empty remainder.
    while g < len(glob) and glob[g] == "*":
        g += 1

    return g == len(glob)


class ArchiveFilter:
    """Reads headers from ``reader``, keeping only those matching ``filters``.

    With no filters every file matches. A header matches when its path
    and file name joined together match any one of the patterns.
    """

    def __init__(self, reader: HeaderSource, filters: Sequence[str] = ()) -> None:
        self.reader = reader
        self.filters = list(filters or ())

    def matches(self, header: FileHeader) -> bool:
        """True if ``header`` is selected by the filters."""
        if not self.filters:
            return True
        full = (header.path or "") + (header.filename or "")
        return any(match_glob(pattern, full) for pattern in self.filters)

    def next_file(self) -> Optional[FileHeader]:
        """Return the next matching header, or None at the end."""
        while True:
            header = self.reader.next_file()
            if header is None or self.matches(header):
                return header

    def __iter__(self) -> Iterator[FileHeader]:
        while True:
            header = self.next_file()
            if header is None:
                return
            yield header