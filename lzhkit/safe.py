"""Terminal-safe output of untrusted text such as archived file names."""

from __future__ import annotations

from typing import TextIO, Union


def _safe_char(code: int) -> str:
    # Only plain printable ASCII passes; control characters, DEL and
    # everything above are replaced.
    return "?" if code < 0x20 or code >= 0x7F else chr(code)


def sanitize(text: Union[str, bytes]) -> str:
    """Replace every character that is not printable ASCII with '?'.

    Newlines and escape characters are replaced too.
    """
    if isinstance(text, (bytes, bytearray)):
        return "".join(_safe_char(b) for b in text)
    return "".join(_safe_char(ord(c)) for c in text)


def safe_write(stream: TextIO, text: Union[str, bytes]) -> int:
    """Write ``text`` to ``stream`` sanitized; return its length."""
    cleaned = sanitize(text)
    stream.write(cleaned)
    return len(cleaned)