"""Bit-level input and the helpers shared by the PMarc decoders."""

from __future__ import annotations

from typing import Callable, NamedTuple, Sequence

ReadCallback = Callable[[int], bytes]

# Number of bytes requested from the callback on each refill.
_CHUNK_SIZE = 64


class BitStreamReader:
    """Reads bits, most significant bit first, from a byte source.

    ``callback(n)`` is called with the maximum number of bytes wanted and
    returns up to that many bytes; an empty result means end of input.
    """

    def __init__(self, callback: ReadCallback) -> None:
        self._callback = callback
        self._buffer = b""
        self._pos = 0
        self._acc = 0
        self._nbits = 0

    def _next_byte(self) -> int:
        if self._pos >= len(self._buffer):
            data = self._callback(_CHUNK_SIZE)
            if not data:
                raise EOFError("compressed data exhausted")
            self._buffer = bytes(data)
            self._pos = 0
        value = self._buffer[self._pos]
        self._pos += 1
        return value

    def read_bits(self, n: int) -> int:
        """Read an ``n``-bit unsigned value; raises EOFError at end of input."""
        if n < 0:
            raise ValueError("bit count must not be negative")
        while self._nbits < n:
            self._acc = (self._acc << 8) | self._next_byte()
            self._nbits += 8
        self._nbits -= n
        result = self._acc >> self._nbits
        self._acc &= (1 << self._nbits) - 1
        return result

    def read_bit(self) -> int:
        """Read a single bit."""
        return self.read_bits(1)


class VariableLengthTable(NamedTuple):
    """One entry of a variable-length code table: base value and extra bits."""

    offset: int
    bits: int


def decode_variable_length(
    reader: BitStreamReader, table: Sequence[VariableLengthTable], header: int
) -> int:
    """Decode a value whose table entry was selected by ``header``."""
    entry = table[header]
    return entry.offset + reader.read_bits(entry.bits)


class HistoryList:
    """Move-to-front list of byte values used to code literal bytes.

    A coded value is the number of steps back from the most recently
    output byte; each output byte is moved to the front of the list.
    """

    def __init__(self) -> None:
        self.prev = [(i + 1) & 0xFF for i in range(256)]
        self.next = [(i - 1) & 0xFF for i in range(256)]

        # Printable ASCII first, then control characters, then the
        # upper ranges in groups.
        self.head = 0x20
        self._link(0x7F, 0x00)  # 0x20 ... 0x7f -> 0x00
        self._link(0x1F, 0xA0)  # 0x00 ... 0x1f -> 0xa0
        self._link(0xDF, 0x80)  # 0xa0 ... 0xdf -> 0x80
        self._link(0x9F, 0xE0)  # 0x80 ... 0x9f -> 0xe0
        self._link(0xFF, 0x20)  # 0xe0 ... 0xff -> 0x20

    def _link(self, a: int, b: int) -> None:
        self.prev[a] = b
        self.next[b] = a

    def find(self, count: int) -> int:
        """Return the byte ``count`` steps back from the head."""
        count &= 0xFF
        code = self.head
        if count < 128:
            for _ in range(count):
                code = self.prev[code]
        else:
            for _ in range(256 - count):
                code = self.next[code]
        return code

    def update(self, b: int) -> None:
        """Move byte ``b`` to the head of the list."""
        if self.head == b:
            return

        node_prev = self.prev[b]
        node_next = self.next[b]
        self.prev[node_next] = node_prev
        self.next[node_prev] = node_next

        old_head = self.head
        self.prev[b] = old_head
        self.next[b] = self.next[old_head]
        self.prev[self.next[old_head]] = b
        self.next[old_head] = b

        self.head = b