"""Decoder for the PMarc ``-pm1-`` compression method."""

from __future__ import annotations

from typing import Optional

from .pma_common import (
    BitStreamReader,
    HistoryList,
    ReadCallback,
    VariableLengthTable,
    decode_variable_length,
)

# Size of the ring buffer holding the history.
RING_BUFFER_SIZE = 16384

# Longest block of literal bytes in a single command.
MAX_BYTE_BLOCK_LEN = 216

# Most bytes a single copy command can produce.
MAX_COPY_BLOCK_LEN = 244

# One call to PM1Decoder.read can output a byte block followed by a copy.
OUTPUT_BUFFER_SIZE = MAX_BYTE_BLOCK_LEN + MAX_COPY_BLOCK_LEN

# Number of decoded bytes per progress block.
BLOCK_SIZE = 2048

# Distances back into the history buffer for copies. Entries from index 6
# onwards replace entries 3-5 early in the stream, when the history is
# still short and fewer bits are needed.
COPY_RANGES = (
    VariableLengthTable(0, 6),
    VariableLengthTable(64, 8),
    VariableLengthTable(0, 6),
    VariableLengthTable(64, 9),
    VariableLengthTable(576, 11),
    VariableLengthTable(2624, 13),
    # Entry 3 (64):
    VariableLengthTable(64, 8),  # < 320 bytes
    # Entry 4 (576):
    VariableLengthTable(576, 8),  # < 832 bytes
    VariableLengthTable(576, 9),  # < 1088 bytes
    VariableLengthTable(576, 10),  # < 1600 bytes
    # Entry 5 (2624):
    VariableLengthTable(2624, 8),  # < 2880 bytes
    VariableLengthTable(2624, 9),  # < 3136 bytes
    VariableLengthTable(2624, 10),  # < 3648 bytes
    VariableLengthTable(2624, 11),  # < 4672 bytes
    VariableLengthTable(2624, 12),  # < 6720 bytes
)

# Distances along the history list for literal bytes.
BYTE_RANGES = (
    VariableLengthTable(0, 4),
    VariableLengthTable(16, 4),
    VariableLengthTable(32, 5),
    VariableLengthTable(64, 6),
    VariableLengthTable(128, 6),
    VariableLengthTable(192, 6),
)

# Small binary trees selecting an entry of BYTE_RANGES. Each byte is a
# node; each nybble is a branch, either a leaf (0xa-0xf meaning entries
# 0-5) or the offset of the child node.
_BYTE_DECODE_TREES = (
    (0x12, 0x2D, 0xEF, 0x1C, 0xAB),  # ((((a b) c) d) (e f))
    (0x12, 0x23, 0xDE, 0xAB, 0xCF),  # (((a b) (c f)) (d e))
    (0x12, 0x2C, 0xD2, 0xAB, 0xEF),  # (((a b) c) (d (e f)))
    (0x12, 0xA2, 0xD2, 0xBC, 0xEF),  # ((a (b c)) (d (e f)))
    (0x12, 0xA2, 0xC2, 0xBD, 0xEF),  # ((a (b d)) (c (e f)))
    (0x12, 0xA2, 0xCD, 0xB1, 0xEF),  # ((a (b (e f))) (c d))
    (0x12, 0xAB, 0x12, 0xCD, 0xEF),  # ((a b) ((c d) (e f)))
    (0x12, 0xAB, 0x1D, 0xC1, 0xEF),  # ((a b) ((c (e f)) d))
    (0x12, 0xAB, 0xC1, 0xD1, 0xEF),  # ((a b) (c (d (e f))))
    (0xA1, 0x12, 0x2C, 0xDE, 0xBF),  # (a (((b f) c) (d e)))
    (0xA1, 0x1D, 0x1C, 0xB1, 0xEF),  # (a (((b (e f)) c) d))
    (0xA1, 0x12, 0x2D, 0xEF, 0xBC),  # (a (((b c) d) (e f)))
    (0xA1, 0x12, 0xB2, 0xDE, 0xCF),  # (a ((b (c f)) (d e)))
    (0xA1, 0x12, 0xBC, 0xD1, 0xEF),  # (a ((b c) (d (e f))))
    (0xA1, 0x1C, 0xB1, 0xD1, 0xEF),  # (a ((b (d (e f))) c))
    (0xA1, 0xB1, 0x12, 0xCD, 0xEF),  # (a (b ((c d) (e f))))
    (0xA1, 0xB1, 0xC1, 0xD1, 0xEF),  # (a (b (c (d (e f)))))
    (0x12, 0x1C, 0xDE, 0xAB),  # (((d e) c) (d e)) - as found in the format
    (0x12, 0xA2, 0xCD, 0xBE),  # ((a (b e)) (c d))
    (0x12, 0xAB, 0xC1, 0xDE),  # ((a b) (c (d e)))
    (0xA1, 0x1D, 0x1C, 0xBE),  # (a (((b e) c) d))
    (0xA1, 0x12, 0xBC, 0xDE),  # (a ((b c) (d e)))
    (0xA1, 0x1C, 0xB1, 0xDE),  # (a ((b (d e)) c))
    (0xA1, 0xB1, 0xC1, 0xDE),  # (a (b (c (d e))))
    (0x1D, 0x1C, 0xAB),  # (((a b) c) d)
    (0x1C, 0xA1, 0xBD),  # ((a (b d)) c)
    (0x12, 0xAB, 0xCD),  # ((a b) (c d))
    (0xA1, 0x1C, 0xBD),  # (a ((b d) c))
    (0xA1, 0xB1, 0xCD),  # (a (b (c d)))
    (0xA1, 0xBC),  # (a (b c))
    (0xAB,),  # (a b)
    (0x00,),  # no tree: always entry 0
)

_TREE_ROW = 5

# All trees laid out in rows of five bytes, zero padded.
_TREE_TABLE = bytes(
    value
    for row in _BYTE_DECODE_TREES
    for value in (row + (0,) * _TREE_ROW)[:_TREE_ROW]
)


class _CorruptData(ValueError):
    """The compressed stream cannot be decoded any further."""


class PM1Decoder:
    """Incremental ``-pm1-`` decoder.

    ``callback(n)`` supplies up to ``n`` bytes of compressed data. Once it
    returns an empty result, the stream continues as zero bytes: some
    archives rely on reading past the end of their compressed data.
    """

    def __init__(self, callback: ReadCallback) -> None:
        self._callback = callback
        self._reader = BitStreamReader(self._read_padded)
        self._output_pos = 0
        self._tree_start: Optional[int] = None
        self._ringbuf = bytearray(RING_BUFFER_SIZE)
        self._ringbuf_pos = 0
        self._history = HistoryList()

    def _read_padded(self, n: int) -> bytes:
        data = self._callback(n)
        return data if data else bytes(n)

    def _read_start_header(self) -> None:
        self._tree_start = self._reader.read_bits(5) * _TREE_ROW

    def _output(self, out: bytearray, b: int) -> None:
        self._ringbuf[self._ringbuf_pos] = b
        self._ringbuf_pos = (self._ringbuf_pos + 1) % RING_BUFFER_SIZE
        self._history.update(b)
        self._output_pos += 1
        out.append(b)

    def _read_copy_byte_count(self) -> int:
        read_bits = self._reader.read_bits

        x = read_bits(2)
        if x < 3:
            return x + 3

        x = read_bits(3)
        if x < 5:
            return x + 6
        if x == 5:
            return read_bits(2) + 11
        if x == 6:
            return read_bits(3) + 15

        x = read_bits(6)
        if x < 62:
            return x + 23
        if x == 62:
            return read_bits(5) + 85
        return read_bits(7) + 117

    def _read_bit_after(self, threshold: int, default: int) -> int:
        if self._output_pos >= threshold:
            return self._reader.read_bit()
        return default

    def _read_copy_type_range(self) -> int:
        # The set of reachable ranges grows as output is produced:
        # 0 and 2 at first, 1 and 3 after 64 bytes, 4 after 576 bytes
        # and 5 after 2624 bytes.
        if self._reader.read_bit() == 0:
            if self._read_bit_after(576, 0):
                return 4
            return self._read_bit_after(64, 0)

        if self._read_bit_after(64, 1) == 0:
            return 3
        if self._read_bit_after(2624, 1):
            return 2
        return 5

    def _redirect_range(self, range_index: int) -> int:
        pos = self._output_pos
        if range_index == 3:
            if pos < 320:
                return 6
        elif range_index == 4:
            for limit, index in ((832, 7), (1088, 8), (1600, 9)):
                if pos < limit:
                    return index
        elif range_index == 5:
            for limit, index in (
                (2880, 10),
                (3136, 11),
                (3648, 12),
                (4672, 13),
                (6720, 14),
            ):
                if pos < limit:
                    return index
        return range_index

    def _copy_command(self, out: bytearray) -> None:
        range_index = self._read_copy_type_range()

        # The first two ranges are shorthand for a two-byte copy.
        count = 2 if range_index < 2 else self._read_copy_byte_count()

        range_index = self._redirect_range(range_index)
        distance = decode_variable_length(self._reader, COPY_RANGES, range_index)
        if distance >= self._output_pos:
            raise _CorruptData("copy reaches before start of output")

        index = (self._ringbuf_pos + RING_BUFFER_SIZE - distance - 1) % RING_BUFFER_SIZE
        for _ in range(count):
            self._output(out, self._ringbuf[index])
            index = (index + 1) % RING_BUFFER_SIZE

    def _read_byte_decode_index(self) -> int:
        pos = self._tree_start
        if _TREE_TABLE[pos] == 0:
            return 0

        while True:
            node = _TREE_TABLE[pos]
            if self._reader.read_bit() == 0:
                child = (node >> 4) & 0x0F
            else:
                child = node & 0x0F
            if child >= 10:
                return child - 10
            if child == 0 or pos + child >= len(_TREE_TABLE):
                raise _CorruptData("malformed byte decode tree")
            pos += child

    def _read_byte(self) -> int:
        index = self._read_byte_decode_index()
        count = decode_variable_length(self._reader, BYTE_RANGES, index)
        return self._history.find(count)

    def _read_byte_block_count(self) -> int:
        read_bits = self._reader.read_bits

        x = read_bits(2)
        if x < 3:
            return x + 1

        x = read_bits(3)
        if x < 7:
            return x + 4

        x = read_bits(4)
        if x < 14:
            return x + 11
        if x == 14:
            return read_bits(6) + 25
        return read_bits(7) + 89

    def _byte_block(self, out: bytearray) -> None:
        block_len = self._read_byte_block_count()
        for _ in range(block_len):
            self._output(out, self._read_byte())

        # A block shorter than the maximum ended because a copy follows.
        if block_len != MAX_BYTE_BLOCK_LEN:
            self._copy_command(out)

    def read(self) -> bytes:
        """Decode the next command; returns b"" when decoding fails."""
        out = bytearray()
        try:
            if self._tree_start is None:
                self._read_start_header()
            if self._reader.read_bit() == 0:
                self._copy_command(out)
            else:
                self._byte_block(out)
        except (_CorruptData, EOFError):
            return b""
        return bytes(out)


def decode_pm1(data: bytes, length: int) -> bytes:
    """Decode ``length`` bytes from ``-pm1-`` data.

    The result is shorter than ``length`` if the data cannot be decoded.
    """
    view = memoryview(bytes(data))
    pos = 0

    def callback(n: int) -> bytes:
        nonlocal pos
        chunk = bytes(view[pos:pos + n])
        pos += len(chunk)
        return chunk

    decoder = PM1Decoder(callback)
    out = bytearray()
    while len(out) < length:
        block = decoder.read()
        if not block:
            break
        out += block
    return bytes(out[:length])