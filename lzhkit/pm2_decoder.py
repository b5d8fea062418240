"""Decoder for the PMarc ``-pm2-`` compression method."""

from __future__ import annotations

from contextlib import suppress
from enum import Enum, auto

from .pma_common import (
    BitStreamReader,
    HistoryList,
    ReadCallback,
    VariableLengthTable,
    decode_variable_length,
)
from .tree_decode import DecodeTree

# Size of the history ring buffer used for copies.
RING_BUFFER_SIZE = 8192

# Most bytes a single call to PM2Decoder.read can produce (largest copy).
OUTPUT_BUFFER_SIZE = 256

# Number of decoded bytes per progress block.
BLOCK_SIZE = RING_BUFFER_SIZE

CODE_TREE_ELEMENTS = 65
OFFSET_TREE_ELEMENTS = 17

# Distance back along the history list for a literal byte; recently used
# byte values take fewer bits.
HISTORY_DECODE = (
    VariableLengthTable(0, 3),
    VariableLengthTable(8, 3),
    VariableLengthTable(16, 4),
    VariableLengthTable(32, 5),
    VariableLengthTable(64, 5),
    VariableLengthTable(96, 5),
    VariableLengthTable(128, 6),
    VariableLengthTable(192, 6),
)

# Lengths of long copies.
COPY_DECODE = (
    VariableLengthTable(17, 3),
    VariableLengthTable(25, 3),
    VariableLengthTable(33, 5),
    VariableLengthTable(65, 6),
    VariableLengthTable(129, 7),
    VariableLengthTable(256, 0),
)


class _RebuildState(Enum):
    UNBUILT = auto()  # start of stream
    BUILD1 = auto()  # after 1 KiB
    BUILD2 = auto()  # after 2 KiB
    BUILD3 = auto()  # after 4 KiB
    CONTINUING = auto()  # 8 KiB onwards


class PM2Decoder:
    """Incremental ``-pm2-`` decoder.

    ``callback(n)`` supplies up to ``n`` bytes of compressed data and
    returns an empty result at end of input.
    """

    def __init__(self, callback: ReadCallback) -> None:
        self._reader = BitStreamReader(callback)
        self._state = _RebuildState.UNBUILT
        self._rebuild_remaining = 0
        self._ringbuf = bytearray(b" " * RING_BUFFER_SIZE)
        self._ringbuf_pos = 0
        self._history = HistoryList()
        self._code_tree = DecodeTree(CODE_TREE_ELEMENTS)
        self._need_offset_tree = False
        self._offset_tree = DecodeTree(OFFSET_TREE_ELEMENTS)

    def _read_code_tree(self) -> None:
        reader = self._reader
        num_codes = reader.read_bits(5)
        min_code_length = reader.read_bits(3)

        self._need_offset_tree = num_codes >= 10 and not (
            num_codes == 29 and min_code_length == 0
        )

        # A minimum length of zero means a tree holding a single code.
        if min_code_length == 0:
            self._code_tree.set_single(num_codes - 1)
            return

        length_bits = reader.read_bits(3)
        code_lengths = []
        for _ in range(num_codes):
            val = reader.read_bits(length_bits)
            code_lengths.append(0 if val == 0 else (min_code_length + val - 1) & 0xFF)

        self._code_tree.build(code_lengths)

    def _read_offset_tree(self, num_offsets: int) -> None:
        if not self._need_offset_tree:
            return

        lengths = [self._reader.read_bits(3) for _ in range(num_offsets)]
        used = [off for off, length in enumerate(lengths) if length != 0]

        if len(used) == 1:
            self._offset_tree.set_single(used[0])
        else:
            self._offset_tree.build(lengths)

    def _try(self, step, *args) -> None:
        # Failures while rebuilding leave the trees as they were.
        with suppress(EOFError):
            step(*args)

    def _read_flag(self) -> bool:
        try:
            return self._reader.read_bit() == 1
        except EOFError:
            return False

    def _rebuild_tree(self) -> None:
        state = self._state
        if state is _RebuildState.UNBUILT:
            self._try(self._read_code_tree)
            self._try(self._read_offset_tree, 5)
            self._state = _RebuildState.BUILD1
            self._rebuild_remaining = 1024
        elif state is _RebuildState.BUILD1:
            self._try(self._read_offset_tree, 6)
            self._state = _RebuildState.BUILD2
            self._rebuild_remaining = 1024
        elif state is _RebuildState.BUILD2:
            self._try(self._read_offset_tree, 7)
            self._state = _RebuildState.BUILD3
            self._rebuild_remaining = 2048
        elif state is _RebuildState.BUILD3:
            if self._read_flag():
                self._try(self._read_code_tree)
            self._try(self._read_offset_tree, 8)
            self._state = _RebuildState.CONTINUING
            self._rebuild_remaining = 4096
        else:
            if self._read_flag():
                self._try(self._read_code_tree)
                self._try(self._read_offset_tree, 8)
            self._rebuild_remaining = 4096

    def _output_byte(self, out: bytearray, b: int) -> None:
        self._ringbuf[self._ringbuf_pos] = b
        self._ringbuf_pos = (self._ringbuf_pos + 1) % RING_BUFFER_SIZE
        out.append(b)
        self._history.update(b)

        self._rebuild_remaining -= 1
        if self._rebuild_remaining == 0:
            self._rebuild_tree()

    def _read_single_byte(self, code: int, out: bytearray) -> None:
        try:
            offset = decode_variable_length(self._reader, HISTORY_DECODE, code)
        except EOFError:
            return
        self._output_byte(out, self._history.find(offset))

    def _history_count(self, code: int) -> int:
        if code < 15:
            return code + 2
        index = code - 15
        if index >= len(COPY_DECODE):
            raise ValueError(f"invalid copy length code {code + 8}")
        return decode_variable_length(self._reader, COPY_DECODE, index)

    def _history_offset(self, code: int) -> int:
        result = 0
        if code == 0:
            bits = 6
        elif code < 20:
            val = self._offset_tree.read(self._reader)
            if val == 0:
                bits = 6
            else:
                bits = val + 5
                result = 1 << bits
        else:
            # Large copies start from offset zero.
            return 0
        return result + self._reader.read_bits(bits)

    def _copy_from_history(self, code: int, out: bytearray) -> None:
        try:
            to_copy = self._history_count(code)
            offset = self._history_offset(code)
        except EOFError:
            return

        if to_copy > OUTPUT_BUFFER_SIZE:
            return

        start = self._ringbuf_pos + RING_BUFFER_SIZE - 1 - offset
        for i in range(to_copy):
            self._output_byte(out, self._ringbuf[(start + i) % RING_BUFFER_SIZE])

    def read(self) -> bytes:
        """Decode the next command; returns b"" at end of input."""
        if self._state is _RebuildState.UNBUILT:
            # The first bit of the stream is discarded.
            with suppress(EOFError):
                self._reader.read_bit()
            self._rebuild_tree()

        try:
            code = self._code_tree.read(self._reader)
        except EOFError:
            return b""

        out = bytearray()
        if code < 8:
            self._read_single_byte(code, out)
        else:
            self._copy_from_history(code - 8, out)
        return bytes(out)


def decode_pm2(data: bytes, length: int) -> bytes:
    """Decode ``length`` bytes from ``-pm2-`` data.

    The result is shorter than ``length`` if the compressed data runs out.
    """
    view = memoryview(bytes(data))
    pos = 0

    def callback(n: int) -> bytes:
        nonlocal pos
        chunk = bytes(view[pos:pos + n])
        pos += len(chunk)
        return chunk

    decoder = PM2Decoder(callback)
    out = bytearray()
    while len(out) < length:
        block = decoder.read()
        if not block:
            break
        out += block
    return bytes(out[:length])