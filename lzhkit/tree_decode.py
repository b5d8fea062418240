"""Array-backed binary trees for decoding variable-length codes."""

from __future__ import annotations

from typing import Sequence

from .pma_common import BitStreamReader

# Elements are 8-bit values; the top bit marks a leaf.
_LEAF = 0x80
_MASK = 0xFF


class DecodeTree:
    """A code tree stored in a fixed-size array.

    Node ``n`` has children at ``tree[n]`` and ``tree[n] + 1``; element 0
    is the root. A fresh tree decodes to code 0 without reading any bits.
    """

    def __init__(self, size: int) -> None:
        self.size = size
        self.elements = [_LEAF] * size

    def set_single(self, code: int) -> None:
        """Make the tree always decode to ``code``."""
        self.elements[0] = (code & _MASK) | _LEAF

    def build(self, code_lengths: Sequence[int]) -> None:
        """Build the tree from the code length of each symbol (0 = unused)."""
        tree = self.elements
        allocated = 1
        next_entry = 0

        def expand_queue() -> None:
            nonlocal allocated, next_entry
            new_nodes = (allocated - next_entry) * 2
            if allocated + new_nodes > self.size:
                return
            end = allocated
            while next_entry < end:
                tree[next_entry] = allocated & _MASK
                allocated += 2
                next_entry += 1

        def take_entry() -> int:
            nonlocal next_entry
            if next_entry >= allocated:
                return 0
            result = next_entry
            next_entry += 1
            return result

        def add_codes(code_len: int) -> bool:
            remaining = False
            for symbol, length in enumerate(code_lengths):
                if length == code_len:
                    tree[take_entry()] = (symbol & _MASK) | _LEAF
                elif length > code_len:
                    remaining = True
            return remaining

        code_len = 0
        while True:
            expand_queue()
            code_len += 1
            if not add_codes(code_len):
                break

    def read(self, reader: BitStreamReader) -> int:
        """Walk the tree using bits from ``reader`` and return the leaf code."""
        code = self.elements[0]
        while not code & _LEAF:
            code = self.elements[code + reader.read_bit()]
        return code & ~_LEAF & _MASK