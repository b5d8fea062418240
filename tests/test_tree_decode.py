import io

import pytest

from lzhkit.pma_common import BitStreamReader
from lzhkit.tree_decode import DecodeTree


def bits_reader(bits: str) -> BitStreamReader:
    padded = bits + "0" * (-len(bits) % 8)
    data = int(padded, 2).to_bytes(len(padded) // 8, "big") if padded else b""
    return BitStreamReader(io.BytesIO(data).read)


def test_fresh_tree_decodes_zero_without_bits():
    assert DecodeTree(17).read(bits_reader("")) == 0


def test_single_code_tree():
    tree = DecodeTree(17)
    tree.set_single(7)
    assert tree.read(bits_reader("")) == 7


def test_two_symbol_tree():
    tree = DecodeTree(65)
    tree.build([1, 1])
    reader = bits_reader("0110")
    assert [tree.read(reader) for _ in range(4)] == [0, 1, 1, 0]


def test_unused_symbols_are_skipped():
    tree = DecodeTree(65)
    tree.build([0, 1, 1])
    reader = bits_reader("10")
    assert [tree.read(reader) for _ in range(2)] == [2, 1]


def test_shorter_codes_come_first():
    tree = DecodeTree(65)
    tree.build([2, 1, 2])
    reader = bits_reader("01011")
    assert [tree.read(reader) for _ in range(3)] == [1, 0, 2]


def test_mixed_lengths_decode_every_symbol():
    lengths = [3, 3, 2, 2, 2]
    tree = DecodeTree(65)
    tree.build(lengths)
    reader = bits_reader("000110110111")
    decoded = [tree.read(reader) for _ in range(5)]
    assert decoded == [2, 3, 4, 0, 1]
    assert sorted(decoded) == list(range(len(lengths)))


def test_rebuild_replaces_previous_tree():
    tree = DecodeTree(17)
    tree.set_single(5)
    tree.build([1, 1])
    assert tree.read(bits_reader("1")) == 1


def test_read_past_end_raises():
    tree = DecodeTree(65)
    tree.build([1, 1])
    with pytest.raises(EOFError):
        tree.read(bits_reader(""))