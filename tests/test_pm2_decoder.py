import random

import pytest

from lzhkit.pm2_decoder import (
    HISTORY_DECODE,
    OUTPUT_BUFFER_SIZE,
    PM2Decoder,
    decode_pm2,
)
from lzhkit.pma_common import HistoryList


class BitWriter:
    def __init__(self):
        self.bits = []

    def write(self, value, n):
        self.bits.extend((value >> (n - 1 - i)) & 1 for i in range(n))

    def getvalue(self, padding=8):
        bits = self.bits + [0] * (-len(self.bits) % 8)
        if not bits:
            return bytes(padding)
        number = int("".join(str(b) for b in bits), 2)
        return number.to_bytes(len(bits) // 8, "big") + bytes(padding)


def history_distance(history, byte):
    code = history.head
    distance = 0
    while code != byte:
        code = history.prev[code]
        distance += 1
    return distance


def write_literals(writer, data, code_paths, history):
    for count, byte in enumerate(data, start=1):
        distance = history_distance(history, byte)
        history.update(byte)
        index = max(i for i, e in enumerate(HISTORY_DECODE) if e.offset <= distance)
        writer.write(*code_paths[index])
        entry = HISTORY_DECODE[index]
        writer.write(distance - entry.offset, entry.bits)
        # Tree rebuild points after 4 KiB, 8 KiB, ... read one flag bit.
        if count % 4096 == 0:
            writer.write(0, 1)


# Eight literal codes, all of length 3: code c is the 3-bit value c.
EIGHT_CODE_PATHS = {c: (c, 3) for c in range(8)}


def eight_code_header():
    writer = BitWriter()
    writer.write(0, 1)  # discarded bit
    writer.write(8, 5)  # number of codes
    writer.write(3, 3)  # minimum code length
    writer.write(1, 3)  # bits per length entry
    for _ in range(8):
        writer.write(1, 1)
    return writer


# Nine codes: 0..6 of length 3, 7 and 8 of length 4.
NINE_CODE_PATHS = {c: (c, 3) for c in range(7)}
NINE_CODE_PATHS[7] = (0b1110, 4)
COPY_PATH = (0b1111, 4)


def nine_code_header():
    writer = BitWriter()
    writer.write(0, 1)
    writer.write(9, 5)
    writer.write(3, 3)
    writer.write(2, 3)
    for _ in range(7):
        writer.write(1, 2)
    for _ in range(2):
        writer.write(2, 2)
    return writer


def single_code_stream(num_codes):
    writer = BitWriter()
    writer.write(0, 1)
    writer.write(num_codes, 5)
    writer.write(0, 3)
    return writer.getvalue(padding=16)


def test_empty_input_decodes_nothing():
    assert decode_pm2(b"", 10) == b""


def test_read_at_end_of_input_returns_empty():
    decoder = PM2Decoder(lambda n: b"")
    assert decoder.read() == b""
    assert decoder.read() == b""


def test_literal_round_trip_short_text():
    writer = eight_code_header()
    data = b"Hello, world! \x00\xff\x80"
    write_literals(writer, data, EIGHT_CODE_PATHS, HistoryList())
    assert decode_pm2(writer.getvalue(), len(data)) == data


def test_literal_round_trip_across_tree_rebuilds():
    rng = random.Random(1234)
    data = bytes(rng.randrange(256) for _ in range(9000))
    writer = eight_code_header()
    write_literals(writer, data, EIGHT_CODE_PATHS, HistoryList())
    assert decode_pm2(writer.getvalue(), len(data)) == data


def test_decode_stops_at_requested_length():
    data = b"abcdefgh"
    writer = eight_code_header()
    write_literals(writer, data, EIGHT_CODE_PATHS, HistoryList())
    assert decode_pm2(writer.getvalue(), 3) == data[:3]


def test_one_byte_chunks_match_whole_buffer():
    data = b"The quick brown fox jumps over the lazy dog"
    writer = eight_code_header()
    write_literals(writer, data, EIGHT_CODE_PATHS, HistoryList())
    stream = writer.getvalue()

    chunks = iter(stream[i:i + 1] for i in range(len(stream)))
    decoder = PM2Decoder(lambda n: next(chunks, b""))
    out = bytearray()
    while len(out) < len(data):
        block = decoder.read()
        assert block
        out += block
    assert bytes(out) == decode_pm2(stream, len(data)) == data


def test_copy_of_earlier_bytes():
    writer = nine_code_header()
    write_literals(writer, b"xyab", NINE_CODE_PATHS, HistoryList())
    writer.write(*COPY_PATH)
    writer.write(1, 6)  # distance back: starts two bytes before the end
    assert decode_pm2(writer.getvalue(), 6) == b"xyab" + b"ab"


def test_overlapping_copy_repeats_last_byte():
    writer = nine_code_header()
    write_literals(writer, b"a", NINE_CODE_PATHS, HistoryList())
    writer.write(*COPY_PATH)
    writer.write(0, 6)
    assert decode_pm2(writer.getvalue(), 3) == b"aaa"


def test_longest_copy_fills_output_buffer():
    decoder_input = iter([single_code_stream(29)])
    decoder = PM2Decoder(lambda n: next(decoder_input, b""))
    block = decoder.read()
    assert len(block) == OUTPUT_BUFFER_SIZE
    assert set(block) == {ord(" ")}


def test_long_copies_continue_past_rebuild_points():
    result = decode_pm2(single_code_stream(29), 5000)
    assert len(result) == 5000
    assert result == b" " * 5000


def test_copy_code_beyond_table_is_rejected():
    with pytest.raises(ValueError):
        decode_pm2(single_code_stream(31), 10)