import io
import os

import pytest

from lzhkit import extract
from lzhkit.file_header import COMPRESS_TYPE_DIR, FileHeader
from lzhkit.filter import ArchiveFilter
from lzhkit.options import Options, OverwritePolicy


class FakeReader:
    def __init__(self, entries, check_ok=True, blocks=1, fake=False):
        self._entries = list(entries)
        self.check_ok = check_ok
        self.blocks = blocks
        self.fake = fake
        self._header = None
        self._data = b""
        self._pos = 0

    def next_file(self):
        if not self._entries:
            return None
        self._header, self._data = self._entries.pop(0)
        self._pos = 0
        return self._header

    def check(self, callback=None):
        if callback is not None:
            for block in range(self.blocks):
                callback(block, self.blocks)
        return self.check_ok

    def extract(self, filename=None, callback=None):
        if self._header.is_dir():
            if self._header.symlink_target is None:
                os.makedirs(filename, exist_ok=True)
            return True
        if callback is not None:
            callback(0, 1)
        with open(filename, "wb") as fh:
            fh.write(self._data)
        return True

    def read(self, size):
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk

    def current_is_fake(self):
        return self.fake


def file_entry(name, data=b"hello", path=None):
    header = FileHeader(path=path, filename=name, compress_method="-lh5-", length=len(data))
    return header, data


def dir_entry(path):
    return FileHeader(path=path, compress_method=COMPRESS_TYPE_DIR), b""


def make_filter(entries, **kwargs):
    return ArchiveFilter(FakeReader(entries, **kwargs))


def test_file_full_path_strips_leading_slashes():
    header = FileHeader(path="/dir/", filename="/f.txt")
    options = Options(extract_path="out")
    assert extract.file_full_path(header, options) == "out/dir/f.txt"


def test_file_full_path_without_path():
    header = FileHeader(path="dir/", filename="f.txt")
    assert extract.file_full_path(header, Options(use_path=False)) == "f.txt"
    assert extract.file_full_path(header, Options()) == "dir/f.txt"


def test_make_parent_directories_creates(tmp_path):
    target = tmp_path / "a" / "b" / "file.txt"
    err = io.StringIO()
    assert extract.make_parent_directories(str(target), err) is True
    assert (tmp_path / "a" / "b").is_dir()
    assert not target.exists()
    assert err.getvalue() == ""


def test_make_parent_directories_blocked_by_file(tmp_path):
    (tmp_path / "blocker").write_text("x")
    err = io.StringIO()
    ok = extract.make_parent_directories(str(tmp_path / "blocker" / "f"), err)
    assert ok is False
    assert "is not a directory!" in err.getvalue()


def test_crc_dry_run_skips_directories():
    flt = make_filter([file_entry("a.txt"), dir_entry("sub/")])
    out = io.StringIO()
    assert extract.test_file_crc(flt, Options(dry_run=True), out) is True
    assert out.getvalue() == "VERIFY a.txt\n"


def test_crc_progress_output():
    flt = make_filter([file_entry("a.txt")], blocks=3)
    out = io.StringIO()
    assert extract.test_file_crc(flt, Options(), out) is True
    line = "\ra.txt\t- Testing  :  "
    assert out.getvalue() == line + "..." + line + "oo" + "\ra.txt\t- Tested  \n"


def test_crc_failure_reported():
    flt = make_filter([file_entry("a.txt")], check_ok=False)
    out = io.StringIO()
    assert extract.test_file_crc(flt, Options(), out) is False
    assert out.getvalue().endswith("CRC error  \n")


def test_crc_quiet_level_one():
    flt = make_filter([file_entry("a.txt")])
    out = io.StringIO()
    extract.test_file_crc(flt, Options(quiet=1), out)
    assert out.getvalue().startswith("\ra.txt :")


def test_extract_writes_file(tmp_path):
    flt = make_filter([file_entry("f.txt", b"data", path="sub/")])
    out = io.StringIO()
    options = Options(extract_path=str(tmp_path))
    assert extract.extract_archive(flt, options, out, io.StringIO()) is True
    assert (tmp_path / "sub" / "f.txt").read_bytes() == b"data"
    assert "Melted" in out.getvalue()


def test_extract_skip_existing(tmp_path):
    (tmp_path / "f.txt").write_bytes(b"old")
    flt = make_filter([file_entry("f.txt", b"new")])
    out = io.StringIO()
    options = Options(extract_path=str(tmp_path), overwrite_policy=OverwritePolicy.SKIP)
    assert extract.extract_archive(flt, options, out, io.StringIO()) is True
    assert (tmp_path / "f.txt").read_bytes() == b"old"
    assert out.getvalue().endswith(" : Skipped...\n")


def test_extract_prompt_all_sets_policy(tmp_path):
    (tmp_path / "f.txt").write_bytes(b"old")
    flt = make_filter([file_entry("f.txt", b"new")])
    options = Options(extract_path=str(tmp_path))
    answers = iter(["what\n", "All\n"])
    prompts = []

    def ask(message):
        prompts.append(message)
        return next(answers)

    assert extract.extract_archive(flt, options, io.StringIO(), io.StringIO(), ask)
    assert (tmp_path / "f.txt").read_bytes() == b"new"
    assert options.overwrite_policy is OverwritePolicy.ALL
    assert prompts == ["OverWrite ?(Yes/[No]/All/Skip) "] * 2


def test_extract_prompt_empty_answer_keeps_file(tmp_path):
    (tmp_path / "f.txt").write_bytes(b"old")
    flt = make_filter([file_entry("f.txt", b"new")])
    options = Options(extract_path=str(tmp_path))
    extract.extract_archive(flt, options, io.StringIO(), io.StringIO(), lambda m: "\n")
    assert (tmp_path / "f.txt").read_bytes() == b"old"
    assert options.overwrite_policy is OverwritePolicy.PROMPT


def test_print_archive_outputs_contents():
    flt = make_filter([file_entry("a.txt", b"abc"), dir_entry("d/")])
    out = io.StringIO()
    assert extract.print_archive(flt, Options(), out) is True
    assert out.getvalue() == "::::::::\na.txt\n::::::::\nabc"


def test_print_archive_sanitizes_name():
    flt = make_filter([file_entry("a\x1b.txt", b"")])
    out = io.StringIO()
    extract.print_archive(flt, Options(), out)
    assert "\x1b" not in out.getvalue()
    assert "a?.txt" in out.getvalue()


def test_print_archive_quiet_only_data():
    flt = make_filter([file_entry("a.txt", b"xyz")])
    out = io.StringIO()
    extract.print_archive(flt, Options(quiet=2), out)
    assert out.getvalue() == "xyz"


@pytest.mark.parametrize("answer", ["s\n", "S\n"])
def test_extract_prompt_skip(tmp_path, answer):
    (tmp_path / "f.txt").write_bytes(b"old")
    flt = make_filter([file_entry("f.txt", b"new")])
    options = Options(extract_path=str(tmp_path))
    extract.extract_archive(flt, options, io.StringIO(), io.StringIO(), lambda m: answer)
    assert options.overwrite_policy is OverwritePolicy.SKIP
    assert (tmp_path / "f.txt").read_bytes() == b"old"