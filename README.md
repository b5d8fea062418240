# lzhkit

`lzhkit` is a pure Python library for working with LZH archives. It has
two parts:

- decoders for the two PMarc compression methods, `-pm1-` and `-pm2-`.
  PMarc is the LHA variant that was common on MSX computers.
- the parts of an `lha`-style archive tool: glob filtering of archive
  members, `l`/`v` listings, CRC testing, extraction, printing to
  standard output, and command-argument parsing.

It uses only the standard library and needs Python 3.10 or later.

## Decompressing raw data

Each decoder turns compressed bytes back into the original data. You
give it the number of bytes to produce, which normally comes from the
file header:

```python
from lzhkit.pm1_decoder import decode_pm1
from lzhkit.pm2_decoder import decode_pm2

original = decode_pm2(compressed_bytes, uncompressed_length)
original = decode_pm1(compressed_bytes, uncompressed_length)
```

If the data cannot be decoded to the end, the result is shorter than
the length asked for. The two decoders handle exhausted input
differently:

- `decode_pm2` stops when the compressed data runs out.
- `decode_pm1` treats the input as continuing with zero bytes past its
  end, because some archives depend on that. It stops when a command
  cannot be decoded.

For streaming, use `PM2Decoder(callback)` and `PM1Decoder(callback)`.
`callback(n)` returns up to `n` bytes of compressed input, and an empty
result at the end. Each call to `read()` decodes one command and
returns its bytes. It returns `b""` when nothing more can be decoded.

The shared building blocks are public as well:

- `lzhkit.pma_common`:
  - `BitStreamReader` reads bits most significant bit first, with
    `read_bits(n)` and `read_bit()`. It raises `EOFError` at the end
    of input.
  - `VariableLengthTable` and `decode_variable_length` decode
    table-driven variable-length values.
  - `HistoryList` is the move-to-front list of byte values, with
    `find(count)` and `update(b)`.
- `lzhkit.tree_decode.DecodeTree` is an array-backed code tree. It is
  built from code lengths with `build()`, or fixed to one code with
  `set_single()`, and decoded with `read(reader)`.

## Headers and options

- `lzhkit.file_header.FileHeader` is a dataclass that describes one
  archived file. `has_extra(flag)` tells whether an `ExtraFlag` item
  (Unix permissions, UID/GID, common CRC, Windows timestamps or OS-9
  permissions) was present. `is_dir()` is true for directory and
  symlink entries, which use the `-lhd-` method. The module also
  defines the `OS_TYPE_*` constants.
- `lzhkit.options.Options` holds the settings of a run:
  - `overwrite_policy`, one of `OverwritePolicy.PROMPT`, `SKIP` or
    `ALL`
  - `quiet`, the quiet level
  - `verbose`
  - `dry_run`
  - `extract_path`
  - `use_path`

## Filtering members

`match_glob` matches a pattern in which `*` stands for any run of
characters and `?` for any one character. `/` has no special meaning:

```python
from lzhkit.filter import match_glob

match_glob("*.txt", "docs/readme.txt")   # True
match_glob("file?.c", "file10.c")        # False
```

`ArchiveFilter(reader, filters)` wraps any object that has a
`next_file()` method. That method returns a `FileHeader`, or `None` at
the end. When iterated, or through `next_file()`, the filter yields
only the headers whose path and filename, joined, match one of the
patterns. An empty pattern list matches every header.

## Listings

`lzhkit.listing.list_file_basic` and `list_file_verbose` write the
column tables of `lha l` and `lha v`. Each has a wide form, used when
`options.verbose` is set. They accept any iterable of headers. The
`archive_mtime` argument stamps the footer line, and `now` fixes the
point in time that decides whether a date shows the time of day or
the year:

```python
import io
from lzhkit.file_header import FileHeader
from lzhkit.listing import list_file_basic
from lzhkit.options import Options

out = io.StringIO()
headers = [FileHeader(filename="hello.txt", compress_method="-pm2-",
                      compressed_length=40, length=100)]
list_file_basic(headers, Options(), archive_mtime=0, out=out, now=0)
print(out.getvalue())
```

`format_permissions(header)` and `os_type_name(os_type)` give the text
of the permission column on their own.

## Testing, extracting and printing

`lzhkit.extract` works through an `ArchiveFilter` whose reader also
provides these methods:

- `check(callback)`
- `extract(filename, callback)`
- `read(size)`
- `current_is_fake()`

The functions are:

- `test_file_crc(filter, options, out)` checks each selected file and
  prints `Tested` or `CRC error`.
- `extract_archive(filter, options, out, err, ask)` extracts files. It
  creates parent directories as needed and follows the overwrite
  policy. `ask(message)` supplies the answer to the overwrite prompt;
  by default the answer is read from standard input.
- `print_archive(filter, options, out)` writes the contents of each
  file between `::::::::` separator lines.
- With `dry_run` set, extraction and printing only report what they
  would do, for example `EXTRACT name` or `... but file is exist.`.
- `file_full_path(header, options)` builds the target path. Leading
  `/` characters are removed from stored paths, so an archive cannot
  write outside the target directory.
- `make_parent_directories(path, err)` creates the missing directories
  of a path.

## Safe output

`lzhkit.safe.sanitize(text)` replaces every character that is not
printable ASCII with `?`, including newlines and escape characters.
`safe_write(stream, text)` writes the sanitized text. Every name taken
from an archive is passed through `sanitize` before it is printed.
This protects terminals from escape sequences hidden in filenames.

## Command arguments

`lzhkit.cli` understands `lha`-style command arguments:

- `parse_command_line("xq1fw=out")` returns the `Mode` and the
  `Options`. It raises `UsageError` for an unknown command or option
  letter.
- `run_command(mode, filter, options, archive_mtime, out)` dispatches
  to the listing, test, extract or print functions.
- `help_text(progname)` returns the usage summary.

## What the package does not do

- It does not read LZH archive files. There is no parser for archive
  headers and no reader object that yields `FileHeader` values or
  extracts their data. `ArchiveFilter`, `lzhkit.extract` and
  `run_command` must be given such a reader by the caller.
- The only decoders are `-pm1-` and `-pm2-`. There are no decoders for
  the `-lh*-` methods.
- No command-line program is installed. `lzhkit.cli` parses arguments
  and dispatches work, but it does not open archives or run as a
  command.