from dataclasses import replace

from lzhkit.options import Options, OverwritePolicy


def test_defaults_match_command_line_defaults():
    options = Options()
    assert options.overwrite_policy is OverwritePolicy.PROMPT
    assert options.quiet == 0
    assert options.verbose is False
    assert options.dry_run is False
    assert options.extract_path is None
    assert options.use_path is True


def test_instances_are_independent():
    first = Options()
    second = Options()
    first.overwrite_policy = OverwritePolicy.ALL
    first.quiet = 2
    assert second.overwrite_policy is OverwritePolicy.PROMPT
    assert second.quiet == 0


def test_explicit_values_are_kept():
    options = Options(quiet=1, extract_path="out", use_path=False)
    assert (options.quiet, options.extract_path, options.use_path) == (1, "out", False)


def test_replace_and_equality():
    options = Options()
    changed = replace(options, dry_run=True)
    assert changed.dry_run is True
    assert changed != options
    assert replace(changed, dry_run=False) == options