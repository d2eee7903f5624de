"""Tests for compile option handling."""

import pytest

from tplc import CompileOptions, ConfigurationError, Syntax
from tplc.config import resolve_options


def test_defaults():
    opts = resolve_options()
    assert opts.syntax == Syntax()
    assert opts.filename is None
    assert opts.encoding == "utf-8"
    assert opts.is_async is False
    assert opts.module_type == "import"


def test_async_alias_and_field_name():
    assert resolve_options({"async": True}).is_async is True
    assert resolve_options(is_async=True).is_async is True


def test_keyword_overrides_win():
    opts = resolve_options({"encoding": "latin-1"}, encoding="utf-16")
    assert opts.encoding == "utf-16"


def test_unknown_option_fails():
    with pytest.raises(ConfigurationError):
        resolve_options({"colour": "blue"})


def test_bad_module_type_fails():
    with pytest.raises(ConfigurationError):
        resolve_options(module_type="commonjs")


def test_cache_must_be_mapping():
    with pytest.raises(ConfigurationError):
        resolve_options(cache=[])


def test_cache_is_kept_by_identity():
    cache = {}
    opts = resolve_options(cache=cache)
    assert opts.cache is cache
    assert opts.merge({"filename": "x.html"}).cache is cache


def test_partial_syntax_keeps_other_markers():
    opts = resolve_options(syntax={"control": ("{%", "%}")})
    assert opts.syntax.control == ("{%", "%}")
    assert opts.syntax.write_escaped == ("<?=", "?>")


def test_conflicting_syntax_fails():
    with pytest.raises(ConfigurationError):
        resolve_options(syntax={"control": ("<?=", "?>")})


def test_filename_accepts_paths(tmp_path):
    opts = resolve_options(filename=tmp_path / "a.html")
    assert opts.filename == str(tmp_path / "a.html")


def test_merge_returns_new_options():
    opts = CompileOptions()
    merged = opts.merge({"async": True})
    assert merged.is_async is True
    assert opts.is_async is False
    assert opts.merge({}) is opts
