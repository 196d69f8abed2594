"""Tests for the entry filter."""

from __future__ import annotations

import re

import pytest

from pollwatch.errors import InvalidPatternError
from pollwatch.filtering import is_dotfile, make_filter
from pollwatch.fs import FileInfo
from pollwatch.types import FilterOptions


def _file(path: str) -> FileInfo:
    return FileInfo(path=path, name=path.rsplit("/", 1)[-1], is_file=True, modified=1.0)


def _dir(path: str) -> FileInfo:
    return FileInfo(path=path, name=path.rsplit("/", 1)[-1], is_dir=True, modified=1.0)


class TestIsDotfile:
    """Tests for the dotfile name check."""

    @pytest.mark.parametrize("name", [".git", ".gitignore", ".env.local", ".a"])
    def test_dot_names(self, name: str) -> None:
        assert is_dotfile(name)

    @pytest.mark.parametrize("name", [".", "..", "file.txt", "a.b", ""])
    def test_plain_names(self, name: str) -> None:
        assert not is_dotfile(name)


class TestDotfileExclusion:
    """Tests for dotfile handling in make_filter."""

    def test_rejects_dotfile_by_default(self) -> None:
        accept = make_filter(FilterOptions())
        assert not accept(_file("/w/.env"), "/w/.env")

    def test_rejects_dot_directory(self) -> None:
        accept = make_filter(FilterOptions())
        assert not accept(_dir("/w/.git"), "/w/.git")

    def test_accepts_dotfile_when_disabled(self) -> None:
        accept = make_filter(FilterOptions(ignore_dot_files=False))
        assert accept(_file("/w/.env"), "/w/.env")

    def test_rejects_dot_target_behind_plain_link(self) -> None:
        """A plain-named link to a dotfile is still a dotfile."""
        accept = make_filter(FilterOptions())
        assert not accept(_file("/elsewhere/.secret"), "/w/link")

    def test_rejects_dot_named_link_to_plain_file(self) -> None:
        accept = make_filter(FilterOptions())
        assert not accept(_file("/elsewhere/plain.txt"), "/w/.link")

    def test_falls_back_to_path_segment_without_name(self) -> None:
        accept = make_filter(FilterOptions())
        info = FileInfo(path="/w/.hidden", name="", is_file=True)
        assert not accept(info, "/w/.hidden")


class TestPatterns:
    """Tests for include/exclude patterns."""

    def test_defaults_accept_everything(self) -> None:
        accept = make_filter(FilterOptions())
        assert accept(_file("/w/a.ts"), "/w/a.ts")
        assert accept(_file("/w/a.js"), "/w/a.js")

    def test_include_pattern(self) -> None:
        accept = make_filter(FilterOptions(test=r"\.ts$"))
        assert accept(_file("/w/a.ts"), "/w/a.ts")
        assert not accept(_file("/w/a.js"), "/w/a.js")

    def test_exclude_pattern(self) -> None:
        accept = make_filter(FilterOptions(ignore=r"\.ts$"))
        assert not accept(_file("/w/a.ts"), "/w/a.ts")
        assert accept(_file("/w/a.css"), "/w/a.css")

    def test_include_and_exclude_combined(self) -> None:
        accept = make_filter(FilterOptions(test=r"\.(ts|css)$", ignore=r"\.css$"))
        assert accept(_file("/w/a.ts"), "/w/a.ts")
        assert not accept(_file("/w/a.css"), "/w/a.css")
        assert not accept(_file("/w/a.js"), "/w/a.js")

    def test_directories_bypass_patterns(self) -> None:
        accept = make_filter(FilterOptions(test=r"\.ts$", ignore="src"))
        assert accept(_dir("/w/src"), "/w/src")

    def test_compiled_patterns_accepted(self) -> None:
        accept = make_filter(FilterOptions(test=re.compile(r"\.PY$", re.IGNORECASE)))
        assert accept(_file("/w/main.py"), "/w/main.py")

    def test_patterns_match_discovered_path(self) -> None:
        """Patterns see the path the entry was found under, not the link target."""
        accept = make_filter(FilterOptions(test=r"\.ts$"))
        assert accept(_file("/elsewhere/target.bin"), "/w/link.ts")

    def test_invalid_pattern_raises(self) -> None:
        with pytest.raises(InvalidPatternError, match="invalid ignore pattern"):
            make_filter(FilterOptions(ignore="("))

    def test_invalid_pattern_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            make_filter(FilterOptions(test="[a-"))
