"""Entry filter combining dotfile exclusion with include/exclude patterns."""

from __future__ import annotations

import os
import re
from collections.abc import Callable

from pollwatch.errors import InvalidPatternError
from pollwatch.fs import FileInfo
from pollwatch.types import FilterOptions, Pattern

# ".git", ".env.local" -- but not "." or ".."
_DOTFILE_PATTERN = re.compile(r"^\.[^.]+")

EntryFilter = Callable[[FileInfo, str], bool]


def is_dotfile(name: str) -> bool:
    """Check whether a single path segment names a dotfile."""
    return _DOTFILE_PATTERN.match(name) is not None


def compile_pattern(option: str, pattern: Pattern | None) -> re.Pattern[str] | None:
    """Compile an include/exclude option, passing None and compiled patterns through."""
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(option, pattern, str(e)) from e


def _last_segment(path: str) -> str:
    return os.path.basename(path.rstrip("/" + os.sep))


def make_filter(options: FilterOptions) -> EntryFilter:
    """Build the predicate deciding whether an entry is collected.

    The predicate receives the (terminal) entry and the path it was discovered
    under. With dotfile exclusion on, the entry is rejected when either its
    discovered name or its own name is a dotfile, so a dot-named target stays
    hidden behind a plain-named symlink. Directories skip pattern matching:
    patterns gate which files are collected, not which directories are walked.

    Raises:
        InvalidPatternError: If ``test`` or ``ignore`` does not compile.
    """
    include = compile_pattern("test", options.test)
    exclude = compile_pattern("ignore", options.ignore)
    ignore_dot_files = options.ignore_dot_files

    def accept(info: FileInfo, path: str) -> bool:
        if ignore_dot_files:
            if is_dotfile(info.name or _last_segment(info.path)):
                return False
            if is_dotfile(_last_segment(path)):
                return False
        if info.is_file:
            if include is not None and not include.search(path):
                return False
            if exclude is not None and exclude.search(path):
                return False
        return True

    return accept
