"""Exceptions raised by pollwatch.

Files vanishing between a directory listing and a stat are an expected race
and never surface as errors. Everything here aborts the current detection
cycle and the watch session that ran it.
"""

from __future__ import annotations


class WatchError(Exception):
    """Base class for pollwatch errors."""


class MissingPathError(WatchError):
    """A watch target resolved to no usable path."""

    def __init__(self, target: object) -> None:
        super().__init__(f"path not found for target {target!r}")
        self.target = target


class SymlinkCycleError(WatchError):
    """A chain of symlinks did not reach a terminal entry.

    Raised once resolution exceeds the hop limit, which covers both genuine
    cycles (a -> b -> a) and absurdly long chains.
    """

    def __init__(self, path: str, hops: int) -> None:
        super().__init__(f"symlink cycle detected at {path} after {hops} hops")
        self.path = path
        self.hops = hops


class InvalidPatternError(WatchError, ValueError):
    """An include or exclude pattern is not a valid regular expression."""

    def __init__(self, option: str, pattern: str, reason: str) -> None:
        super().__init__(f"invalid {option} pattern {pattern!r}: {reason}")
        self.option = option
        self.pattern = pattern
