"""Recursive tree walker producing a path -> timestamp mapping.

The traversal is written once, as a generator that yields filesystem requests
and receives their results. Two drivers execute it:

- ``TreeWalker.walk()`` answers requests with a blocking FileSystem and visits
  children one after another.
- ``TreeWalker.awalk()`` answers them with an AsyncFileSystem and visits
  sibling subtrees concurrently.

All writes to the result mapping happen on the calling thread (the event loop
thread for ``awalk``), so concurrent subtrees need no locking.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Coroutine, Generator, Iterable
from dataclasses import dataclass
from typing import Any

from pollwatch.errors import MissingPathError, SymlinkCycleError
from pollwatch.filtering import make_filter
from pollwatch.fs import AsyncFileSystem, AsyncLocalFileSystem, FileInfo, FileSystem, LocalFileSystem
from pollwatch.logging import TRACE, get_logger
from pollwatch.types import FilterOptions

log = get_logger("walker")

# Same bound the Linux kernel uses before failing with ELOOP
MAX_SYMLINK_HOPS = 40


@dataclass(frozen=True, slots=True)
class PathItem:
    """A target given by path; its link-status is looked up when visited."""

    path: str


@dataclass(frozen=True, slots=True)
class EntryItem:
    """An entry already stat'ed by a directory listing."""

    entry: FileInfo


TraversalItem = PathItem | EntryItem


@dataclass(frozen=True, slots=True)
class _Call:
    """Ask the driver to run one filesystem operation (lstat, readlink, list_dir)."""

    op: str
    path: str


@dataclass(frozen=True, slots=True)
class _Descend:
    """Ask the driver to visit these children before resuming.

    ``ancestors`` holds the (dev, ino) of every directory on the way down,
    including the one just listed.
    """

    items: tuple[TraversalItem, ...]
    ancestors: frozenset[tuple[int, int]]


_Request = _Call | _Descend
_Visit = Generator[_Request, Any, None]


async def _run_all(coros: Iterable[Coroutine[Any, Any, None]]) -> None:
    """Run sibling subtrees concurrently; the first failure cancels the rest.

    The failure is re-raised as itself rather than wrapped in an exception group.
    """
    try:
        async with asyncio.TaskGroup() as group:
            for coro in coros:
                group.create_task(coro)
    except BaseExceptionGroup as errors:
        error = errors.exceptions[0]
        while isinstance(error, BaseExceptionGroup):
            error = error.exceptions[0]
        raise error from None


def _link_target(link_path: str, target: str) -> str:
    """Resolve a readlink result relative to the directory holding the link."""
    if not os.path.isabs(target):
        target = os.path.join(os.path.dirname(link_path), target)
    return os.path.normpath(target)


class _Traversal:
    """State of one walk: the options in effect and the result mapping."""

    def __init__(self, options: FilterOptions) -> None:
        self.follow_symlink = options.follow_symlink
        self.accept = make_filter(options)
        self.found: dict[str, float] = {}

    def visit(
        self,
        item: TraversalItem,
        ancestors: frozenset[tuple[int, int]] = frozenset(),
    ) -> _Visit:
        link_path: str | None = None
        if isinstance(item, PathItem) and not item.path:
            raise MissingPathError(item.path)
        try:
            if isinstance(item, PathItem):
                path = item.path
                info = yield _Call("lstat", path)
                if info.is_symlink and self.follow_symlink:
                    info = yield from self._resolve(path, info)
            elif item.entry.is_symlink and self.follow_symlink:
                link_path = item.entry.path
                info = yield from self._resolve(link_path, item.entry)
                path = info.path
            else:
                info = item.entry
                path = info.path
        except FileNotFoundError:
            # Removed since it was listed, or a dangling link
            return

        if not self.accept(info, link_path or path):
            return

        if info.is_dir:
            key = (info.dev, info.ino)
            # A link back to a directory above us; listing it again would never end
            if info.ino and key in ancestors:
                log.log(TRACE, "Skipping directory loop at %s", path)
                return
            try:
                entries = yield _Call("list_dir", path)
            except FileNotFoundError:
                return
            yield _Descend(tuple(EntryItem(entry) for entry in entries), ancestors | {key})
        elif info.is_file:
            # The same file may be reachable through several links
            if path not in self.found:
                self.found[path] = info.timestamp

    def _resolve(self, path: str, info: FileInfo) -> Generator[_Request, Any, FileInfo]:
        """Follow a symlink chain to its terminal entry."""
        current = path
        hops = 0
        while info.is_symlink:
            if hops >= MAX_SYMLINK_HOPS:
                raise SymlinkCycleError(path, hops)
            target = yield _Call("readlink", current)
            current = _link_target(current, target)
            info = yield _Call("lstat", current)
            hops += 1
        return info


class TreeWalker:
    """Collects regular files under a set of targets.

    Example:
        walker = TreeWalker(FilterOptions(test=r"\\.py$"))
        files = walker.walk([PathItem("/project/src")])
        files = await walker.awalk([PathItem("/project/src")])
    """

    def __init__(
        self,
        options: FilterOptions | None = None,
        fs: FileSystem | None = None,
        afs: AsyncFileSystem | None = None,
    ) -> None:
        """Initialize the walker.

        Args:
            options: Filtering and symlink options (defaults apply if omitted).
            fs: Blocking filesystem for walk() (local filesystem by default).
            afs: Awaitable filesystem for awalk(). Defaults to ``fs`` run in
                worker threads.
        """
        self._options = options if options is not None else FilterOptions()
        self._fs = fs if fs is not None else LocalFileSystem()
        self._afs = afs if afs is not None else AsyncLocalFileSystem(self._fs)
        # Fail on bad patterns now rather than on the first scan
        make_filter(self._options)

    @property
    def options(self) -> FilterOptions:
        return self._options

    def walk(self, targets: Iterable[TraversalItem]) -> dict[str, float]:
        """Walk the targets with blocking calls, children visited in order."""
        traversal = _Traversal(self._options)
        for item in targets:
            self._drive(traversal, traversal.visit(item))
        log.log(TRACE, "Walked %d files", len(traversal.found))
        return traversal.found

    async def awalk(self, targets: Iterable[TraversalItem]) -> dict[str, float]:
        """Walk the targets with awaited calls, sibling subtrees concurrently."""
        traversal = _Traversal(self._options)
        await _run_all(self._adrive(traversal, traversal.visit(item)) for item in targets)
        log.log(TRACE, "Walked %d files", len(traversal.found))
        return traversal.found

    def _drive(self, traversal: _Traversal, visit: _Visit) -> None:
        reply: Any = None
        error: OSError | None = None
        while True:
            try:
                request = visit.throw(error) if error is not None else visit.send(reply)
            except StopIteration:
                return
            reply, error = None, None
            if isinstance(request, _Descend):
                for child in request.items:
                    self._drive(traversal, traversal.visit(child, request.ancestors))
                continue
            try:
                reply = getattr(self._fs, request.op)(request.path)
            except OSError as e:
                error = e

    async def _adrive(self, traversal: _Traversal, visit: _Visit) -> None:
        reply: Any = None
        error: OSError | None = None
        while True:
            try:
                request = visit.throw(error) if error is not None else visit.send(reply)
            except StopIteration:
                return
            reply, error = None, None
            if isinstance(request, _Descend):
                await _run_all(
                    self._adrive(traversal, traversal.visit(child, request.ancestors))
                    for child in request.items
                )
                continue
            try:
                reply = await getattr(self._afs, request.op)(request.path)
            except OSError as e:
                error = e
