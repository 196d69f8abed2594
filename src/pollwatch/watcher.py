"""Public entry point: watch files/directories and detect changes."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import inspect
import os
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from typing import Any

from pollwatch.detector import Detector
from pollwatch.filtering import make_filter
from pollwatch.fs import AsyncFileSystem, FileSystem
from pollwatch.logging import get_logger
from pollwatch.scheduler import CancellationToken, PollingScheduler
from pollwatch.types import ChangeReport, WatchOptions

log = get_logger("watcher")

ChangeCallback = Callable[[ChangeReport], Awaitable[None] | None]
Targets = str | os.PathLike[str] | Iterable[str | os.PathLike[str]]

_OPTION_NAMES = frozenset(f.name for f in dataclasses.fields(WatchOptions))


def normalize_targets(targets: Targets) -> list[str]:
    """Turn a single path or an iterable of paths into a list of path strings."""
    if isinstance(targets, (str, os.PathLike)):
        return [os.fspath(targets)]
    return [os.fspath(t) for t in targets]


def merge_options(
    options: WatchOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> WatchOptions:
    """Merge user options over the defaults.

    Keyword overrides win over ``options``. None values leave the default in
    place.

    Raises:
        TypeError: If an option name is unknown.
    """
    if isinstance(options, WatchOptions):
        base = options
        values: dict[str, Any] = {}
    else:
        base = WatchOptions()
        values = dict(options or {})
    values.update(overrides)

    unknown = set(values) - _OPTION_NAMES
    if unknown:
        raise TypeError(f"unknown watch option(s): {', '.join(sorted(unknown))}")
    return dataclasses.replace(base, **{k: v for k, v in values.items() if v is not None})


class Subscription:
    """Handle to a running watch loop started with Watcher.start().

    Awaiting the handle (or stop()) cancels the loop and resolves once any
    in-flight cycle and callback have finished. If the loop failed, its
    exception is raised from there.
    """

    def __init__(self, task: asyncio.Task[None], token: CancellationToken) -> None:
        self._task = task
        self._token = token

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def task(self) -> asyncio.Task[None]:
        return self._task

    async def stop(self) -> None:
        self._token.cancel()
        await self._task

    def __call__(self) -> Awaitable[None]:
        return self.stop()


class Watcher:
    """Watches a set of targets.

    Use it either as an async iterable of ChangeReport, or with start() and a
    callback. Every iteration (and every start()) runs its own detector, so a
    Watcher can be consumed repeatedly.

    Example:
        # Pull reports
        async for changes in watch("src"):
            print(changes.added, changes.modified, changes.deleted)

        # Push reports; stop from outside the loop
        stop = watch("src").start(lambda changes: print(changes.all))
        ...
        await stop()
    """

    def __init__(
        self,
        targets: Targets,
        options: WatchOptions | None = None,
        fs: FileSystem | None = None,
        afs: AsyncFileSystem | None = None,
    ) -> None:
        self._targets = tuple(normalize_targets(targets))
        self._options = options if options is not None else WatchOptions()
        self._fs = fs
        self._afs = afs

    @property
    def targets(self) -> tuple[str, ...]:
        return self._targets

    @property
    def options(self) -> WatchOptions:
        return self._options

    def _scheduler(self, token: CancellationToken | None = None) -> PollingScheduler:
        detector = Detector(self._targets, self._options, fs=self._fs, afs=self._afs)
        return PollingScheduler(detector, self._options.interval, token)

    def __aiter__(self) -> AsyncIterator[ChangeReport]:
        return self._scheduler().run()

    def start(self, callback: ChangeCallback) -> Subscription:
        """Run the watch loop in a task, invoking ``callback`` per report.

        The callback may be a plain function or a coroutine function. The next
        cycle does not start before it returns.

        Must be called from within a running event loop.
        """
        token = CancellationToken()
        scheduler = self._scheduler(token)

        async def loop() -> None:
            async with contextlib.aclosing(scheduler.run()) as reports:
                async for changes in reports:
                    try:
                        result = callback(changes)
                        if inspect.isawaitable(result):
                            await result
                    except Exception as e:
                        log.error("Change callback failed: %s", e)
                        raise

        task = asyncio.create_task(loop(), name=f"pollwatch:{','.join(self._targets)}")
        return Subscription(task, token)


def watch(
    targets: Targets,
    options: WatchOptions | Mapping[str, Any] | None = None,
    *,
    fs: FileSystem | None = None,
    afs: AsyncFileSystem | None = None,
    **overrides: Any,
) -> Watcher:
    """Watch files/directories and detect changes.

    Args:
        targets: A path or a list of paths (files or directories).
        options: WatchOptions or a mapping of option names to values.
        fs: Blocking filesystem used for the initial scan.
        afs: Awaitable filesystem used for subsequent scans.
        **overrides: Individual options: interval (ms, default 1000),
            follow_symlink (False), ignore_dot_files (True), test (include
            regex, match all), ignore (exclude regex, match none).

    Returns:
        A Watcher, usable with ``async for`` or ``start(callback)``.

    Raises:
        TypeError: On unknown option names.
        InvalidPatternError: If ``test`` or ``ignore`` is not a valid regex.
    """
    merged = merge_options(options, **overrides)
    # Bad patterns fail here rather than in the loop
    make_filter(merged)
    return Watcher(targets, merged, fs=fs, afs=afs)
