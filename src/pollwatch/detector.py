"""One-step change detection over a fixed set of targets."""

from __future__ import annotations

import os
import time
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from pollwatch.differ import diff_snapshots
from pollwatch.fs import AsyncFileSystem, FileSystem
from pollwatch.logging import get_logger
from pollwatch.types import ChangeReport, FilterOptions, ScanStats
from pollwatch.walker import PathItem, TreeWalker

log = get_logger("detector")


def _now_ms() -> float:
    return time.time() * 1000.0


class Detector:
    """Detects changes for one step at a time.

    The detector owns its snapshot: every cycle replaces it with a fresh
    read-only mapping instead of editing the previous one.

    Example:
        detector = Detector(["src"], FilterOptions(test=r"\\.py$"))
        detector.init()
        report = await detector.detect_changes()
        print(report.added, report.modified, report.deleted)
    """

    def __init__(
        self,
        targets: Iterable[str | os.PathLike[str]],
        options: FilterOptions | None = None,
        fs: FileSystem | None = None,
        afs: AsyncFileSystem | None = None,
    ) -> None:
        # Empty targets stay empty so the walker can report them as missing
        self._targets = tuple(os.path.abspath(t) if os.fspath(t) else "" for t in targets)
        self._walker = TreeWalker(options, fs=fs, afs=afs)
        self._files: Mapping[str, float] = MappingProxyType({})

    @property
    def targets(self) -> tuple[str, ...]:
        return self._targets

    @property
    def options(self) -> FilterOptions:
        return self._walker.options

    @property
    def files(self) -> Mapping[str, float]:
        """The current snapshot: tracked path -> modification time (ms)."""
        return self._files

    def _items(self) -> list[PathItem]:
        return [PathItem(target) for target in self._targets]

    def init(self) -> ScanStats:
        """Collect the initial files.

        Call this first; otherwise every file existing at start is reported as
        added by the first detect_changes().
        """
        stats = ScanStats(start_time=_now_ms())
        self._files = MappingProxyType(self._walker.walk(self._items()))
        stats.file_count = len(self._files)
        stats.end_time = _now_ms()
        log.debug("Initial scan found %d files in %.1fms", stats.file_count, stats.elapsed)
        return stats

    async def detect_changes(self) -> ChangeReport:
        """Traverse all targets and classify what changed since the last scan."""
        report = ChangeReport(start_time=_now_ms())
        current = await self._walker.awalk(self._items())
        report.added, report.modified, report.deleted = diff_snapshots(self._files, current)
        self._files = MappingProxyType(current)
        report.file_count = len(current)
        report.end_time = _now_ms()
        return report
