"""Value types shared across the detection engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

Pattern = str | re.Pattern[str]

DEFAULT_INTERVAL_MS = 1000


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """What a detector collects.

    Attributes:
        follow_symlink: Resolve symlinked files/directories and watch their targets.
        ignore_dot_files: Skip entries like .gitignore or .vscode (and their subtrees).
        test: Include pattern searched in file paths, e.g. r"\\.(ts|css)$".
            None matches every file.
        ignore: Exclude pattern searched in file paths. None excludes nothing.
    """

    follow_symlink: bool = False
    ignore_dot_files: bool = True
    test: Pattern | None = None
    ignore: Pattern | None = None


@dataclass(frozen=True, slots=True)
class WatchOptions(FilterOptions):
    """Detector options plus the polling cadence.

    ``interval`` is the minimum time in milliseconds between the starts of two
    detection cycles. The next cycle is delayed while the consumer is still
    handling the previous report:

        |<------------------ interval ----------------->|<---------------
        |<-- checking -->|                              |<-- checking -->
                         |<--- user program --->|

        |<---------- interval --------->|       |<-----------------------
        |<-- checking -->|                      |<-- checking -->
                         |<--- user program --->|
    """

    interval: float = DEFAULT_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")


@dataclass(slots=True)
class ScanStats:
    """Timing and size of one scan. Times are ms since the epoch."""

    start_time: float
    end_time: float = 0.0
    file_count: int = 0

    @property
    def elapsed(self) -> float:
        """Milliseconds the scan took."""
        return self.end_time - self.start_time


@dataclass(slots=True)
class ChangeReport(ScanStats):
    """The result of one detection cycle.

    Paths are listed in discovery order. A path appears in at most one list.
    A report is truthy when it holds at least one change.
    """

    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.added) + len(self.modified) + len(self.deleted)

    @property
    def all(self) -> list[str]:
        """Every changed path: added, then modified, then deleted."""
        return [*self.added, *self.modified, *self.deleted]
