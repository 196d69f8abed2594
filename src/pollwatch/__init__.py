"""pollwatch: polling-based detection of added, modified and deleted files."""

__version__ = "0.1.0"

from pollwatch.config import Config, load_config
from pollwatch.detector import Detector
from pollwatch.differ import SnapshotDiff, diff_snapshots
from pollwatch.errors import (
    InvalidPatternError,
    MissingPathError,
    SymlinkCycleError,
    WatchError,
)
from pollwatch.filtering import make_filter
from pollwatch.fs import (
    AsyncFileSystem,
    AsyncLocalFileSystem,
    FileInfo,
    FileSystem,
    LocalFileSystem,
)
from pollwatch.logging import get_logger, setup_logging
from pollwatch.scheduler import CancellationToken, PollingScheduler, SchedulerState
from pollwatch.types import ChangeReport, FilterOptions, ScanStats, WatchOptions
from pollwatch.walker import MAX_SYMLINK_HOPS, EntryItem, PathItem, TreeWalker
from pollwatch.watcher import Subscription, Watcher, watch

__all__ = [
    # Main entry points
    "watch",
    "Watcher",
    "Subscription",
    # Engine
    "Detector",
    "TreeWalker",
    "PathItem",
    "EntryItem",
    "MAX_SYMLINK_HOPS",
    "diff_snapshots",
    "SnapshotDiff",
    "make_filter",
    "PollingScheduler",
    "CancellationToken",
    "SchedulerState",
    # Data types
    "ChangeReport",
    "ScanStats",
    "FilterOptions",
    "WatchOptions",
    # Filesystem access
    "FileInfo",
    "FileSystem",
    "AsyncFileSystem",
    "LocalFileSystem",
    "AsyncLocalFileSystem",
    # Errors
    "WatchError",
    "MissingPathError",
    "SymlinkCycleError",
    "InvalidPatternError",
    # Config / logging
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
]
