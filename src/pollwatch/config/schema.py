"""Configuration schema dataclasses for pollwatch.

All fields are optional so that partial configs from several levels can be
merged together.

Example config.yaml:
    watch:
      interval: 500
      follow_symlink: false
      ignore_dot_files: true
      test: '\\.(py|md)$'
      ignore: '/build/'
    logging:
      verbose: 3
      file: ~/pollwatch.log
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pollwatch.types import DEFAULT_INTERVAL_MS, WatchOptions


@dataclass
class WatchConfig:
    """Defaults for watch options."""

    interval: float = DEFAULT_INTERVAL_MS  # Milliseconds between cycle starts
    follow_symlink: bool = False
    ignore_dot_files: bool = True
    test: str | None = None  # Include regex
    ignore: str | None = None  # Exclude regex

    def to_options(self) -> WatchOptions:
        """Convert to the WatchOptions the watcher takes."""
        return WatchOptions(
            interval=self.interval,
            follow_symlink=self.follow_symlink,
            ignore_dot_files=self.ignore_dot_files,
            test=self.test,
            ignore=self.ignore,
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, wins over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)  # Unknown top-level keys
