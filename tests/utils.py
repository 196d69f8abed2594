"""Shared test utilities for pollwatch tests."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from pollwatch.fs import FileInfo, LocalFileSystem
from pollwatch.types import ChangeReport


def write_file(path: Path, content: str = "") -> Path:
    """Create (or overwrite) a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def bump_mtime(path: Path, seconds: float = 10.0) -> None:
    """Move a file's modification time forward without relying on clock resolution."""
    st = os.stat(path)
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + int(seconds * 1_000_000_000)))


def counts(report: ChangeReport) -> tuple[int, int, int]:
    """(added, modified, deleted) counts of a report."""
    return len(report.added), len(report.modified), len(report.deleted)


async def next_report(queue: asyncio.Queue[ChangeReport], timeout: float = 3.0) -> ChangeReport:
    """Wait for the next report pushed by a watcher callback."""
    return await asyncio.wait_for(queue.get(), timeout)


class RecordingFileSystem(LocalFileSystem):
    """Local filesystem that records every call and can fail on demand."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail_on: dict[str, OSError] = {}

    def _check(self, op: str, path: str) -> None:
        self.calls.append((op, path))
        error = self.fail_on.get(path)
        if error is not None:
            raise error

    def lstat(self, path: str) -> FileInfo:
        self._check("lstat", path)
        return super().lstat(path)

    def readlink(self, path: str) -> str:
        self._check("readlink", path)
        return super().readlink(path)

    def list_dir(self, path: str) -> list[FileInfo]:
        self._check("list_dir", path)
        return super().list_dir(path)
