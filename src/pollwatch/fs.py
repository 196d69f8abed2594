"""Filesystem access used by the tree walker.

The walker never touches the os module directly. It talks to a FileSystem
(blocking) or an AsyncFileSystem (awaitable), so hosts and tests can swap in
their own implementation. Both report a missing entry by raising
FileNotFoundError.
"""

from __future__ import annotations

import asyncio
import os
import stat
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Link-status of one filesystem entry (symlinks are not followed).

    Times are milliseconds since the epoch.
    """

    path: str
    name: str
    is_file: bool = False
    is_dir: bool = False
    is_symlink: bool = False
    modified: float | None = None
    created: float | None = None
    dev: int = 0
    ino: int = 0

    @property
    def timestamp(self) -> float:
        """Modification time, or creation time when the former is unknown."""
        if self.modified is not None:
            return self.modified
        return self.created if self.created is not None else 0.0

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result, name: str | None = None) -> FileInfo:
        """Build a FileInfo from an lstat result."""
        mode = st.st_mode
        birth = getattr(st, "st_birthtime", None)
        created = birth * 1000.0 if birth is not None else st.st_ctime_ns / 1_000_000
        return cls(
            path=path,
            name=name if name is not None else os.path.basename(path.rstrip(os.sep)),
            is_file=stat.S_ISREG(mode),
            is_dir=stat.S_ISDIR(mode),
            is_symlink=stat.S_ISLNK(mode),
            modified=st.st_mtime_ns / 1_000_000,
            created=created,
            dev=st.st_dev,
            ino=st.st_ino,
        )


@runtime_checkable
class FileSystem(Protocol):
    """Blocking filesystem operations."""

    def lstat(self, path: str) -> FileInfo: ...

    def readlink(self, path: str) -> str: ...

    def list_dir(self, path: str) -> list[FileInfo]: ...


@runtime_checkable
class AsyncFileSystem(Protocol):
    """Awaitable filesystem operations."""

    async def lstat(self, path: str) -> FileInfo: ...

    async def readlink(self, path: str) -> str: ...

    async def list_dir(self, path: str) -> list[FileInfo]: ...


class LocalFileSystem:
    """FileSystem backed by the os module."""

    def lstat(self, path: str) -> FileInfo:
        return FileInfo.from_stat(path, os.lstat(path))

    def readlink(self, path: str) -> str:
        return os.readlink(path)

    def list_dir(self, path: str) -> list[FileInfo]:
        """List a directory, lstat'ing every entry.

        Entries removed between the listing and their stat are dropped.
        Results are sorted by name so discovery order is stable.
        """
        entries: list[FileInfo] = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    st = entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    continue
                entries.append(FileInfo.from_stat(entry.path, st, name=entry.name))
        entries.sort(key=lambda info: info.name)
        return entries


class AsyncLocalFileSystem:
    """AsyncFileSystem that runs a blocking FileSystem in worker threads.

    A whole directory listing (including the per-entry stats) is one thread
    hop, which keeps large trees cheap to scan.
    """

    def __init__(self, sync: FileSystem | None = None) -> None:
        self._sync = sync if sync is not None else LocalFileSystem()

    @property
    def sync(self) -> FileSystem:
        """The blocking FileSystem this wraps."""
        return self._sync

    async def lstat(self, path: str) -> FileInfo:
        return await asyncio.to_thread(self._sync.lstat, path)

    async def readlink(self, path: str) -> str:
        return await asyncio.to_thread(self._sync.readlink, path)

    async def list_dir(self, path: str) -> list[FileInfo]:
        return await asyncio.to_thread(self._sync.list_dir, path)
