"""Snapshot comparison."""

from __future__ import annotations

from collections.abc import Mapping
from typing import NamedTuple


class SnapshotDiff(NamedTuple):
    """Paths classified by comparing two snapshots."""

    added: list[str]
    modified: list[str]
    deleted: list[str]


def diff_snapshots(previous: Mapping[str, float], current: Mapping[str, float]) -> SnapshotDiff:
    """Classify every path of two snapshots.

    A path only in ``current`` is added. A path whose timestamp moved forward
    is modified; an equal or older timestamp counts as unchanged. Paths only in
    ``previous`` are deleted. Neither mapping is mutated.

    Args:
        previous: Snapshot from the last cycle.
        current: Freshly walked mapping.

    Returns:
        SnapshotDiff with added/modified in ``current`` order and deleted in
        ``previous`` order.
    """
    remaining = dict(previous)
    added: list[str] = []
    modified: list[str] = []

    for path, timestamp in current.items():
        before = remaining.pop(path, None)
        if before is None:
            added.append(path)
        elif before < timestamp:
            modified.append(path)

    return SnapshotDiff(added, modified, list(remaining))
