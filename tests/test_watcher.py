"""End-to-end tests for the watch() facade."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import pytest

from pollwatch import watch
from pollwatch.errors import InvalidPatternError
from pollwatch.types import ChangeReport, WatchOptions
from pollwatch.watcher import Watcher, merge_options, normalize_targets
from tests.utils import RecordingFileSystem, bump_mtime, counts, next_report, write_file

FAST = 30  # ms


class TestNormalizeTargets:
    """Tests for target normalization."""

    def test_single_string(self) -> None:
        assert normalize_targets("src") == ["src"]

    def test_single_path(self, tmp_path: Path) -> None:
        assert normalize_targets(tmp_path) == [str(tmp_path)]

    def test_list(self, tmp_path: Path) -> None:
        assert normalize_targets(["a", tmp_path]) == ["a", str(tmp_path)]


class TestMergeOptions:
    """Tests for option defaults and overrides."""

    def test_defaults(self) -> None:
        options = merge_options()
        assert options == WatchOptions()
        assert options.interval == 1000
        assert options.follow_symlink is False
        assert options.ignore_dot_files is True
        assert options.test is None
        assert options.ignore is None

    def test_mapping_over_defaults(self) -> None:
        options = merge_options({"interval": 200, "test": r"\.ts$"})
        assert options.interval == 200
        assert options.test == r"\.ts$"
        assert options.ignore_dot_files is True

    def test_keywords_win(self) -> None:
        options = merge_options(WatchOptions(interval=200), interval=10, follow_symlink=True)
        assert options.interval == 10
        assert options.follow_symlink is True

    def test_none_keeps_value(self) -> None:
        options = merge_options(WatchOptions(interval=200), interval=None)
        assert options.interval == 200

    def test_unknown_option(self) -> None:
        with pytest.raises(TypeError, match="followSymlink"):
            merge_options({"followSymlink": True})

    def test_negative_interval(self) -> None:
        with pytest.raises(ValueError):
            merge_options(interval=-1)


class TestWatch:
    """Tests for watch()."""

    def test_returns_watcher(self, tmp_path: Path) -> None:
        watcher = watch(tmp_path, interval=FAST)
        assert isinstance(watcher, Watcher)
        assert watcher.targets == (str(tmp_path),)
        assert watcher.options.interval == FAST

    def test_invalid_pattern_fails_early(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidPatternError):
            watch(tmp_path, test="(")

    def test_no_scan_machinery_built_up_front(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def no_detector(*args: object, **kwargs: object) -> None:
            raise AssertionError("Detector built by watch()")

        monkeypatch.setattr("pollwatch.watcher.Detector", no_detector)
        watch(tmp_path, test=r"\.py$")
        with pytest.raises(InvalidPatternError):
            watch(tmp_path, ignore="[")

    @pytest.mark.asyncio
    async def test_subscription_lifecycle(self, tmp_path: Path) -> None:
        """A file is reported added, then modified, then deleted."""
        queue: asyncio.Queue[ChangeReport] = asyncio.Queue()
        stop = watch(tmp_path, interval=FAST).start(queue.put_nowait)
        try:
            await asyncio.sleep(0.01)
            f = write_file(tmp_path / "file.txt", "x")
            report = await next_report(queue)
            assert report.added == [str(f)]
            assert counts(report) == (1, 0, 0)

            bump_mtime(f)
            report = await next_report(queue)
            assert report.modified == [str(f)]
            assert counts(report) == (0, 1, 0)

            f.unlink()
            report = await next_report(queue)
            assert report.deleted == [str(f)]
            assert counts(report) == (0, 0, 1)
        finally:
            await stop()
        assert stop.done

    @pytest.mark.asyncio
    async def test_root_removed_and_recreated(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        write_file(root / "one.txt")
        write_file(root / "two.txt")
        queue: asyncio.Queue[ChangeReport] = asyncio.Queue()
        stop = watch(root, interval=FAST).start(queue.put_nowait)
        try:
            await asyncio.sleep(0.01)
            shutil.rmtree(root)
            deleted: list[str] = []
            while len(deleted) < 2:
                report = await next_report(queue)
                assert report.added == []
                deleted.extend(report.deleted)
            assert sorted(deleted) == [str(root / "one.txt"), str(root / "two.txt")]

            root.mkdir()
            await asyncio.sleep(FAST * 3 / 1000)
            assert queue.empty()

            new = write_file(root / "three.txt")
            report = await next_report(queue)
            assert report.added == [str(new)]
        finally:
            await stop()

    @pytest.mark.asyncio
    async def test_async_callback_blocks_next_cycle(self, tmp_path: Path) -> None:
        fs = RecordingFileSystem()
        release = asyncio.Event()
        received: list[ChangeReport] = []

        async def on_change(report: ChangeReport) -> None:
            received.append(report)
            await release.wait()

        stop = watch(tmp_path, interval=FAST, fs=fs).start(on_change)
        try:
            await asyncio.sleep(0.01)
            write_file(tmp_path / "a.txt")
            for _ in range(100):
                if received:
                    break
                await asyncio.sleep(0.01)
            assert len(received) == 1

            scans = sum(1 for op, _ in fs.calls if op == "lstat")
            await asyncio.sleep(FAST * 4 / 1000)
            assert sum(1 for op, _ in fs.calls if op == "lstat") == scans
        finally:
            release.set()
            await stop()

    @pytest.mark.asyncio
    async def test_stop_resolves_after_in_flight_callback(self, tmp_path: Path) -> None:
        entered = asyncio.Event()
        finished: list[bool] = []

        async def slow(report: ChangeReport) -> None:
            entered.set()
            await asyncio.sleep(0.05)
            finished.append(True)

        stop = watch(tmp_path, interval=FAST).start(slow)
        await asyncio.sleep(0.01)
        write_file(tmp_path / "a.txt")
        await asyncio.wait_for(entered.wait(), 3.0)
        await stop()
        assert finished == [True]

    @pytest.mark.asyncio
    async def test_stop_while_idle_is_prompt(self, tmp_path: Path) -> None:
        stop = watch(tmp_path, interval=60_000).start(lambda report: None)
        await asyncio.sleep(0.01)
        await asyncio.wait_for(stop(), 1.0)
        assert stop.done

    @pytest.mark.asyncio
    async def test_callback_error_surfaces_on_stop(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        def explode(report: ChangeReport) -> None:
            raise RuntimeError("boom")

        stop = watch(tmp_path, interval=FAST).start(explode)
        await asyncio.sleep(0.01)
        write_file(tmp_path / "a.txt")
        for _ in range(100):
            if stop.done:
                break
            await asyncio.sleep(0.01)
        with pytest.raises(RuntimeError, match="boom"):
            await stop()
        assert [r.getMessage() for r in caplog.records if r.levelname == "ERROR"] == [
            "Change callback failed: boom"
        ]

    @pytest.mark.asyncio
    async def test_scan_error_surfaces_on_stop(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        fs = RecordingFileSystem()
        stop = watch(tmp_path, interval=FAST, fs=fs).start(lambda report: None)
        await asyncio.sleep(0.01)
        fs.fail_on[str(tmp_path)] = PermissionError(13, "denied")
        for _ in range(100):
            if stop.done:
                break
            await asyncio.sleep(0.01)
        with pytest.raises(PermissionError):
            await stop()
        assert len([r for r in caplog.records if r.levelname == "ERROR"]) == 1

    @pytest.mark.asyncio
    async def test_filters_apply(self, tmp_path: Path) -> None:
        queue: asyncio.Queue[ChangeReport] = asyncio.Queue()
        stop = watch(tmp_path, interval=FAST, test=r"\.(ts|css)$", ignore=r"\.css$").start(
            queue.put_nowait
        )
        try:
            await asyncio.sleep(0.01)
            for name in ("a.ts", "a.js", "a.css", ".b.ts"):
                write_file(tmp_path / name)
            report = await next_report(queue)
            assert report.added == [str(tmp_path / "a.ts")]
        finally:
            await stop()


class TestPullIteration:
    """Tests for consuming a Watcher with async for."""

    @pytest.mark.asyncio
    async def test_yields_first_change(self, tmp_path: Path) -> None:
        async def create_later() -> None:
            await asyncio.sleep(0.05)
            write_file(tmp_path / "later.txt")

        creator = asyncio.create_task(create_later())
        async for report in watch(tmp_path, interval=FAST):
            assert counts(report) == (1, 0, 0)
            break
        await creator

    @pytest.mark.asyncio
    async def test_restartable(self, tmp_path: Path) -> None:
        watcher = watch(tmp_path, interval=FAST)
        for name in ("one.txt", "two.txt"):
            iterator = aiter(watcher)
            pending = asyncio.ensure_future(anext(iterator))
            await asyncio.sleep(0.01)
            path = write_file(tmp_path / name)
            report = await asyncio.wait_for(pending, 3.0)
            assert report.added == [str(path)]
            await iterator.aclose()

    @pytest.mark.asyncio
    async def test_scan_error_fails_iteration(self, tmp_path: Path) -> None:
        fs = RecordingFileSystem()
        fs.fail_on[str(tmp_path)] = PermissionError(13, "denied")
        with pytest.raises(PermissionError):
            async for _ in watch(tmp_path, interval=FAST, fs=fs):
                pass
