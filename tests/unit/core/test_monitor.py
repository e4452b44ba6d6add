"""Unit tests for the space monitor."""

from unittest.mock import MagicMock

import pytest
from nexusctl.api.base import FreeSpaceProbe
from nexusctl.core.monitor import MonitorError, SpaceMonitor
from nexusctl.models.blobstore import MIB, SpaceStats
from nexusctl.models.config import VolumeConfig


class StaticProbe(FreeSpaceProbe):
    """Probe answering from a fixed or scripted table of free MiB."""

    def __init__(self, kind: str, free_mib: dict[str, list[int]]) -> None:
        self._kind = kind
        self._free = free_mib
        self.refreshes = 0

    @property
    def kind(self) -> str:
        return self._kind

    def refresh(self) -> None:
        self.refreshes += 1

    def fetch_free_space(self, target: str) -> SpaceStats:
        values = self._free[target]
        value = values.pop(0) if len(values) > 1 else values[0]
        return SpaceStats(free_bytes=value * MIB, total_bytes=100_000 * MIB)


class TestSpaceMonitorCheck:
    """Tests for SpaceMonitor.check."""

    def test_no_shortage(self) -> None:
        """Free space above every minimum reports no shortage."""
        fs = StaticProbe("mountpoint", {"/srv": [5000]})
        monitor = SpaceMonitor([VolumeConfig(mountpoint="/srv", min_free_size=1024)], fs)

        report = monitor.check()

        assert report.shortage is False
        assert report.required_free_mib == 0
        assert report.statuses[0].free_mib == 5000

    def test_at_minimum_is_shortage(self) -> None:
        """Free MiB equal to the minimum counts as shortage with zero deficit."""
        fs = StaticProbe("mountpoint", {"/srv": [1024]})
        monitor = SpaceMonitor([VolumeConfig(mountpoint="/srv", min_free_size=1024)], fs)

        report = monitor.check()

        assert report.shortage is True
        assert report.required_free_mib == 0

    def test_max_deficit_across_volumes(self) -> None:
        """The largest deficit wins, regardless of volume order."""
        fs = StaticProbe("mountpoint", {"/a": [900], "/b": [100]})
        blobs = StaticProbe("blobstore", {"default": [1500]})
        monitor = SpaceMonitor(
            [
                VolumeConfig(mountpoint="/a", min_free_size=1000),
                VolumeConfig(blobstore="default", min_free_size=2000),
                VolumeConfig(mountpoint="/b", min_free_size=300),
            ],
            fs,
            blobs,
        )

        report = monitor.check()

        assert report.shortage is True
        assert report.required_free_mib == 500
        assert [s.deficit_mib for s in report.statuses] == [100, 500, 200]
        assert blobs.refreshes == 1

    def test_mountpoint_wins_over_blobstore(self) -> None:
        """A volume with both targets is answered by the filesystem probe."""
        fs = StaticProbe("mountpoint", {"/srv": [5000]})
        blobs = StaticProbe("blobstore", {"default": [0]})
        volume = VolumeConfig(mountpoint="/srv", blobstore="default", min_free_size=1024)

        report = SpaceMonitor([volume], fs, blobs).check()

        assert report.shortage is False
        assert report.statuses[0].kind == "mountpoint"

    def test_blobstore_volume_without_probe(self) -> None:
        """A blob store volume needs a blob store probe."""
        fs = StaticProbe("mountpoint", {})
        monitor = SpaceMonitor([VolumeConfig(blobstore="default", min_free_size=1)], fs)

        with pytest.raises(MonitorError):
            monitor.check()


class TestSpaceMonitorRun:
    """Tests for SpaceMonitor.run."""

    def test_single_shot_returns_without_sleeping(self) -> None:
        """Single-shot mode reports no shortage after one check."""
        sleep = MagicMock()
        fs = StaticProbe("mountpoint", {"/srv": [5000]})
        monitor = SpaceMonitor(
            [VolumeConfig(mountpoint="/srv", min_free_size=1024)], fs, sleep=sleep
        )

        report = monitor.run(single_shot=True)

        assert report.shortage is False
        assert report.checks == 1
        sleep.assert_not_called()

    def test_loops_until_shortage(self) -> None:
        """The monitor sleeps between checks until a shortage shows up."""
        sleep = MagicMock()
        fs = StaticProbe("mountpoint", {"/srv": [5000, 4000, 1000]})
        monitor = SpaceMonitor(
            [VolumeConfig(mountpoint="/srv", min_free_size=1024)],
            fs,
            delay_seconds=30,
            sleep=sleep,
        )

        report = monitor.run()

        assert report.shortage is True
        assert report.required_free_mib == 24
        assert report.checks == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(30)

    def test_wait_sleeps_for_delay(self) -> None:
        """wait() sleeps once for the configured delay."""
        sleep = MagicMock()
        fs = StaticProbe("mountpoint", {"/srv": [10]})
        monitor = SpaceMonitor(
            [VolumeConfig(mountpoint="/srv", min_free_size=20)], fs, delay_seconds=45, sleep=sleep
        )

        monitor.wait()

        sleep.assert_called_once_with(45)

    def test_shortage_in_single_shot(self) -> None:
        """Single-shot mode still reports a shortage."""
        fs = StaticProbe("mountpoint", {"/srv": [10]})
        monitor = SpaceMonitor([VolumeConfig(mountpoint="/srv", min_free_size=20)], fs)

        report = monitor.run(single_shot=True)

        assert report.shortage is True
        assert report.required_free_mib == 10
