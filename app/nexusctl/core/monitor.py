"""Free-space monitoring of local mounts and remote blob stores.

The monitor alternates between checking every configured volume and
waiting. It returns as soon as one volume has less free space than its
configured minimum, reporting the largest deficit so the caller can
reclaim that much.
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from nexusctl.api.base import FreeSpaceProbe
from nexusctl.models.blobstore import SpaceStats
from nexusctl.models.config import VolumeConfig

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 60


class MonitorError(Exception):
    """Raised when the space monitor cannot evaluate a volume."""


@dataclass(frozen=True, slots=True)
class VolumeStatus:
    """Result of checking one volume.

    Attributes:
        volume: The checked volume config.
        kind: Probe kind that answered ('mountpoint' or 'blobstore').
        target: Mount point path or blob store name.
        stats: Free and total space reported by the probe.
    """

    volume: VolumeConfig
    kind: str
    target: str
    stats: SpaceStats

    @property
    def free_mib(self) -> int:
        return self.stats.free_mib

    @property
    def shortage(self) -> bool:
        """A volume is short when free MiB is at or below the minimum."""
        return self.free_mib <= self.volume.min_free_size

    @property
    def deficit_mib(self) -> int:
        """MiB missing to reach the minimum (0 without shortage)."""
        if not self.shortage:
            return 0
        return self.volume.min_free_size - self.free_mib


@dataclass(slots=True)
class MonitorReport:
    """Outcome of one or more monitor checks.

    Attributes:
        shortage: Whether any volume was at or below its minimum.
        required_free_mib: Largest deficit across short volumes, in MiB.
        statuses: Volume statuses of the last check.
        checks: Number of checks performed.
    """

    shortage: bool = False
    required_free_mib: int = 0
    statuses: list[VolumeStatus] = field(default_factory=list)
    checks: int = 0


class SpaceMonitor:
    """Poll configured volumes until a free-space shortage shows up.

    Each volume is answered by exactly one probe: the filesystem probe when
    the volume has a mountpoint, the blob store probe otherwise.

    Example:
        >>> monitor = SpaceMonitor(config.volumes, FilesystemProbe(), BlobStoreProbe(client))
        >>> report = monitor.run(single_shot=True)
        >>> report.shortage
        False
    """

    def __init__(
        self,
        volumes: Sequence[VolumeConfig],
        filesystem_probe: FreeSpaceProbe,
        blobstore_probe: FreeSpaceProbe | None = None,
        delay_seconds: int = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.volumes = list(volumes)
        self.filesystem_probe = filesystem_probe
        self.blobstore_probe = blobstore_probe
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def _probe_for(self, volume: VolumeConfig) -> tuple[FreeSpaceProbe, str]:
        if volume.mountpoint:
            return self.filesystem_probe, volume.mountpoint
        if self.blobstore_probe is None:
            msg = f"No blob store probe available for volume '{volume.blobstore}'"
            raise MonitorError(msg)
        return self.blobstore_probe, volume.blobstore or ""

    def check(self) -> MonitorReport:
        """Check every volume once.

        Returns:
            MonitorReport with the max deficit across short volumes.

        Raises:
            MonitorError: If a blob store volume cannot be answered.
        """
        logger.info("Checking free space")
        self.filesystem_probe.refresh()
        if self.blobstore_probe is not None:
            self.blobstore_probe.refresh()

        report = MonitorReport(checks=1)
        for volume in self.volumes:
            probe, target = self._probe_for(volume)
            status = VolumeStatus(
                volume=volume,
                kind=probe.kind,
                target=target,
                stats=probe.fetch_free_space(target),
            )
            report.statuses.append(status)
            logger.info(
                "%s %s:'%s' free %d MiB, limit %d MiB",
                "!" if status.shortage else "-",
                status.kind,
                target,
                status.free_mib,
                volume.min_free_size,
            )
            if status.shortage:
                report.shortage = True
                report.required_free_mib = max(report.required_free_mib, status.deficit_mib)
        return report

    def wait(self) -> None:
        """Sleep for delay_seconds before the next check."""
        logger.info("Waiting %d seconds", self.delay_seconds)
        self._sleep(self.delay_seconds)

    def run(self, single_shot: bool = False) -> MonitorReport:
        """Check volumes until a shortage is found.

        Without a shortage the monitor sleeps for delay_seconds and checks
        again. In single-shot mode it returns after the first check.

        Args:
            single_shot: Return after one check regardless of the outcome.

        Returns:
            MonitorReport of the final check.
        """
        checks = 0
        while True:
            report = self.check()
            checks += 1
            report.checks = checks
            if report.shortage:
                logger.info(
                    "Low space detected, %d MiB required, leaving monitor loop",
                    report.required_free_mib,
                )
                return report
            if single_shot:
                return report
            logger.info("No shortage")
            self.wait()
