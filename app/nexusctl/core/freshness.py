"""Idle-duration calculation for components.

The idle duration of a component is the time since its first asset was
last downloaded or modified, whichever is more recent. Only the first
asset is ever consulted.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from nexusctl.models.component import Component

# Oldest possible timestamp; stands in for "never" in comparisons
EPOCH = datetime(1, 1, 1, tzinfo=UTC)

_DAY = timedelta(days=1)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an extended ISO 8601 timestamp.

    Naive timestamps are taken as UTC. Unparsable input yields None
    instead of an error.

    Args:
        value: Timestamp string such as "2024-03-22T09:09:01.246+00:00".

    Returns:
        Timezone-aware datetime, or None if absent or unparsable.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


@dataclass(frozen=True, slots=True)
class Freshness:
    """Timestamps and idle duration of a component.

    Attributes:
        created: Blob creation time, or None.
        downloaded: Last download time, or None if never downloaded.
        modified: Last modification time, or None.
        last_relevant: Later of downloaded and modified, or None if both are absent.
        idle: Time since last_relevant. May be negative for future timestamps.
    """

    created: datetime | None
    downloaded: datetime | None
    modified: datetime | None
    last_relevant: datetime | None
    idle: timedelta

    @property
    def has_download(self) -> bool:
        """Check if a download time was recorded."""
        return self.downloaded is not None

    @property
    def idle_days(self) -> int:
        """Idle duration truncated to whole days."""
        return idle_days(self.idle)


def idle_days(idle: timedelta) -> int:
    """Truncate a duration to whole days, rounding toward zero."""
    return int(idle / _DAY)


def compute_idle_duration(component: Component, now: datetime | None = None) -> Freshness:
    """Compute the freshness of a component from its first asset.

    A component without assets yields no timestamps and zero idle time.

    Args:
        component: Component to inspect.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Freshness with parsed timestamps and idle duration.
    """
    asset = component.first_asset
    if asset is None:
        return Freshness(
            created=None,
            downloaded=None,
            modified=None,
            last_relevant=None,
            idle=timedelta(0),
        )

    now = now or datetime.now(UTC)
    created = parse_timestamp(asset.blob_created)
    downloaded = parse_timestamp(asset.last_downloaded)
    modified = parse_timestamp(asset.last_modified)

    last_relevant = max((downloaded or EPOCH), (modified or EPOCH))
    return Freshness(
        created=created,
        downloaded=downloaded,
        modified=modified,
        last_relevant=None if last_relevant == EPOCH else last_relevant,
        idle=now - last_relevant,
    )
