"""Ordered, budget-bounded reclaiming of expired components.

Expired components are ordered oldest-idle first (whole days), larger
first among equal days, and never-downloaded components ahead of
downloaded ones. The walk then deletes until the requested number of
bytes has been freed.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from nexusctl.api.base import RepositoryClient
from nexusctl.core.freshness import compute_idle_duration, idle_days
from nexusctl.models.blobstore import MIB
from nexusctl.models.component import Component

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReclaimEntry:
    """One step of the reclaim walk.

    Attributes:
        index: Position in the reclaim order.
        component: The component considered.
        idle: Idle duration of the component.
        size_bytes: First-asset size in bytes.
        has_download: Whether a download time was recorded.
        selected: Whether the entry counted toward the budget.
        deleted: Whether a delete call was issued.
    """

    index: int
    component: Component
    idle: timedelta
    size_bytes: int
    has_download: bool
    selected: bool
    deleted: bool

    @property
    def idle_days(self) -> int:
        """Idle duration in whole days."""
        return idle_days(self.idle)


@dataclass(slots=True)
class ReclaimResult:
    """Outcome of a reclaim walk.

    Attributes:
        freed_bytes: Bytes deleted, or reclaimable bytes in dry-run.
        budget_bytes: Requested bytes to free; 0 means no limit.
        met_budget: Whether freed_bytes reached the budget.
        entries: Walked entries in reclaim order.
    """

    freed_bytes: int = 0
    budget_bytes: int = 0
    met_budget: bool = False
    entries: list[ReclaimEntry] = field(default_factory=list)

    @property
    def deleted(self) -> list[Component]:
        """Components a delete call was issued for."""
        return [e.component for e in self.entries if e.deleted]

    @property
    def selected(self) -> list[Component]:
        """Components counted toward the budget."""
        return [e.component for e in self.entries if e.selected]


def order_for_reclaim(
    components: Iterable[Component],
    now: datetime | None = None,
) -> list[Component]:
    """Order expired components for reclaiming.

    Components are sorted by idle days descending, then size descending.
    Among components of equal days and size, never-downloaded ones come
    before downloaded ones. This is only a tie-break: a never-downloaded
    component does not jump ahead of an older or larger downloaded one, as
    it would with a partition that puts every never-downloaded component
    first. Components without assets are skipped.

    Args:
        components: Expired components.
        now: Reference time for idle durations.

    Returns:
        Components in the order they should be reclaimed.
    """
    now = now or datetime.now(UTC)
    candidates = [c for c in components if c.assets]

    idle = {c.id: compute_idle_duration(c, now) for c in candidates}
    return sorted(
        candidates,
        key=lambda c: (idle[c.id].idle_days, c.size_bytes, not idle[c.id].has_download),
        reverse=True,
    )


def reclaim(
    expired: Sequence[Component],
    budget_bytes: int,
    really_delete: bool,
    client: RepositoryClient | None = None,
    now: datetime | None = None,
) -> ReclaimResult:
    """Walk expired components in reclaim order and delete until the budget is met.

    Once the freed total has reached a nonzero budget, the remaining entries
    are reported as retained. When deleting, the walk stops as soon as the
    freed total exceeds the budget, so the entry crossing the threshold is
    always deleted. A budget of 0 means no limit.

    In dry-run mode no delete calls are made, but selected sizes are still
    summed so the caller can report what would be freed.

    Args:
        expired: Expired components, e.g. from evaluate_rules().
        budget_bytes: Bytes to free; 0 for no limit.
        really_delete: Issue delete calls when True.
        client: Repository client used for deletes. Required when deleting.
        now: Reference time for idle durations.

    Returns:
        ReclaimResult with freed bytes and every walked entry.

    Raises:
        ValueError: If really_delete is set without a client.
    """
    deleter = client if really_delete else None
    if really_delete and deleter is None:
        msg = "A repository client is required to delete components"
        raise ValueError(msg)

    now = now or datetime.now(UTC)
    ordered = order_for_reclaim(expired, now)
    result = ReclaimResult(budget_bytes=budget_bytes)
    limited = budget_bytes > 0

    logger.info("%d components in expire list", len(ordered))
    logger.info("Requested to free up to %d MiB", budget_bytes // MIB)
    logger.info("Deletion of files is %s", "enabled" if really_delete else "disabled")

    for index, component in enumerate(ordered):
        freshness = compute_idle_duration(component, now)
        size = component.size_bytes
        already_met = limited and result.freed_bytes >= budget_bytes

        deleted = False
        if not already_met:
            if deleter is not None:
                deleter.delete_component(component.id)
                deleted = True
            result.freed_bytes += size

        logger.info(
            "%s:%03d: %s size=%d idle=%dd downloaded=%s",
            "=" if already_met else "D",
            index,
            component.name,
            size,
            freshness.idle_days,
            freshness.has_download,
        )
        result.entries.append(
            ReclaimEntry(
                index=index,
                component=component,
                idle=freshness.idle,
                size_bytes=size,
                has_download=freshness.has_download,
                selected=not already_met,
                deleted=deleted,
            )
        )

        if really_delete and limited and result.freed_bytes > budget_bytes:
            logger.info(
                "Freed %d MiB, more than the requested %d MiB, stopping",
                result.freed_bytes // MIB,
                budget_bytes // MIB,
            )
            break

    result.met_budget = not limited or result.freed_bytes >= budget_bytes
    return result
