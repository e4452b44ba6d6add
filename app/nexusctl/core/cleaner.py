"""Cleanup orchestration.

Fetches components for every configured repository, evaluates the
retention rules and runs one reclaim walk over everything that expired.
The space monitor cycle wraps the same pipeline and sizes the budget from
the measured free-space deficit.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from nexusctl.api.base import RepositoryClient
from nexusctl.core.cache import ComponentCache
from nexusctl.core.monitor import MonitorReport, SpaceMonitor
from nexusctl.core.reclaim import ReclaimResult, reclaim
from nexusctl.core.rules import RuleEvaluation, evaluate_rules
from nexusctl.models.blobstore import MIB
from nexusctl.models.component import Component
from nexusctl.models.config import CleanerConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CleanerReport:
    """Outcome of one cleaner run.

    Attributes:
        evaluations: Rule evaluation per repository, in config order.
        expired: Expired components across all repositories, deduplicated.
        reclaim: Result of the reclaim walk.
        deleting: Whether delete calls were enabled.
    """

    evaluations: dict[str, RuleEvaluation] = field(default_factory=dict)
    expired: list[Component] = field(default_factory=list)
    reclaim: ReclaimResult = field(default_factory=ReclaimResult)
    deleting: bool = False

    @property
    def success(self) -> bool:
        """Whether the requested budget was met."""
        return self.reclaim.met_budget

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "deleting": self.deleting,
            "budget_bytes": self.reclaim.budget_bytes,
            "freed_bytes": self.reclaim.freed_bytes,
            "met_budget": self.reclaim.met_budget,
            "repositories": {
                name: {
                    "expired": [c.id for c in evaluation.expired],
                    "expired_bytes": evaluation.expired_bytes,
                    "skipped_groups": [g.group_key for g in evaluation.skipped_groups],
                }
                for name, evaluation in self.evaluations.items()
            },
            "reclaim": [
                {
                    "id": entry.component.id,
                    "name": entry.component.name,
                    "size_bytes": entry.size_bytes,
                    "idle_days": entry.idle_days,
                    "downloaded": entry.has_download,
                    "selected": entry.selected,
                    "deleted": entry.deleted,
                }
                for entry in self.reclaim.entries
            ],
        }


@dataclass(slots=True)
class MonitorCycleResult:
    """Outcome of one monitor-triggered cleanup cycle."""

    monitor: MonitorReport
    cleaner: CleanerReport | None = None
    budget_bytes: int = 0


def _components_for(
    repository: str,
    client: RepositoryClient | None,
    cache: ComponentCache | None,
    offline: bool,
) -> list[Component]:
    if offline:
        if cache is None or repository not in cache:
            logger.warning("No cached components for '%s'", repository)
            return []
        return list(cache.get(repository))

    if client is None:
        msg = "A repository client is required unless running offline"
        raise ValueError(msg)
    components = client.fetch_components(repository)
    if cache is not None:
        cache.put(repository, components)
    return components


def run_cleaner(
    config: CleanerConfig,
    client: RepositoryClient | None,
    *,
    delete: bool = False,
    budget_bytes: int = 0,
    cache: ComponentCache | None = None,
    offline: bool = False,
    now: datetime | None = None,
) -> CleanerReport:
    """Evaluate all repositories and reclaim expired components.

    Args:
        config: Cleaner configuration.
        client: Repository client for fetching and deleting. May be None offline.
        delete: Issue delete calls. Ignored when offline.
        budget_bytes: Bytes to free; 0 means no limit.
        cache: Optional cache that receives fetched components, or serves
            them when offline.
        offline: Read components from the cache instead of the server.
        now: Reference time for idle durations.

    Returns:
        CleanerReport with evaluations and the reclaim result.

    Raises:
        GroupingError: If a rule cannot group its matched components.
        NexusAPIError: If the server is not readable and writable, or if
            fetching or deleting fails.
    """
    now = now or datetime.now(UTC)
    if offline and delete:
        logger.warning("Deleting is disabled in offline mode")
        delete = False

    if not offline and client is not None:
        client.ensure_available()

    report = CleanerReport(deleting=delete)
    merged = RuleEvaluation()
    for repo in config.repositories:
        logger.info("Processing repository '%s'", repo.name)
        components = _components_for(repo.name, client, cache, offline)
        logger.info("%d components in '%s'", len(components), repo.name)
        evaluation = evaluate_rules(components, repo, now)
        report.evaluations[repo.name] = evaluation
        merged.merge(evaluation)

    report.expired = merged.expired
    report.reclaim = reclaim(
        merged.expired,
        budget_bytes,
        really_delete=delete,
        client=client if delete else None,
        now=now,
    )
    logger.info(
        "Freed %d MiB of %d MiB requested",
        report.reclaim.freed_bytes // MIB,
        budget_bytes // MIB,
    )
    return report


def run_monitor_cycle(
    config: CleanerConfig,
    monitor: SpaceMonitor,
    client: RepositoryClient | None,
    *,
    delete: bool = False,
    requested_mib: int = 0,
    single_shot: bool = False,
    cache: ComponentCache | None = None,
    now: datetime | None = None,
) -> MonitorCycleResult:
    """Wait for a shortage, then run the cleaner with the deficit as budget.

    The budget is the larger of the measured deficit and requested_mib.

    Args:
        config: Cleaner configuration.
        monitor: Space monitor over the configured volumes.
        client: Repository client for fetching and deleting.
        delete: Issue delete calls.
        requested_mib: Minimum MiB to free once a shortage is found.
        single_shot: Check once instead of looping until a shortage.
        cache: Optional component cache.
        now: Reference time for idle durations.

    Returns:
        MonitorCycleResult; cleaner is None when no shortage was found.
    """
    report = monitor.run(single_shot=single_shot)
    result = MonitorCycleResult(monitor=report)
    if not report.shortage:
        return result

    result.budget_bytes = max(report.required_free_mib, requested_mib) * MIB
    result.cleaner = run_cleaner(
        config,
        client,
        delete=delete,
        budget_bytes=result.budget_bytes,
        cache=cache,
        now=now,
    )
    if result.cleaner.success:
        logger.info("Resolved low space situation")
    else:
        logger.warning("Can't free at least %d MiB of storage", report.required_free_mib)
    return result
