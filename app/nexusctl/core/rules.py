"""Retention rule evaluation.

For each configured rule, the components whose group starts with the
rule's prefix are grouped, and every member of a group larger than the
minimum file floor is checked against the minimum idle age.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from nexusctl.core.duration import parse_duration
from nexusctl.core.freshness import Freshness, compute_idle_duration, idle_days
from nexusctl.core.grouping import group_components
from nexusctl.models.component import Component
from nexusctl.models.config import CleanerConfig, RepositoryConfig, RetentionRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RuleDecision:
    """Expiry decision for one group member under one rule.

    Attributes:
        rule_index: Position of the rule in the repository's rule list.
        group_key: Group the component was evaluated in.
        component: The evaluated component.
        freshness: Timestamps and idle duration of the component.
        min_age: Effective minimum idle age of the rule.
        expired: Whether the idle duration exceeds min_age.
    """

    rule_index: int
    group_key: str
    component: Component
    freshness: Freshness
    min_age: timedelta
    expired: bool

    @property
    def remaining(self) -> timedelta:
        """Time left until expiry (negative once expired)."""
        return self.min_age - self.freshness.idle


@dataclass(frozen=True, slots=True)
class SkippedGroup:
    """A group retained entirely by the minimum file floor."""

    rule_index: int
    group_key: str
    size: int
    min_files: int


@dataclass(slots=True)
class RuleEvaluation:
    """Outcome of evaluating a set of rules.

    Attributes:
        expired: Expired components, deduplicated by id, in discovery order.
        decisions: Every per-member decision that was made.
        skipped_groups: Groups retained by the file floor.
    """

    expired: list[Component] = field(default_factory=list)
    decisions: list[RuleDecision] = field(default_factory=list)
    skipped_groups: list[SkippedGroup] = field(default_factory=list)
    _seen_ids: set[str] = field(default_factory=set, repr=False)

    def add_expired(self, component: Component) -> None:
        """Record an expired component once per id."""
        if component.id not in self._seen_ids:
            self._seen_ids.add(component.id)
            self.expired.append(component)

    def merge(self, other: "RuleEvaluation") -> None:
        """Merge another evaluation into this one."""
        for component in other.expired:
            self.add_expired(component)
        self.decisions.extend(other.decisions)
        self.skipped_groups.extend(other.skipped_groups)

    @property
    def expired_bytes(self) -> int:
        """Total first-asset size of all expired components."""
        return sum(c.size_bytes for c in self.expired)


def effective_min_files(rule: RetentionRule, repo: RepositoryConfig) -> int:
    """Return the rule's min file count, falling back to the repository default."""
    return rule.min_files if rule.min_files != 0 else repo.min_files


def effective_min_age(rule: RetentionRule, repo: RepositoryConfig) -> timedelta:
    """Return the rule's parsed min age, falling back to the repository default."""
    return parse_duration(rule.min_age if rule.min_age else repo.min_age)


def evaluate_rules(
    components: Sequence[Component],
    repo: RepositoryConfig,
    now: datetime | None = None,
) -> RuleEvaluation:
    """Flag the expired components of one repository.

    Rules are evaluated independently against the full component list, so
    a component matching several prefixes is judged under each rule. It is
    reported at most once.

    Args:
        components: All components fetched for the repository.
        repo: Repository config with defaults and ordered rules.
        now: Reference time for idle durations. Defaults to now (UTC).

    Returns:
        RuleEvaluation with expired components and per-member decisions.

    Raises:
        GroupingError: If a rule's separator is missing from a matched name.
            Nothing is returned for the repository in that case.
    """
    now = now or datetime.now(UTC)
    result = RuleEvaluation()

    for rule_index, rule in enumerate(repo.rules):
        logger.info("%02d: applying rules for group '%s'", rule_index, rule.group)
        matched = [c for c in components if c.group.startswith(rule.group)]

        min_files = effective_min_files(rule, repo)
        min_age = effective_min_age(rule, repo)
        logger.info("%02d: defaults min age %s, min files %d", rule_index, min_age, min_files)

        groups = group_components(matched, rule.group_files_by)
        for group_key in sorted(groups):
            members = groups[group_key]
            if rule.group_files_by:
                logger.info("%02d: files are grouped with key '%s'", rule_index, group_key)

            if len(members) <= min_files:
                logger.info(
                    "%02d: found %d entries in group, but min files is %d",
                    rule_index,
                    len(members),
                    min_files,
                )
                result.skipped_groups.append(
                    SkippedGroup(
                        rule_index=rule_index,
                        group_key=group_key,
                        size=len(members),
                        min_files=min_files,
                    )
                )
                continue

            logger.info("%02d: found %d entries in group", rule_index, len(members))
            for idx, component in enumerate(
                sorted(members, key=lambda c: c.name, reverse=True)
            ):
                freshness = compute_idle_duration(component, now)
                expired = freshness.idle > min_age
                logger.info(
                    "%02d:%03d %s %s (idle %dd, left %dd)",
                    rule_index,
                    idx,
                    "D" if expired else "=",
                    component.name,
                    freshness.idle_days,
                    idle_days(min_age - freshness.idle),
                )
                result.decisions.append(
                    RuleDecision(
                        rule_index=rule_index,
                        group_key=group_key,
                        component=component,
                        freshness=freshness,
                        min_age=min_age,
                        expired=expired,
                    )
                )
                if expired:
                    result.add_expired(component)

    return result


def evaluate_repositories(
    components_by_repo: dict[str, Sequence[Component]],
    config: CleanerConfig,
    now: datetime | None = None,
) -> dict[str, RuleEvaluation]:
    """Evaluate every configured repository.

    Args:
        components_by_repo: Fetched components keyed by repository name.
        config: Cleaner config listing the repositories.
        now: Reference time for idle durations.

    Returns:
        Mapping of repository name to its RuleEvaluation, in config order.

    Raises:
        GroupingError: If any rule cannot group its matched components.
    """
    now = now or datetime.now(UTC)
    return {
        repo.name: evaluate_rules(components_by_repo.get(repo.name, ()), repo, now)
        for repo in config.repositories
    }
