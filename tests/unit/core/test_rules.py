"""Unit tests for retention rule evaluation."""

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest
from nexusctl.core.grouping import GroupingError
from nexusctl.core.rules import (
    effective_min_age,
    effective_min_files,
    evaluate_repositories,
    evaluate_rules,
)
from nexusctl.models.component import Component
from nexusctl.models.config import CleanerConfig, RepositoryConfig, RetentionRule

Factory = Callable[..., Component]


def _repo(*rules: RetentionRule, min_age: str = "30d", min_files: int = 0) -> RepositoryConfig:
    return RepositoryConfig(name="builds", min_age=min_age, min_files=min_files, rules=list(rules))


class TestEffectiveThresholds:
    """Tests for rule fallbacks to repository defaults."""

    def test_rule_values_win(self) -> None:
        """Non-empty rule values are used as-is."""
        rule = RetentionRule(group="/T", min_age="2d", min_files=3)
        repo = _repo(rule, min_age="90d", min_files=5)

        assert effective_min_files(rule, repo) == 3
        assert effective_min_age(rule, repo) == timedelta(days=2)

    def test_defaults_fill_in(self) -> None:
        """Zero min files and empty min age fall back to the repository."""
        rule = RetentionRule(group="/T")
        repo = _repo(rule, min_age="90d", min_files=5)

        assert effective_min_files(rule, repo) == 5
        assert effective_min_age(rule, repo) == timedelta(days=90)


class TestEvaluateRules:
    """Tests for evaluate_rules function."""

    def test_end_to_end_grouped_rule(self, component_factory: Factory, now: datetime) -> None:
        """Three members sharing a key exceed min files 2 and all expire at min age 0."""
        components = [
            component_factory(f"x_{i}", group="/T", idle=timedelta(hours=i)) for i in (1, 2, 3)
        ]
        rule = RetentionRule(group="/T", min_files=2, group_files_by="_", min_age="0d")

        result = evaluate_rules(components, _repo(rule), now)

        assert {c.name for c in result.expired} == {"x_1", "x_2", "x_3"}
        assert {d.group_key for d in result.decisions} == {"x"}

    def test_retention_floor_keeps_whole_group(
        self, component_factory: Factory, now: datetime
    ) -> None:
        """A group no larger than min files is kept regardless of age."""
        components = [
            component_factory(f"old_{i}", idle=timedelta(days=999)) for i in range(3)
        ]
        rule = RetentionRule(group="/Test", min_files=3, min_age="1d")

        result = evaluate_rules(components, _repo(rule), now)

        assert result.expired == []
        assert result.decisions == []
        assert len(result.skipped_groups) == 1
        assert result.skipped_groups[0].size == 3
        assert result.skipped_groups[0].min_files == 3

    def test_expiry_boundary_is_strict(self, component_factory: Factory, now: datetime) -> None:
        """Idle exactly min age is kept, one second more expires."""
        exact = component_factory("a", idle=timedelta(days=30))
        over = component_factory("b", idle=timedelta(days=30, seconds=1))
        rule = RetentionRule(group="/Test", min_age="30d")

        result = evaluate_rules([exact, over], _repo(rule), now)

        assert result.expired == [over]
        decisions = {d.component.name: d.expired for d in result.decisions}
        assert decisions == {"a": False, "b": True}

    def test_members_evaluated_by_name_descending(
        self, component_factory: Factory, now: datetime
    ) -> None:
        """Members are walked in descending name order."""
        components = [component_factory(n, idle=timedelta(days=99)) for n in ("a", "c", "b")]

        result = evaluate_rules(components, _repo(RetentionRule(group="/Test")), now)

        assert [c.name for c in result.expired] == ["c", "b", "a"]

    def test_prefix_filter(self, component_factory: Factory, now: datetime) -> None:
        """Only components whose group starts with the prefix are considered."""
        match = component_factory("m", group="/Test/sub", idle=timedelta(days=99))
        other = component_factory("o", group="/Other", idle=timedelta(days=99))

        result = evaluate_rules([match, other], _repo(RetentionRule(group="/Test")), now)

        assert result.expired == [match]

    def test_repository_default_age_applies(
        self, component_factory: Factory, now: datetime
    ) -> None:
        """Rules without min age use the repository's."""
        young = component_factory("young", idle=timedelta(days=29))
        old = component_factory("old", idle=timedelta(days=31))

        result = evaluate_rules([young, old], _repo(RetentionRule(group="/Test")), now)

        assert result.expired == [old]

    def test_overlapping_rules_report_once(
        self, component_factory: Factory, now: datetime
    ) -> None:
        """A component expired by two rules is listed once."""
        components = [component_factory(n, idle=timedelta(days=99)) for n in ("a", "b")]
        repo = _repo(RetentionRule(group="/Te"), RetentionRule(group="/Test"))

        result = evaluate_rules(components, repo, now)

        assert [c.name for c in result.expired] == ["b", "a"]
        assert len(result.decisions) == 4
        assert result.expired_bytes == 200

    def test_rules_judge_independently(self, component_factory: Factory, now: datetime) -> None:
        """A later, stricter rule still expires what an earlier rule kept."""
        component = component_factory("a", idle=timedelta(days=10))
        repo = _repo(
            RetentionRule(group="/Test", min_age="30d"),
            RetentionRule(group="/Test", min_age="5d"),
        )

        result = evaluate_rules([component], repo, now)

        assert result.expired == [component]
        assert [d.expired for d in result.decisions] == [False, True]

    def test_grouping_error_fails_whole_evaluation(
        self, component_factory: Factory, now: datetime
    ) -> None:
        """A name without the separator aborts with GroupingError."""
        components = [component_factory("x_1"), component_factory("plain")]
        repo = _repo(
            RetentionRule(group="/Test", min_age="0d"),
            RetentionRule(group="/Test", group_files_by="_"),
        )

        with pytest.raises(GroupingError):
            evaluate_rules(components, repo, now)

    def test_decision_remaining(self, component_factory: Factory, now: datetime) -> None:
        """Remaining time is min age minus idle."""
        component = component_factory("a", idle=timedelta(days=10))
        result = evaluate_rules([component], _repo(RetentionRule(group="/Test")), now)

        assert result.decisions[0].remaining == timedelta(days=20)


class TestEvaluateRepositories:
    """Tests for evaluate_repositories function."""

    def test_evaluates_each_configured_repository(
        self, component_factory: Factory, now: datetime
    ) -> None:
        """Results are keyed by repository; unknown repositories see no components."""
        config = CleanerConfig(
            server_url="https://nexus.example.com",
            repositories=[
                RepositoryConfig(name="builds", rules=[RetentionRule(group="/Test", min_files=1)]),
                RepositoryConfig(name="empty", rules=[RetentionRule(group="/Test")]),
            ],
        )
        components = [component_factory(n, idle=timedelta(days=200)) for n in ("a", "b")]

        results = evaluate_repositories({"builds": components}, config, now)

        assert list(results) == ["builds", "empty"]
        assert len(results["builds"].expired) == 2
        assert results["empty"].expired == []
