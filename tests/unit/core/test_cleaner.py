"""Unit tests for cleanup orchestration."""

from collections.abc import Callable
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import httpx
import pytest
from nexusctl.api.base import RepositoryClient
from nexusctl.api.client import NexusAPIError, NexusClient
from nexusctl.core.cache import ComponentCache
from nexusctl.core.cleaner import run_cleaner, run_monitor_cycle
from nexusctl.core.monitor import MonitorReport
from nexusctl.models.blobstore import MIB
from nexusctl.models.component import Component
from nexusctl.models.config import CleanerConfig, RepositoryConfig, RetentionRule

Factory = Callable[..., Component]


class FakeRepository(RepositoryClient):
    """In-memory repository keyed by repository name."""

    def __init__(self, components: dict[str, list[Component]]) -> None:
        self.components = components
        self.deleted: list[str] = []

    def fetch_components(self, repository: str, group_prefix: str = "") -> list[Component]:
        return [c for c in self.components.get(repository, []) if c.group.startswith(group_prefix)]

    def delete_component(self, component_id: str) -> None:
        self.deleted.append(component_id)


@pytest.fixture
def config() -> CleanerConfig:
    """One repository whose single rule expires anything older than 7 days."""
    return CleanerConfig(
        server_url="https://nexus.example.com",
        repositories=[
            RepositoryConfig(
                name="builds",
                min_files=1,
                rules=[RetentionRule(group="/Test", min_age="7d")],
            )
        ],
    )


@pytest.fixture
def repository(component_factory: Factory) -> FakeRepository:
    """Two old components and one fresh one."""
    return FakeRepository(
        {
            "builds": [
                component_factory("old", id="old", idle=timedelta(days=30), size=3 * MIB),
                component_factory("older", id="older", idle=timedelta(days=60), size=1 * MIB),
                component_factory("new", id="new", idle=timedelta(days=1), size=5 * MIB),
            ]
        }
    )


class TestRunCleaner:
    """Tests for run_cleaner function."""

    def test_dry_run(self, config: CleanerConfig, repository: FakeRepository, now: datetime) -> None:
        """Dry run reports expired components without deleting."""
        report = run_cleaner(config, repository, now=now)

        assert {c.id for c in report.expired} == {"old", "older"}
        assert repository.deleted == []
        assert report.reclaim.freed_bytes == 4 * MIB
        assert report.success is True
        assert report.deleting is False

    def test_delete_with_budget(
        self, config: CleanerConfig, repository: FakeRepository, now: datetime
    ) -> None:
        """Deleting walks oldest first and stops once the budget is exceeded."""
        report = run_cleaner(config, repository, delete=True, budget_bytes=MIB // 2, now=now)

        assert repository.deleted == ["older"]
        assert report.success is True

    def test_cache_receives_fetched_components(
        self, config: CleanerConfig, repository: FakeRepository, now: datetime
    ) -> None:
        """Fetched components are merged into the cache."""
        cache = ComponentCache()

        run_cleaner(config, repository, cache=cache, now=now)

        assert len(cache.get("builds")) == 3

    def test_offline_uses_cache_and_never_deletes(
        self, config: CleanerConfig, repository: FakeRepository, now: datetime
    ) -> None:
        """Offline runs replay the cache and ignore --delete."""
        cache = ComponentCache()
        cache.put("builds", repository.components["builds"])
        client = MagicMock(spec=RepositoryClient)

        report = run_cleaner(config, client, delete=True, cache=cache, offline=True, now=now)

        assert report.deleting is False
        assert len(report.expired) == 2
        client.fetch_components.assert_not_called()
        client.delete_component.assert_not_called()
        client.ensure_available.assert_not_called()

    def test_offline_without_cached_repository(self, config: CleanerConfig, now: datetime) -> None:
        """A repository missing from the cache has nothing to clean."""
        report = run_cleaner(config, None, cache=ComponentCache(), offline=True, now=now)

        assert report.expired == []
        assert report.success is True

    def test_online_requires_client(self, config: CleanerConfig, now: datetime) -> None:
        """Without a client only offline mode works."""
        with pytest.raises(ValueError, match="client"):
            run_cleaner(config, None, now=now)

    def test_unavailable_server_stops_before_fetching(
        self, config: CleanerConfig, now: datetime
    ) -> None:
        """A failed availability check aborts before any fetch or delete."""
        client = MagicMock(spec=RepositoryClient)
        client.ensure_available.side_effect = NexusAPIError("not available for writing")

        with pytest.raises(NexusAPIError, match="writing"):
            run_cleaner(config, client, delete=True, now=now)

        client.fetch_components.assert_not_called()
        client.delete_component.assert_not_called()

    def test_read_only_server_gets_no_deletes(self, config: CleanerConfig, now: datetime) -> None:
        """A server answering 503 on /status/writable receives no DELETE."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path.endswith("/status/writable"):
                return httpx.Response(503)
            return httpx.Response(200, json={"items": [], "continuationToken": None})

        client = NexusClient("https://nexus.example.com", transport=httpx.MockTransport(handler))

        with pytest.raises(NexusAPIError):
            run_cleaner(config, client, delete=True, now=now)

        assert [r.method for r in requests] == ["GET", "GET"]
        assert not any(r.url.path.endswith("/components") for r in requests)

    def test_to_dict(self, config: CleanerConfig, repository: FakeRepository, now: datetime) -> None:
        """The JSON view lists expired ids per repository and the reclaim walk."""
        data = run_cleaner(config, repository, now=now).to_dict()

        assert sorted(data["repositories"]["builds"]["expired"]) == ["old", "older"]
        assert [entry["id"] for entry in data["reclaim"]] == ["older", "old"]
        assert data["met_budget"] is True


class TestRunMonitorCycle:
    """Tests for run_monitor_cycle function."""

    def test_no_shortage_skips_cleaner(
        self, config: CleanerConfig, repository: FakeRepository, now: datetime
    ) -> None:
        """Without a shortage no cleanup happens."""
        monitor = MagicMock()
        monitor.run.return_value = MonitorReport(shortage=False, checks=1)

        result = run_monitor_cycle(config, monitor, repository, single_shot=True, now=now)

        assert result.cleaner is None
        monitor.run.assert_called_once_with(single_shot=True)

    def test_budget_is_max_of_deficit_and_request(
        self, config: CleanerConfig, repository: FakeRepository, now: datetime
    ) -> None:
        """The deficit sizes the budget unless the request is larger."""
        monitor = MagicMock()
        monitor.run.return_value = MonitorReport(shortage=True, required_free_mib=2)

        small = run_monitor_cycle(config, monitor, repository, requested_mib=1, now=now)
        large = run_monitor_cycle(config, monitor, repository, requested_mib=3, now=now)

        assert small.budget_bytes == 2 * MIB
        assert large.budget_bytes == 3 * MIB
        assert small.cleaner is not None
        assert small.cleaner.reclaim.budget_bytes == 2 * MIB

    def test_shortage_deletes(
        self, config: CleanerConfig, repository: FakeRepository, now: datetime
    ) -> None:
        """With --delete the deficit is reclaimed from the server."""
        monitor = MagicMock()
        monitor.run.return_value = MonitorReport(shortage=True, required_free_mib=2)

        result = run_monitor_cycle(config, monitor, repository, delete=True, now=now)

        assert repository.deleted == ["older", "old"]
        assert result.cleaner is not None
        assert result.cleaner.success is True
