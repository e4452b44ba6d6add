"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from nexusctl.models.component import Asset, Component
from nexusctl.models.config import CleanerConfig, RepositoryConfig, RetentionRule, VolumeConfig

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)

ComponentFactory = Callable[..., Component]


def iso(moment: datetime) -> str:
    """Format a datetime the way the REST API does."""
    return moment.isoformat(timespec="milliseconds")


def make_component(
    name: str,
    *,
    id: str | None = None,
    group: str = "/Test",
    size: int = 100,
    idle: timedelta | None = timedelta(days=10),
    downloaded: bool = False,
    repository: str = "builds",
    now: datetime = NOW,
    with_asset: bool = True,
) -> Component:
    """Build a component whose first asset was last touched `idle` before `now`.

    With downloaded=True the idle reference is the download time, otherwise
    the modification time (and no download is recorded).
    """
    assets: tuple[Asset, ...] = ()
    if with_asset:
        touched = iso(now - idle) if idle is not None else None
        assets = (
            Asset(
                id=f"asset-{id or name}",
                path=f"{group.lstrip('/')}/{name}",
                download_url=f"https://nexus.example.com/repository/{repository}{group}/{name}",
                repository=repository,
                format="raw",
                file_size=size,
                blob_created=iso(now - timedelta(days=400)),
                last_modified=None if downloaded else touched,
                last_downloaded=touched if downloaded else None,
            ),
        )
    return Component(
        id=id or f"id-{name}",
        repository=repository,
        format="raw",
        group=group,
        name=name,
        assets=assets,
    )


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for idle calculations."""
    return NOW


@pytest.fixture
def component_factory() -> ComponentFactory:
    """Factory building components relative to the fixed reference time."""
    return make_component


@pytest.fixture
def repo_config() -> RepositoryConfig:
    """Repository with a grouped rule and a plain rule."""
    return RepositoryConfig(
        name="builds",
        min_age="30d",
        min_files=2,
        rules=[
            RetentionRule(group="/Test-Autogen", min_age="5d", group_files_by="_"),
            RetentionRule(group="/Release", min_files=1),
        ],
    )


@pytest.fixture
def cleaner_config(repo_config: RepositoryConfig) -> CleanerConfig:
    """Complete cleaner config with one repository and two volumes."""
    return CleanerConfig(
        server_url="https://nexus.example.com",
        repositories=[repo_config],
        volumes=[
            VolumeConfig(mountpoint="/srv", min_free_size=1024),
            VolumeConfig(blobstore="default", min_free_size=2048),
        ],
    )


@pytest.fixture
def sample_component_payload() -> dict[str, object]:
    """A component object as returned by GET /service/rest/v1/components."""
    return {
        "id": "bWF2ZW4tcmVsZWFzZXM6MTM",
        "repository": "builds",
        "format": "raw",
        "group": "/Data",
        "name": "Data/YourFile.zip",
        "version": None,
        "assets": [
            {
                "downloadUrl": "https://nexus.example.com/repository/builds/Data/YourFile.zip",
                "path": "Data/YourFile.zip",
                "id": "YXNzZXQtMQ",
                "repository": "builds",
                "format": "raw",
                "checksum": {"sha1": "abc", "md5": "def"},
                "contentType": "application/zip",
                "lastModified": "2024-03-22T09:09:01.246+00:00",
                "lastDownloaded": None,
                "uploader": "admin",
                "uploaderIp": "10.0.0.1",
                "fileSize": 4096,
                "blobCreated": "2024-03-20T08:00:00.000+00:00",
                "blobStoreName": "default",
            }
        ],
    }
