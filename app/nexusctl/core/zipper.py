"""Packing repository content into a ZIP archive.

Components below a group path are downloaded one by one, size-checked
against the server's metadata and written into a single archive.
"""

import logging
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from nexusctl.api.client import NexusClient
from nexusctl.models.component import Component

logger = logging.getLogger(__name__)


class ZipperError(Exception):
    """Raised when a component cannot be downloaded or archived."""


@dataclass(frozen=True, slots=True)
class ArchiveMember:
    """One file to be written into the archive."""

    name: str
    data: bytes

    @property
    def compress_type(self) -> int:
        """ZIP archives are stored as-is, everything else is deflated."""
        if self.name.endswith(".zip"):
            return zipfile.ZIP_STORED
        return zipfile.ZIP_DEFLATED


@dataclass(slots=True)
class ZipperReport:
    """Outcome of a zipper run.

    Attributes:
        output: Path of the written archive.
        members: Archive member names with their uncompressed sizes.
    """

    output: Path
    members: list[tuple[str, int]] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(size for _, size in self.members)


def member_name(component: Component, keep_paths: bool) -> str:
    """Return the archive member name for a component.

    Args:
        component: Component to archive.
        keep_paths: Keep the full component name instead of its last segment.
    """
    if keep_paths:
        return component.name
    return component.name.rsplit("/", 1)[-1]


def write_archive(members: Iterable[ArchiveMember], output: Path) -> Path:
    """Write members into a ZIP file.

    Args:
        members: Files to add, in archive order.
        output: Target path. Parent directories are created.

    Returns:
        The written path.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(output, mode="w") as archive:
        for member in members:
            archive.writestr(member.name, member.data, compress_type=member.compress_type)
    return output


def _download(client: NexusClient, component: Component) -> bytes:
    asset = component.first_asset
    if asset is None:
        msg = f"Component '{component.name}' has no assets"
        raise ZipperError(msg)

    url = asset.download_url
    if not url or not url.startswith("http"):
        msg = f"Can't download '{component.name}' from '{url}'"
        raise ZipperError(msg)

    data = client.download(url)
    if not data:
        msg = f"Downloaded no data from '{url}'"
        raise ZipperError(msg)
    if len(data) != asset.file_size:
        msg = (
            f"Downloaded size mismatch for '{component.name}': "
            f"got {len(data)} bytes, expected {asset.file_size}"
        )
        raise ZipperError(msg)
    logger.info("Downloaded %d bytes for '%s'", len(data), component.name)
    return data


def run_zipper(
    client: NexusClient,
    repository: str,
    path: str,
    output: Path,
    keep_paths: bool = False,
) -> ZipperReport:
    """Download every component below a path and pack them into a ZIP file.

    Args:
        client: REST client for the server.
        repository: Repository name.
        path: Group prefix selecting the components.
        output: Target ZIP file.
        keep_paths: Keep component paths as member names.

    Returns:
        ZipperReport listing the archived members.

    Raises:
        ZipperError: If a component has no assets, no usable download URL
            or a size mismatch.
        NexusAPIError: If a REST call fails.
    """
    logger.info("Scanning '%s' in repository '%s'", path, repository)
    components = client.fetch_components(repository, path)
    logger.info("Found %d components", len(components))

    report = ZipperReport(output=output)
    members: list[ArchiveMember] = []
    for component in components:
        logger.info("Processing '%s'", component.name)
        data = _download(client, component)
        name = member_name(component, keep_paths)
        members.append(ArchiveMember(name=name, data=data))
        report.members.append((name, len(data)))

    logger.info("Writing ZIP file '%s'", output)
    write_archive(members, output)
    return report
