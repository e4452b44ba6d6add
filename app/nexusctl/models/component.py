"""Component and asset models for repository scanning.

This module defines the immutable snapshots of components and assets
returned by the Nexus REST API. Instances are never mutated during a
cleanup run; they are only filtered, grouped and sorted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _str_or_none(value: object) -> str | None:
    """Normalize an optional JSON string field."""
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True, slots=True)
class Asset:
    """A single stored blob belonging to a component.

    Attributes:
        id: Server-side asset id.
        path: Repository path of the asset (e.g., 'Data/YourFile.zip').
        download_url: Absolute URL the asset can be downloaded from.
        repository: Repository name the asset lives in.
        format: Repository format tag (e.g., 'raw', 'maven2').
        content_type: MIME type reported by the server.
        file_size: Size in bytes.
        blob_created: ISO 8601 creation timestamp, or None.
        last_modified: ISO 8601 modification timestamp, or None.
        last_downloaded: ISO 8601 download timestamp, or None if never downloaded.
        uploader: Name of the uploading user.
        uploader_ip: Address the upload came from.
        checksum: Mapping of algorithm name to hex digest.
    """

    id: str = ""
    path: str = ""
    download_url: str = ""
    repository: str = ""
    format: str = ""
    content_type: str | None = None
    file_size: int = 0
    blob_created: str | None = None
    last_modified: str | None = None
    last_downloaded: str | None = None
    uploader: str | None = None
    uploader_ip: str | None = None
    checksum: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate asset data after initialization."""
        if self.file_size < 0:
            msg = f"Asset size cannot be negative, got {self.file_size}"
            raise ValueError(msg)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        """Build an asset from a REST API payload.

        Args:
            data: Asset object as returned by the API (camelCase keys).

        Returns:
            Asset instance. Unknown keys are ignored.
        """
        checksum_raw = data.get("checksum") or {}
        checksum = {str(k): str(v) for k, v in checksum_raw.items() if v is not None}
        return cls(
            id=str(data.get("id") or ""),
            path=str(data.get("path") or ""),
            download_url=str(data.get("downloadUrl") or ""),
            repository=str(data.get("repository") or ""),
            format=str(data.get("format") or ""),
            content_type=_str_or_none(data.get("contentType")),
            file_size=int(data.get("fileSize") or 0),
            blob_created=_str_or_none(data.get("blobCreated")),
            last_modified=_str_or_none(data.get("lastModified")),
            last_downloaded=_str_or_none(data.get("lastDownloaded")),
            uploader=_str_or_none(data.get("uploader")),
            uploader_ip=_str_or_none(data.get("uploaderIp")),
            checksum=checksum,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's JSON layout."""
        return {
            "downloadUrl": self.download_url,
            "path": self.path,
            "id": self.id,
            "repository": self.repository,
            "format": self.format,
            "contentType": self.content_type,
            "lastModified": self.last_modified,
            "lastDownloaded": self.last_downloaded,
            "uploader": self.uploader,
            "uploaderIp": self.uploader_ip,
            "fileSize": self.file_size,
            "blobCreated": self.blob_created,
            "checksum": dict(self.checksum),
        }


@dataclass(frozen=True, slots=True)
class Component:
    """One logical artifact entry in a repository.

    Attributes:
        id: Unique server-side component id.
        repository: Repository name.
        format: Repository format tag.
        group: Group or path prefix (e.g., '/Data').
        name: Display name (e.g., 'Data/YourFile.zip').
        version: Optional version string.
        assets: Assets bundled by this component.
    """

    id: str
    repository: str = ""
    format: str = ""
    group: str = ""
    name: str = ""
    version: str | None = None
    assets: tuple[Asset, ...] = ()

    def __post_init__(self) -> None:
        """Validate component data after initialization."""
        if not self.id:
            msg = "Component id cannot be empty"
            raise ValueError(msg)

    @property
    def first_asset(self) -> Asset | None:
        """Return the asset used for freshness and size, if any."""
        return self.assets[0] if self.assets else None

    @property
    def size_bytes(self) -> int:
        """Size of the first asset in bytes (0 without assets)."""
        asset = self.first_asset
        return asset.file_size if asset is not None else 0

    @property
    def has_download(self) -> bool:
        """Check if the first asset has a recorded download time."""
        asset = self.first_asset
        return asset is not None and bool(asset.last_downloaded)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Component:
        """Build a component from a REST API payload.

        Args:
            data: Component object as returned by the API.

        Returns:
            Component instance with its assets.
        """
        return cls(
            id=str(data.get("id") or ""),
            repository=str(data.get("repository") or ""),
            format=str(data.get("format") or ""),
            group=str(data.get("group") or ""),
            name=str(data.get("name") or ""),
            version=_str_or_none(data.get("version")),
            assets=tuple(Asset.from_dict(a) for a in data.get("assets") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's JSON layout."""
        return {
            "id": self.id,
            "repository": self.repository,
            "format": self.format,
            "group": self.group,
            "name": self.name,
            "version": self.version,
            "assets": [asset.to_dict() for asset in self.assets],
        }
