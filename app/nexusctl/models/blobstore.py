"""Blob store and free-space models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MIB = 2**20


@dataclass(frozen=True, slots=True)
class SpaceStats:
    """Free and total space of a storage target, in bytes."""

    free_bytes: int
    total_bytes: int

    @property
    def free_mib(self) -> int:
        """Free space in whole MiB."""
        return self.free_bytes // MIB


@dataclass(frozen=True, slots=True)
class BlobStore:
    """A named storage pool tracked by the repository server.

    Attributes:
        name: Blob store name (e.g., 'default').
        type: Backend type (e.g., 'File', 'S3').
        unavailable: Whether the server reports the store as unavailable.
        blob_count: Number of blobs stored.
        total_size_bytes: Bytes used by stored blobs.
        available_space_bytes: Free bytes left on the backing storage.
        soft_quota_type: Soft quota kind, if configured.
        soft_quota_limit: Soft quota limit in bytes, if configured.
    """

    name: str
    type: str = ""
    unavailable: bool = False
    blob_count: int = 0
    total_size_bytes: int = 0
    available_space_bytes: int = 0
    soft_quota_type: str | None = None
    soft_quota_limit: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlobStore:
        """Build a blob store from a /blobstores list entry."""
        quota = data.get("softQuota") or {}
        limit = quota.get("limit")
        return cls(
            name=str(data.get("name") or ""),
            type=str(data.get("type") or ""),
            unavailable=bool(data.get("unavailable", False)),
            blob_count=int(data.get("blobCount") or 0),
            total_size_bytes=int(data.get("totalSizeInBytes") or 0),
            available_space_bytes=int(data.get("availableSpaceInBytes") or 0),
            soft_quota_type=quota.get("type"),
            soft_quota_limit=int(limit) if limit is not None else None,
        )

    @property
    def space(self) -> SpaceStats:
        """Free/total space view used by the space monitor."""
        return SpaceStats(
            free_bytes=self.available_space_bytes,
            total_bytes=self.total_size_bytes + self.available_space_bytes,
        )
