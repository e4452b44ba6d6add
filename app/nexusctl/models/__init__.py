"""Data models for nexusctl.

This module exports the core data structures used throughout the application.
"""

from nexusctl.models.blobstore import MIB, BlobStore, SpaceStats
from nexusctl.models.component import Asset, Component
from nexusctl.models.config import CleanerConfig, RepositoryConfig, RetentionRule, VolumeConfig

__all__ = [
    "MIB",
    "Asset",
    "BlobStore",
    "CleanerConfig",
    "Component",
    "RepositoryConfig",
    "RetentionRule",
    "SpaceStats",
    "VolumeConfig",
]
