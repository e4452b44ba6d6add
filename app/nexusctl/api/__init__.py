"""Repository and storage backends.

This module exports the backend interfaces and the REST client.
"""

from nexusctl.api.base import FreeSpaceProbe, RepositoryClient
from nexusctl.api.client import NexusAPIError, NexusClient, build_api_url

__all__ = [
    "FreeSpaceProbe",
    "NexusAPIError",
    "NexusClient",
    "RepositoryClient",
    "build_api_url",
]
