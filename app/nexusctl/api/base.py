"""Abstract interfaces for repository and storage backends.

The cleanup engine only talks to these small capability interfaces, so
the REST client, local filesystems and test doubles are interchangeable.
"""

from abc import ABC, abstractmethod

from nexusctl.models.blobstore import SpaceStats
from nexusctl.models.component import Component


class RepositoryClient(ABC):
    """Abstract base class for component repositories.

    Example:
        >>> client = NexusClient("https://nexus.example.com")
        >>> for component in client.fetch_components("builds"):
        ...     print(component.name)
    """

    @abstractmethod
    def fetch_components(self, repository: str, group_prefix: str = "") -> list[Component]:
        """Fetch all components of a repository.

        Args:
            repository: Repository name.
            group_prefix: Only return components whose group starts with this.

        Returns:
            Components in server order.
        """

    @abstractmethod
    def delete_component(self, component_id: str) -> None:
        """Delete a component by id.

        Args:
            component_id: Server-side component id.
        """

    def ensure_available(self) -> None:  # noqa: B027
        """Raise if the repository cannot be read and written right now.

        The default implementation does nothing.
        """


class FreeSpaceProbe(ABC):
    """Abstract base class for free-space lookups.

    Implementations answer for local mount points or for remote blob
    stores; the space monitor picks one per configured volume.
    """

    @property
    @abstractmethod
    def kind(self) -> str:
        """Return the target kind this probe handles ('mountpoint' or 'blobstore')."""

    @abstractmethod
    def fetch_free_space(self, target: str) -> SpaceStats:
        """Return free and total bytes of a target.

        Args:
            target: Mount point path or blob store name.

        Returns:
            SpaceStats for the target.
        """

    def refresh(self) -> None:  # noqa: B027
        """Drop cached data before a new monitor check.

        The default implementation does nothing.
        """
