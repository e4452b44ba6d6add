"""Free-space probes for local mount points and remote blob stores."""

import logging
import shutil

from nexusctl.api.base import FreeSpaceProbe
from nexusctl.api.client import NexusClient
from nexusctl.core.monitor import MonitorError
from nexusctl.models.blobstore import BlobStore, SpaceStats

logger = logging.getLogger(__name__)


class FilesystemProbe(FreeSpaceProbe):
    """Free space of a local mount point.

    Free space is the amount available to unprivileged users. OSError
    (missing path, permission denied) propagates to the caller.
    """

    @property
    def kind(self) -> str:
        return "mountpoint"

    def fetch_free_space(self, target: str) -> SpaceStats:
        usage = shutil.disk_usage(target)
        return SpaceStats(free_bytes=usage.free, total_bytes=usage.total)


class BlobStoreProbe(FreeSpaceProbe):
    """Free space of a named blob store on the server.

    The blob store listing is fetched once and reused until refresh() is
    called, so one monitor check issues at most one listing request.
    """

    def __init__(self, client: NexusClient) -> None:
        self.client = client
        self._stores: list[BlobStore] | None = None

    @property
    def kind(self) -> str:
        return "blobstore"

    def refresh(self) -> None:
        self._stores = None

    def _listing(self) -> list[BlobStore]:
        if self._stores is None:
            self._stores = self.client.fetch_blob_stores()
        if not self._stores:
            msg = "No blob stores found on server"
            raise MonitorError(msg)
        return self._stores

    def fetch_free_space(self, target: str) -> SpaceStats:
        """Return free space of a blob store.

        A name missing from the listing counts as zero free space.

        Raises:
            MonitorError: If the server reports no blob stores at all.
        """
        for store in self._listing():
            if store.name == target:
                return store.space
        logger.warning("Blob store '%s' not found on server, assuming no free space", target)
        return SpaceStats(free_bytes=0, total_bytes=0)
