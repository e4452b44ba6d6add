"""REST client for the Nexus repository manager.

Wraps the v1 REST endpoints needed by the cleaner, the space monitor and
the zipper on top of a synchronous httpx client. Every failed request is
raised as NexusAPIError; there is no retry logic.
"""

import logging
from collections.abc import Iterator
from typing import Any
from urllib.parse import quote

import httpx

from nexusctl.api.base import RepositoryClient
from nexusctl.models.blobstore import BlobStore
from nexusctl.models.component import Asset, Component

logger = logging.getLogger(__name__)

API_PREFIX = "service/rest/v1"
DEFAULT_TIMEOUT = 30.0


class NexusAPIError(Exception):
    """Raised when a REST call fails or returns an unexpected payload.

    Attributes:
        status_code: HTTP status code, if a response was received.
        url: Requested URL, if known.
    """

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


def build_api_url(
    server: str,
    endpoint: str,
    repository: str = "",
    continuation_token: str = "",
) -> str:
    """Build a REST API URL.

    Args:
        server: Server base URL, e.g. "https://nexus.example.com".
        endpoint: Endpoint name, e.g. "components" or "status/check".
        repository: Optional repository query parameter.
        continuation_token: Optional pagination token.

    Returns:
        Full URL such as
        "https://nexus.example.com/service/rest/v1/assets?repository=repo1&continuationToken=t".

    Raises:
        NexusAPIError: If server or endpoint is empty.
    """
    if not server:
        msg = "No server URL given"
        raise NexusAPIError(msg)
    if not endpoint:
        msg = "No API endpoint given"
        raise NexusAPIError(msg)

    url = f"{server.rstrip('/')}/{API_PREFIX}/{endpoint}"
    separator = "?"
    if repository:
        url += f"{separator}repository={quote(repository, safe='')}"
        separator = "&"
    if continuation_token:
        url += f"{separator}continuationToken={quote(continuation_token, safe='')}"
    return url


class NexusClient(RepositoryClient):
    """Synchronous client for one Nexus server.

    The client can be used as a context manager to close the underlying
    connection pool.

    Example:
        >>> with NexusClient("https://nexus.example.com", "admin", "secret") as client:
        ...     components = client.fetch_components("builds", "/Test")
    """

    def __init__(
        self,
        server_url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Server base URL.
            username: API user for basic auth, or None for anonymous access.
            password: API password for basic auth.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, e.g. a MockTransport in tests.
        """
        if not server_url:
            msg = "No server URL given"
            raise NexusAPIError(msg)
        self.server_url = server_url.rstrip("/")
        auth = httpx.BasicAuth(username, password or "") if username else None
        self._http = httpx.Client(
            auth=auth,
            headers={"accept": "application/json"},
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> "NexusClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def _url(self, endpoint: str, repository: str = "", continuation_token: str = "") -> str:
        return build_api_url(self.server_url, endpoint, repository, continuation_token)

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and raise NexusAPIError on transport or HTTP errors."""
        logger.debug("%s %s", method, url)
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            msg = f"Request to '{url}' failed: {e}"
            raise NexusAPIError(msg, url=url) from e

        if not response.is_success:
            msg = f"{method} '{url}' returned HTTP {response.status_code}"
            raise NexusAPIError(msg, status_code=response.status_code, url=url)
        return response

    def _get_json(self, url: str) -> Any:
        response = self._request("GET", url)
        try:
            return response.json()
        except ValueError as e:
            msg = f"Invalid JSON from '{url}': {e}"
            raise NexusAPIError(msg, status_code=response.status_code, url=url) from e

    def _iter_pages(self, endpoint: str, repository: str) -> Iterator[dict[str, Any]]:
        """Yield raw items of a paginated endpoint, following continuation tokens."""
        token = ""
        while True:
            url = self._url(endpoint, repository, token)
            page = self._get_json(url)
            if not isinstance(page, dict) or "items" not in page:
                msg = f"No 'items' array in response from '{url}'"
                raise NexusAPIError(msg, url=url)
            if "continuationToken" not in page:
                msg = f"No 'continuationToken' in response from '{url}'"
                raise NexusAPIError(msg, url=url)

            yield from page["items"] or []

            token = page["continuationToken"] or ""
            if not isinstance(token, str) or not token:
                return

    # Status

    def status(self) -> bool:
        """Check if the server answers read requests."""
        try:
            self._request("GET", self._url("status"))
        except NexusAPIError:
            return False
        return True

    def status_writable(self) -> bool:
        """Check if the server accepts write requests."""
        try:
            self._request("GET", self._url("status/writable"))
        except NexusAPIError:
            return False
        return True

    def status_check(self) -> dict[str, Any]:
        """Return the health of the server's subsystems.

        Raises:
            NexusAPIError: If the request fails or the answer is not an object.
        """
        url = self._url("status/check")
        data = self._get_json(url)
        if not isinstance(data, dict):
            msg = f"Expected a JSON object from '{url}'"
            raise NexusAPIError(msg, url=url)
        return data

    def ensure_available(self) -> None:
        """Raise NexusAPIError unless the server is readable and writable."""
        if not self.status():
            msg = f"Server '{self.server_url}' is not available for reading"
            raise NexusAPIError(msg, url=self.server_url)
        if not self.status_writable():
            msg = f"Server '{self.server_url}' is not available for writing"
            raise NexusAPIError(msg, url=self.server_url)

    # Components

    def iter_components(self, repository: str, group_prefix: str = "") -> Iterator[Component]:
        """Yield the components of a repository page by page.

        Args:
            repository: Repository name.
            group_prefix: Only yield components whose group starts with this.
        """
        for item in self._iter_pages("components", repository):
            component = Component.from_dict(item)
            if component.group.startswith(group_prefix):
                yield component

    def fetch_components(self, repository: str, group_prefix: str = "") -> list[Component]:
        components = list(self.iter_components(repository, group_prefix))
        logger.info("Fetched %d components from '%s'", len(components), repository)
        return components

    def delete_component(self, component_id: str) -> None:
        logger.info("Deleting component %s", component_id)
        self._request("DELETE", self._url(f"components/{quote(component_id, safe='')}"))

    def upload_component(
        self,
        repository: str,
        directory: str,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> None:
        """Upload a file to a raw repository.

        Args:
            repository: Target raw repository.
            directory: Directory inside the repository.
            filename: Name of the stored file.
            data: File content.
            content_type: MIME type of the content.
        """
        logger.info("Uploading '%s/%s' to '%s'", directory, filename, repository)
        self._request(
            "POST",
            self._url("components", repository),
            data={"raw.directory": directory, "raw.asset1.filename": filename},
            files={"raw.asset1": (filename, data, content_type)},
        )

    # Assets

    def fetch_assets(self, repository: str, path_prefix: str = "") -> list[Asset]:
        """Fetch all assets of a repository.

        Args:
            repository: Repository name.
            path_prefix: Only return assets whose path starts with this.
        """
        return [
            asset
            for asset in (Asset.from_dict(item) for item in self._iter_pages("assets", repository))
            if asset.path.startswith(path_prefix)
        ]

    def get_asset(self, asset_id: str) -> Asset:
        """Fetch a single asset by id."""
        url = self._url(f"assets/{quote(asset_id, safe='')}")
        data = self._get_json(url)
        if not isinstance(data, dict):
            msg = f"Expected a JSON object from '{url}'"
            raise NexusAPIError(msg, url=url)
        return Asset.from_dict(data)

    def delete_asset(self, asset_id: str) -> None:
        """Delete a single asset by id."""
        logger.info("Deleting asset %s", asset_id)
        self._request("DELETE", self._url(f"assets/{quote(asset_id, safe='')}"))

    # Blob stores

    def fetch_blob_stores(self) -> list[BlobStore]:
        """Fetch the blob store listing.

        Raises:
            NexusAPIError: If the request fails or the answer is not an array.
        """
        url = self._url("blobstores")
        data = self._get_json(url)
        if not isinstance(data, list):
            msg = f"Expected a JSON array from '{url}'"
            raise NexusAPIError(msg, url=url)
        return [BlobStore.from_dict(item) for item in data]

    # Content

    def download(self, url: str) -> bytes:
        """Download raw content from an absolute URL."""
        logger.debug("Downloading %s", url)
        return self._request("GET", url).content
