"""Shared types and helpers for CLI commands."""

from enum import Enum

import typer

from nexusctl.api.client import NexusAPIError, NexusClient
from nexusctl.core.config import resolve_credentials
from nexusctl.utils.formatting import print_error, print_warning


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def open_client(server_url: str, username: str | None = None, password: str | None = None) -> NexusClient:
    """Create a REST client with credentials resolved from the environment.

    NX_SERVER, NX_USER and NX_PASSWORD take precedence over the arguments.

    Args:
        server_url: Server URL from the config or command line.
        username: Fallback user name.
        password: Fallback password.

    Returns:
        A NexusClient for the resolved server.

    Raises:
        typer.Exit: If no server URL is known.
    """
    credentials = resolve_credentials(server_url)
    user = credentials.username or username
    secret = credentials.password or password
    if not user or not secret:
        print_warning("No credentials set (NX_USER/NX_PASSWORD), using anonymous access.")
        user, secret = None, None

    try:
        return NexusClient(credentials.server_url, user, secret)
    except NexusAPIError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
