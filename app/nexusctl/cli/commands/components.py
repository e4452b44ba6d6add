"""Components command implementation.

Lists the components of a repository with their size and idle time.
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer

from nexusctl.api.client import NexusAPIError
from nexusctl.cli.display import create_components_table
from nexusctl.cli.types import OutputFormat, open_client
from nexusctl.core.config import ConfigError, load_config
from nexusctl.models.component import Component
from nexusctl.utils.formatting import console, format_size, print_error, print_info

app = typer.Typer(
    help="List repository components.",
    invoke_without_command=True,
)


def _resolve_server(server: str, config_path: Path | None) -> str:
    if server:
        return server
    try:
        return load_config(config_path).server_url
    except ConfigError:
        return ""


def _export(components: list[Component], path: Path) -> None:
    try:
        path.write_text(
            json.dumps([c.to_dict() for c in components], indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as e:
        print_error(f"Failed to write {path}: {e}")
        raise typer.Exit(code=1) from e
    print_info(f"Exported {len(components)} components to {path}")


@app.callback(invoke_without_command=True)
def list_components(
    ctx: typer.Context,
    repository: Annotated[
        str,
        typer.Option("--repository", "-r", help="Repository name."),
    ] = "",
    prefix: Annotated[
        str,
        typer.Option("--prefix", "-p", help="Only list components whose group starts with this."),
    ] = "",
    server: Annotated[
        str,
        typer.Option("--server", "-s", help="Server base URL (defaults to the config's)."),
    ] = "",
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to read the server URL from."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: table or json.", case_sensitive=False),
    ] = OutputFormat.TABLE,
    export_path: Annotated[
        Path | None,
        typer.Option("--export", "-e", help="Export components to a JSON file."),
    ] = None,
) -> None:
    """List the components of a repository.

    Examples:
        nexusctl components -r builds
        nexusctl components -r builds -p /Test --format json
        nexusctl components -r builds --export builds.json
    """
    if ctx.invoked_subcommand is not None:
        return
    if not repository:
        print_error("No repository given (--repository).")
        raise typer.Exit(code=1)

    client = open_client(_resolve_server(server, config_path))
    try:
        components = client.fetch_components(repository, prefix)
    except NexusAPIError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    finally:
        client.close()

    if export_path is not None:
        _export(components, export_path)

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([c.to_dict() for c in components]))
        return

    if not components:
        print_info(f"No components found in '{repository}'.")
        return

    console.print(create_components_table(repository, components, datetime.now(UTC)))
    total = sum(c.size_bytes for c in components)
    console.print(f"\n[muted]{len(components)} components ({format_size(total)} total)[/]")
