"""Zip command implementation.

Downloads the components below a repository path into one ZIP file.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from nexusctl.api.client import NexusAPIError
from nexusctl.cli.types import open_client
from nexusctl.core.zipper import ZipperError, run_zipper
from nexusctl.utils.formatting import format_size, print_error, print_info, print_success
from nexusctl.utils.log import configure_logging

ENV_REPOSITORY = "NX_REPOSITORY"
ENV_PATH = "NX_PATH"

DEFAULT_REPOSITORY = "TestRepo"
DEFAULT_PATH = "/"

app = typer.Typer(
    help="Pack repository content into a ZIP file.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def zip_components(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output ZIP file."),
    ] = None,
    server: Annotated[
        str,
        typer.Option("--server", "-s", help="Server base URL (NX_SERVER overrides)."),
    ] = "",
    repository: Annotated[
        str,
        typer.Option("--repository", "-r", help="Repository name (NX_REPOSITORY overrides)."),
    ] = "",
    path: Annotated[
        str,
        typer.Option("--path", "-p", help="Group path inside the repository (NX_PATH overrides)."),
    ] = "",
    keep_paths: Annotated[
        bool,
        typer.Option("--keep-paths", "-k", help="Keep component paths in the archive."),
    ] = False,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="User name (NX_USER overrides)."),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", help="Password (NX_PASSWORD overrides)."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every download."),
    ] = False,
) -> None:
    """Download all components below a path and write them into a ZIP file.

    Examples:
        nexusctl zip -s https://nexus.example.com -r builds -p /Data -o data.zip
        nexusctl zip -r builds -p /Data -o data.zip --keep-paths
    """
    if ctx.invoked_subcommand is not None:
        return
    if verbose:
        configure_logging(verbose=True)

    if output is None:
        print_error("No output file given (--output).")
        raise typer.Exit(code=1)

    repo = os.environ.get(ENV_REPOSITORY) or repository or DEFAULT_REPOSITORY
    group_path = os.environ.get(ENV_PATH) or path or DEFAULT_PATH

    client = open_client(server, user, password)
    try:
        if not client.status():
            print_error(f"Server '{client.server_url}' is not available.")
            raise typer.Exit(code=1)
        print_info(f"Scanning '{group_path}' in '{repo}' on {client.server_url}")
        report = run_zipper(client, repo, group_path, output, keep_paths)
    except (NexusAPIError, ZipperError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    finally:
        client.close()

    print_success(
        f"Wrote {len(report.members)} file(s) ({format_size(report.total_bytes)}) to {report.output}"
    )
