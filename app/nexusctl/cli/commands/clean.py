"""Clean command implementation.

Evaluates the retention rules of every configured repository and deletes
expired components until the requested amount of space is freed.
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer

from nexusctl.api.client import NexusAPIError, NexusClient
from nexusctl.cli.display import print_cleaner_report
from nexusctl.cli.types import OutputFormat, open_client
from nexusctl.core.cache import ComponentCache
from nexusctl.core.cleaner import CleanerReport, run_cleaner
from nexusctl.core.config import ConfigError, require_config
from nexusctl.core.reclaim import reclaim
from nexusctl.models.blobstore import MIB
from nexusctl.utils.formatting import console, print_error, print_info, print_success
from nexusctl.utils.log import configure_logging

app = typer.Typer(
    help="Delete expired components by retention rules.",
    invoke_without_command=True,
)


def _load_cache(path: Path | None) -> ComponentCache | None:
    if path is None:
        return None
    cache = ComponentCache()
    try:
        cache.load(path)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    return cache


def _confirm_deletion(preview: CleanerReport) -> None:
    selected = preview.reclaim.selected
    if not selected:
        return
    total = sum(c.size_bytes for c in selected)
    confirmed = typer.confirm(
        f"\nDelete {len(selected)} component(s) ({total // MIB} MiB)?",
        default=False,
    )
    if not confirmed:
        print_info("Aborted.")
        raise typer.Exit(code=0)


@app.callback(invoke_without_command=True)
def clean(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (TOML, or legacy JSON)."),
    ] = None,
    delete: Annotated[
        bool,
        typer.Option("--delete", "-d", help="Delete expired components (default: dry run)."),
    ] = False,
    size: Annotated[
        int,
        typer.Option("--size", "-s", min=0, help="MiB to free; 0 means no limit."),
    ] = 0,
    cache_path: Annotated[
        Path | None,
        typer.Option("--cache", "-j", help="Store fetched components in this JSON file."),
    ] = None,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Read components from the cache file instead of the server."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: table or json.", case_sensitive=False),
    ] = OutputFormat.TABLE,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every rule decision."),
    ] = False,
) -> None:
    """Evaluate retention rules and reclaim expired components.

    Without --delete nothing is removed; the command shows what would be
    reclaimed. Exits with code 0 when the requested size was freed.

    Examples:
        nexusctl clean                       # Dry run with the default config
        nexusctl clean -c rules.toml -s 2048 # Dry run, free 2 GiB
        nexusctl clean --delete --yes        # Delete everything expired
        nexusctl clean -j cache.json         # Keep fetched components
        nexusctl clean -j cache.json --offline
    """
    if ctx.invoked_subcommand is not None:
        return
    if verbose:
        configure_logging(verbose=True)

    if offline and cache_path is None:
        print_error("--offline needs a cache file (--cache).")
        raise typer.Exit(code=1)

    config = require_config(config_path)
    cache = _load_cache(cache_path) if offline else (ComponentCache() if cache_path else None)
    client: NexusClient | None = None if offline else open_client(config.server_url)
    budget_bytes = size * MIB
    now = datetime.now(UTC)
    confirm_first = delete and not offline and not yes

    try:
        report = run_cleaner(
            config,
            client,
            delete=delete and not confirm_first,
            budget_bytes=budget_bytes,
            cache=cache,
            offline=offline,
            now=now,
        )
        if confirm_first:
            print_cleaner_report(report)
            _confirm_deletion(report)
            report.reclaim = reclaim(report.expired, budget_bytes, True, client, now)
            report.deleting = True
    except (ConfigError, NexusAPIError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    finally:
        if client is not None:
            client.close()

    if cache is not None and cache_path is not None and not offline:
        cache.save(cache_path)
        print_info(f"Components cached to {cache_path}")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(report.to_dict()))
    elif confirm_first:
        print_success(f"Deleted {len(report.reclaim.deleted)} component(s).")
    else:
        print_cleaner_report(report)

    if not report.success:
        raise typer.Exit(code=1)
