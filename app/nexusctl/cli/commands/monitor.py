"""Monitor command implementation.

Watches the configured volumes and runs the cleaner whenever free space
drops to or below a volume's minimum.
"""

from pathlib import Path
from typing import Annotated

import typer

from nexusctl.api.client import NexusAPIError
from nexusctl.api.probes import BlobStoreProbe, FilesystemProbe
from nexusctl.cli.display import create_volumes_table, print_cleaner_report
from nexusctl.cli.types import open_client
from nexusctl.core.cleaner import run_monitor_cycle
from nexusctl.core.config import ConfigError, require_config
from nexusctl.core.monitor import DEFAULT_DELAY_SECONDS, MonitorError, SpaceMonitor
from nexusctl.utils.formatting import console, print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Watch free space and clean up on shortage.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def monitor(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (TOML, or legacy JSON)."),
    ] = None,
    delay: Annotated[
        int,
        typer.Option("--delay", "-t", min=1, help="Seconds between checks."),
    ] = DEFAULT_DELAY_SECONDS,
    once: Annotated[
        bool,
        typer.Option("--once", help="Check once and exit."),
    ] = False,
    delete: Annotated[
        bool,
        typer.Option("--delete", "-d", help="Delete expired components on shortage."),
    ] = False,
    size: Annotated[
        int,
        typer.Option("--size", "-s", min=0, help="Minimum MiB to free on shortage."),
    ] = 0,
) -> None:
    """Check free space and reclaim the deficit when a volume runs short.

    Without --once the command keeps checking until interrupted and waits
    --delay seconds after every cleanup before checking again.

    Examples:
        nexusctl monitor --once              # Single check, dry run
        nexusctl monitor -t 300 --delete     # Check every 5 minutes
    """
    if ctx.invoked_subcommand is not None:
        return

    config = require_config(config_path)
    if not config.volumes:
        print_error("No volumes configured.")
        raise typer.Exit(code=1)

    client = open_client(config.server_url)
    space_monitor = SpaceMonitor(
        config.volumes,
        FilesystemProbe(),
        BlobStoreProbe(client),
        delay_seconds=delay,
    )

    try:
        while True:
            result = run_monitor_cycle(
                config,
                space_monitor,
                client,
                delete=delete,
                requested_mib=size,
                single_shot=once,
            )
            console.print(create_volumes_table(result.monitor))

            if result.cleaner is None:
                print_success("No shortage detected.")
            else:
                print_cleaner_report(result.cleaner)
                if not result.cleaner.success:
                    print_warning(
                        f"Can't free at least {result.monitor.required_free_mib} MiB of storage."
                    )

            if once:
                if result.cleaner is not None and not result.cleaner.success:
                    raise typer.Exit(code=1)
                return
            space_monitor.wait()
    except KeyboardInterrupt:
        print_info("Monitor stopped.")
        raise typer.Exit(code=130) from None
    except (ConfigError, NexusAPIError, MonitorError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    finally:
        client.close()
