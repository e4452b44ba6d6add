"""Config management commands.

Creates, shows and locates the cleaner configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from nexusctl.core.config import (
    ConfigError,
    config_to_dict,
    default_config,
    require_config,
    save_config,
)
from nexusctl.core.paths import get_config_path
from nexusctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the cleaner configuration.",
    no_args_is_help=True,
)


@app.command()
def init(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Where to write the config."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config."),
    ] = False,
) -> None:
    """Write a starter config with example rules and volumes."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(default_config(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to show."),
    ] = None,
) -> None:
    """Show the validated config as TOML."""
    config = require_config(config_path)
    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)


@app.command()
def path() -> None:
    """Print the default config path."""
    console.print(str(get_config_path()), markup=False, highlight=False)
