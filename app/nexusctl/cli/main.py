"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from nexusctl import __version__
from nexusctl.cli.commands import clean, components, config, monitor, zipper
from nexusctl.utils.log import configure_logging

app = typer.Typer(
    name="nexusctl",
    help="Retention cleanup and tooling for Nexus repositories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nexusctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log rule decisions and reclaim steps."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log errors."),
    ] = False,
) -> None:
    """nexusctl - Retention cleanup for Nexus repositories.

    Expire old components by rules, reclaim space on demand and pack
    repository content into ZIP files.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


app.add_typer(clean.app, name="clean")
app.add_typer(monitor.app, name="monitor")
app.add_typer(zipper.app, name="zip")
app.add_typer(components.app, name="components")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
