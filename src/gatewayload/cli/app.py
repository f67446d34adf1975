"""Main Typer application, the entry point for the ``gatewayload`` CLI."""

from __future__ import annotations

import typer

from gatewayload import __version__
from gatewayload.cli.init_cmd import init_cmd
from gatewayload.cli.run import run_cmd

app = typer.Typer(
    name="gatewayload",
    help="Light load tests for an API gateway.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run a load test scenario (built-in gateway scenario by default).")(run_cmd)
app.command("init", help="Scaffold a new scenario file.")(init_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"gatewayload {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """gatewayload: light load tests for an API gateway."""
