"""Main Typer application: entry point for the ``jvmpulse`` CLI."""

from __future__ import annotations

import typer

from jvmpulse import __version__
from jvmpulse.cli.parse_cmd import parse_cmd
from jvmpulse.cli.watch import watch_cmd

app = typer.Typer(
    name="jvmpulse",
    help="Watch live JVM metrics from the terminal.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("watch", help="Poll a target and render its live metrics.")(watch_cmd)
app.command("parse", help="Parse an exposition file and list its samples.")(parse_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"jvmpulse {__version__}")
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
    """JvmPulse: watch live JVM metrics from the terminal."""
