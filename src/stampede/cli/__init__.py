"""Stampede CLI."""

import typer

from stampede.cli._console import console
from stampede.cli.commands import parse, run, script
from stampede.cli.serve import serve

app = typer.Typer(
    name="stampede",
    help="HTTP load testing with k6.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        from stampede import __version__

        console.print(f"[bold]stampede[/bold] [dim]{__version__}[/dim]")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version",
    ),
) -> None:
    """HTTP load testing with k6."""


app.command()(serve)
app.command()(script)
app.command()(parse)
app.command()(run)

__all__ = ["app"]
