"""
boxkit - unpack project templates ("boxes") and customize them.

Usage:
    boxkit unbox <owner/repo>
    boxkit unbox <owner/repo> <directory>
    boxkit unbox /path/to/box --option ts
"""

import sys

import typer
from rich.align import Align
from rich.console import Console

from boxkit.cli.commands import register_unbox_command

__version__ = "0.1.0"

TAGLINE = "boxkit - unpack and customize project templates"

console = Console()

app = typer.Typer(
    name="boxkit",
    help="Unpack project templates (boxes) and customize them with recipes",
    add_completion=False,
    invoke_without_command=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"boxkit {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
):
    """Show a usage hint when no subcommand is provided."""
    if ctx.invoked_subcommand is None and "--help" not in sys.argv and "-h" not in sys.argv:
        console.print(Align.center(f"[italic bright_yellow]{TAGLINE}[/italic bright_yellow]"))
        console.print(Align.center("[dim]Run 'boxkit --help' for usage information[/dim]"))
        console.print()


register_unbox_command(app, console=console)


def main():
    app()


if __name__ == "__main__":
    main()
