"""CLI command for unpacking a box into a directory.

Usage:
    boxkit unbox owner/repo                 # Unbox into the current directory
    boxkit unbox owner/repo#dev my-app      # Unbox a branch into ./my-app
    boxkit unbox /path/to/box --force       # Overwrite collisions without asking
    boxkit unbox owner/repo --option ts,npm # Preselect recipe choices
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from boxkit.box.exceptions import BoxError
from boxkit.box.merge import ConfirmFn
from boxkit.box.recipe import ChooseFn, split_option
from boxkit.box.unbox import STEPS, UnboxResult, unbox
from boxkit.cli.ui import StepTracker, choose_variant, confirm_overwrite
from boxkit.core.config import BoxkitSettings


def _configure_logging(console: Console, debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        force=True,
    )


def _print_summary(console: Console, result: UnboxResult) -> None:
    lines = [f"[cyan]Destination:[/cyan] {result.destination}"]
    if result.choices:
        lines.append(f"[cyan]Variant:[/cyan] {' / '.join(result.choices)}")
    if result.merge.skipped:
        lines.append(f"[yellow]Kept existing:[/yellow] {', '.join(result.merge.skipped)}")
    if result.reconcile is not None:
        lines.append(
            f"[cyan]Recipe:[/cyan] {len(result.reconcile.deleted)} files pruned, "
            f"{len(result.reconcile.moved)} moved"
        )
    console.print(Panel("\n".join(lines), title="[green]Unbox successful[/green]", border_style="green"))


def register_unbox_command(
    app: typer.Typer,
    *,
    console: Console | None = None,
    choose: ChooseFn | None = None,
    confirm: ConfirmFn | None = None,
) -> None:
    """Register the ``unbox`` command on ``app``.

    ``choose`` and ``confirm`` default to the interactive arrow-key selector
    and a yes/no prompt.
    """
    console = console or Console()

    def _choose(message: str, choices: list[str]) -> str:
        if choose is not None:
            return choose(message, choices)
        return choose_variant(message, choices, console=console)

    def _confirm(name: str) -> bool:
        if confirm is not None:
            return confirm(name)
        console.print(f"[yellow]{name} already exists in this directory...[/yellow]")
        return confirm_overwrite(name)

    @app.command("unbox")
    def unbox_command(
        source: str = typer.Argument(..., help="Local box path or GitHub repository (owner/repo[#ref])"),
        destination: Optional[Path] = typer.Argument(None, help="Directory to unbox into (default: current directory)"),
        force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files without asking"),
        option: Optional[str] = typer.Option(
            None, "--option", "-o", help="Comma-separated recipe choices, one per prompt level"
        ),
        no_hooks: bool = typer.Option(False, "--no-hooks", help="Skip the box's post-unpack hook"),
        github_token: Optional[str] = typer.Option(
            None, "--github-token", help="GitHub token for private boxes (or set GH_TOKEN / GITHUB_TOKEN)"
        ),
        debug: bool = typer.Option(False, "--debug", help="Show debug logging"),
    ) -> None:
        """Unpack a box and customize it with the box's recipe."""
        _configure_logging(console, debug)
        settings = BoxkitSettings.from_env(cli_token=github_token)
        target = destination or Path.cwd()

        tracker = StepTracker(f"Unboxing {source}", STEPS)

        try:
            result = unbox(
                source,
                target,
                choose=_choose,
                confirm=_confirm,
                force=force,
                preset_choices=split_option(option),
                run_hooks=not no_hooks,
                settings=settings,
                tracker=tracker,
            )
        except BoxError as exc:
            console.print(tracker.render())
            console.print(Panel(Text(str(exc)), title=f"[red]{type(exc).__name__}[/red]", border_style="red"))
            raise typer.Exit(1)
        except OSError as exc:
            console.print(tracker.render())
            console.print(Panel(Text(str(exc)), title="[red]Filesystem error[/red]", border_style="red"))
            raise typer.Exit(1)

        console.print(tracker.render())
        _print_summary(console, result)
