"""Terminal helpers for the unbox command: stage progress and recipe prompts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import readchar
import typer
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

# status -> (symbol, symbol style, label style)
_STATUS_STYLES = {
    "pending": ("○", "green dim", "bright_black"),
    "running": ("○", "cyan", "white"),
    "done": ("●", "green", "white"),
    "skipped": ("○", "yellow", "white"),
    "error": ("●", "red", "white"),
}


@dataclass
class _Step:
    key: str
    label: str
    status: str = "pending"
    detail: str = ""


class StepTracker:
    """Status of each unbox stage, rendered as a Rich tree.

    Stages are registered up front, in pipeline order, either through
    ``steps`` or ``add``. Updating a stage that was never registered is an
    error.
    """

    def __init__(self, title: str, steps: Iterable[tuple[str, str]] = ()):
        self.title = title
        self._steps: dict[str, _Step] = {}
        for key, label in steps:
            self.add(key, label)

    def add(self, key: str, label: str) -> None:
        self._steps.setdefault(key, _Step(key, label))

    def start(self, key: str, detail: str = "") -> None:
        self._set(key, "running", detail)

    def complete(self, key: str, detail: str = "") -> None:
        self._set(key, "done", detail)

    def skip(self, key: str, detail: str = "") -> None:
        self._set(key, "skipped", detail)

    def error(self, key: str, detail: str = "") -> None:
        self._set(key, "error", detail)

    def status_of(self, key: str) -> str | None:
        step = self._steps.get(key)
        return step.status if step else None

    def _set(self, key: str, status: str, detail: str) -> None:
        step = self._steps[key]
        step.status = status
        if detail:
            step.detail = detail.strip()

    def render(self) -> Tree:
        tree = Tree(Text(self.title, style="cyan"), guide_style="grey50")
        for step in self._steps.values():
            symbol, symbol_style, label_style = _STATUS_STYLES[step.status]
            line = Text.assemble((symbol, symbol_style), " ", (step.label, label_style))
            if step.detail:
                line.append(f" ({step.detail})", style="bright_black")
            tree.add(line)
        return tree


def get_key() -> str:
    """Read one keypress and name the keys the selector reacts to."""
    key = readchar.readkey()
    if key in (readchar.key.UP, readchar.key.CTRL_P):
        return "up"
    if key in (readchar.key.DOWN, readchar.key.CTRL_N):
        return "down"
    if key == readchar.key.ENTER:
        return "enter"
    if key in (readchar.key.ESC, "\x1b"):
        return "escape"
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt
    return key


def _choice_panel(message: str, choices: list[str], selected: int) -> Panel:
    rows = []
    for index, choice in enumerate(choices):
        if index == selected:
            rows.append(Text.assemble(("▶ ", "cyan"), (choice, "bold cyan")))
        else:
            rows.append(Text.assemble("  ", (choice, "white")))
    rows.append(Text(""))
    rows.append(Text("↑/↓ to move, Enter to pick, Esc to cancel", style="dim"))
    return Panel(Group(*rows), title=Text(message, style="bold"), border_style="cyan", padding=(1, 2))


def choose_variant(message: str, choices: list[str], console: Console | None = None) -> str:
    """Ask which of ``choices`` to take at one level of a box recipe.

    Escape or Ctrl+C cancels the whole unbox with exit code 1.
    """
    console = console or Console()
    selected = 0
    console.print()
    with Live(_choice_panel(message, choices, selected), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                key = "escape"
            if key == "enter":
                return choices[selected]
            if key == "escape":
                console.print("\n[yellow]Unbox cancelled[/yellow]")
                raise typer.Exit(1)
            if key == "up":
                selected = (selected - 1) % len(choices)
            elif key == "down":
                selected = (selected + 1) % len(choices)
            live.update(_choice_panel(message, choices, selected), refresh=True)


def confirm_overwrite(name: str) -> bool:
    """Ask whether an existing destination entry should be overwritten."""
    return typer.confirm(f"Overwrite {name}?", default=False)
