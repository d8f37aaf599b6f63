from __future__ import annotations

import io

import pytest
import typer
from rich.console import Console

from boxkit.box.unbox import STEPS
from boxkit.cli import ui
from boxkit.cli.ui import StepTracker, choose_variant


def _console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


def _feed_keys(monkeypatch: pytest.MonkeyPatch, keys: list[str]) -> None:
    pending = list(keys)
    monkeypatch.setattr(ui, "get_key", lambda: pending.pop(0))


class TestChooseVariant:
    def test_enter_selects_first_choice(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _feed_keys(monkeypatch, ["enter"])

        assert choose_variant("Language?", ["js", "ts"], console=_console()) == "js"

    def test_arrows_wrap_around(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _feed_keys(monkeypatch, ["up", "enter"])

        assert choose_variant("Language?", ["js", "ts", "py"], console=_console()) == "py"

    def test_other_keys_are_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _feed_keys(monkeypatch, ["down", "x", "enter"])

        assert choose_variant("Language?", ["js", "ts"], console=_console()) == "ts"

    def test_escape_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _feed_keys(monkeypatch, ["down", "escape"])

        with pytest.raises(typer.Exit):
            choose_variant("Language?", ["js", "ts"], console=_console())

    def test_ctrl_c_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def interrupted() -> str:
            raise KeyboardInterrupt

        monkeypatch.setattr(ui, "get_key", interrupted)

        with pytest.raises(typer.Exit):
            choose_variant("Language?", ["js", "ts"], console=_console())


class TestStepTracker:
    def test_stages_start_pending_in_pipeline_order(self) -> None:
        console = _console()
        tracker = StepTracker("Unboxing", STEPS)

        console.print(tracker.render())

        output = console.file.getvalue()
        labels = [label for _, label in STEPS]
        assert [output.index(label) for label in labels] == sorted(output.index(label) for label in labels)
        assert all(tracker.status_of(key) == "pending" for key, _ in STEPS)

    def test_status_transitions(self) -> None:
        tracker = StepTracker("Unboxing", STEPS)

        tracker.start("fetch")
        tracker.complete("fetch", "3 files")
        tracker.skip("recipe", "no recipe")

        assert tracker.status_of("fetch") == "done"
        assert tracker.status_of("recipe") == "skipped"
        assert tracker.status_of("missing") is None

    def test_unregistered_stage_is_rejected(self) -> None:
        tracker = StepTracker("Unboxing", STEPS)

        with pytest.raises(KeyError):
            tracker.start("deploy")

    def test_render_keeps_bracketed_details(self) -> None:
        console = _console()
        tracker = StepTracker("Unboxing", STEPS)
        tracker.error("recipe", "[move] Cannot move absent.txt")

        console.print(tracker.render())

        assert "[move] Cannot move absent.txt" in console.file.getvalue()
