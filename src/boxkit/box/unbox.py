"""The unbox pipeline.

verify source -> fetch into a temp dir -> load box config -> drop ignored
files -> merge into destination -> follow recipe -> post-unpack hook.

Each stage completes before the next starts. A failure aborts the remaining
stages and leaves the destination as the last completed stage left it.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import httpx

from boxkit.box.config import load_box_config
from boxkit.box.hooks import run_post_unpack_hook
from boxkit.box.merge import ConfirmFn, MergeResult, copy_temp_into_destination, prepare_to_copy_files
from boxkit.box.recipe import ChooseFn, follow_box_recipe
from boxkit.box.reconcile import ReconcileReport
from boxkit.box.source import fetch_repository, is_local_source, make_client, verify_source_path
from boxkit.core.config import BoxkitSettings

if TYPE_CHECKING:
    from boxkit.cli.ui import StepTracker

logger = logging.getLogger(__name__)

STEPS: tuple[tuple[str, str], ...] = (
    ("verify", "Verify box source"),
    ("fetch", "Fetch box"),
    ("prepare", "Prepare box files"),
    ("merge", "Copy into destination"),
    ("recipe", "Apply recipe"),
    ("hooks", "Run post-unpack hook"),
)


@dataclass
class UnboxResult:
    destination: Path
    merge: MergeResult
    choices: list[str] = field(default_factory=list)
    reconcile: ReconcileReport | None = None
    hook_ran: bool = False


class _NullTracker:
    def start(self, key: str, detail: str = "") -> None: ...

    def complete(self, key: str, detail: str = "") -> None: ...

    def skip(self, key: str, detail: str = "") -> None: ...

    def error(self, key: str, detail: str = "") -> None: ...


def unbox(
    source: str,
    destination: Path,
    *,
    choose: ChooseFn,
    confirm: ConfirmFn,
    force: bool = False,
    preset_choices: Sequence[str] = (),
    run_hooks: bool = True,
    client: httpx.Client | None = None,
    settings: BoxkitSettings | None = None,
    tracker: "StepTracker | None" = None,
) -> UnboxResult:
    """Unpack ``source`` into ``destination`` and customize it.

    Args:
        source: Local path or GitHub reference of the box.
        destination: Directory to unpack into; created if missing.
        choose: Choice provider for recipe prompts.
        confirm: Asked with the entry name on each collision unless ``force``.
        force: Overwrite colliding entries without asking.
        preset_choices: Recipe choices by depth (the split ``--option`` value).
        run_hooks: Run the box's post-unpack command.
        client: HTTP client for remote sources; one is created when omitted.
        settings: Runtime settings; read from the environment when omitted.
        tracker: Optional step tracker updated as stages complete.
    """
    settings = settings or BoxkitSettings.from_env()
    steps = tracker or _NullTracker()
    destination = destination.expanduser().resolve()

    owns_client = client is None and not is_local_source(source)
    if owns_client:
        client = make_client()
    current = "verify"
    try:
        steps.start("verify", source)
        verify_source_path(source, client=client, settings=settings)
        steps.complete("verify")

        with tempfile.TemporaryDirectory(prefix="boxkit-") as tmp:
            tmp_dir = Path(tmp)

            current = "fetch"
            steps.start("fetch")
            fetch_repository(source, tmp_dir, client=client, settings=settings)
            steps.complete("fetch")

            current = "prepare"
            steps.start("prepare")
            config = load_box_config(tmp_dir)
            removed = prepare_to_copy_files(tmp_dir, config)
            steps.complete("prepare", f"{len(removed)} removed")

            current = "merge"
            steps.start("merge")
            merge = copy_temp_into_destination(tmp_dir, destination, force=force, confirm=confirm)
            steps.complete(
                "merge",
                f"{len(merge.copied)} new, {len(merge.overwritten)} overwritten, {len(merge.skipped)} kept",
            )

        result = UnboxResult(destination=destination, merge=merge)

        current = "recipe"
        steps.start("recipe")
        outcome = follow_box_recipe(config.recipes, destination, preset_choices, choose)
        if outcome is None:
            steps.skip("recipe", "no recipe")
        else:
            result.choices, result.reconcile = outcome
            steps.complete("recipe", " / ".join(result.choices) or "default")

        current = "hooks"
        if not run_hooks:
            steps.skip("hooks", "disabled")
        elif not config.post_unpack:
            steps.skip("hooks", "none defined")
        else:
            steps.start("hooks", config.post_unpack)
            result.hook_ran = run_post_unpack_hook(config, destination)
            steps.complete("hooks")
    except Exception as exc:
        steps.error(current, str(exc))
        raise
    finally:
        if owns_client and client is not None:
            client.close()

    logger.info("Unboxed %s into %s", source, destination)
    return result


__all__ = ["STEPS", "UnboxResult", "unbox"]
