"""Recipe resolution: pick a variant, then reconcile the destination to it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from boxkit.box.config import Branch, FileSpec, Recipe, RecipeScope
from boxkit.box.exceptions import RecipeError
from boxkit.box.manifest import build_manifest
from boxkit.box.reconcile import ReconcileReport, reconcile

logger = logging.getLogger(__name__)

ChooseFn = Callable[[str, list[str]], str]


def split_option(option: str | None) -> list[str]:
    """Split the comma-separated ``--option`` string into preset choices.

    Empty tokens are kept so that every token stays at its depth slot.
    """
    if option is None:
        return []
    return [token.strip() for token in option.split(",")]


def resolve_leaf(
    scope: RecipeScope,
    preset_choices: Sequence[str],
    choose: ChooseFn,
) -> tuple[tuple[FileSpec, ...], list[str]]:
    """Walk ``scope`` down to a leaf.

    Each depth uses its preset choice while presets are still valid. The
    first missing or unknown preset switches to prompting for that depth
    and every depth below it; later presets are never consulted again.
    Presets beyond the depth of the tree are ignored.

    Returns:
        The leaf's file specs and the choice labels taken on the way.
    """
    using_presets = True
    current = scope
    depth = 0
    path: list[str] = []

    while isinstance(current, Branch):
        choices = current.choices
        selected = None
        if using_presets:
            if depth < len(preset_choices) and preset_choices[depth] in choices:
                selected = preset_choices[depth]
                logger.debug("Depth %d: using preset choice %r", depth, selected)
            else:
                using_presets = False

        if selected is None:
            selected = choose(current.message, choices)
            if selected not in choices:
                raise RecipeError(
                    f"Choice {selected!r} is not one of {', '.join(choices)}",
                    phase="recipe",
                )

        path.append(selected)
        current = current.children[selected]
        depth += 1

    return current.files, path


def follow_box_recipe(
    recipe: Recipe | None,
    destination: Path,
    preset_choices: Sequence[str],
    choose: ChooseFn,
) -> tuple[list[str], ReconcileReport] | None:
    """Resolve the recipe variant and reconcile ``destination`` to it.

    Returns None without touching the destination when the box has no
    recipe; otherwise the chosen labels and the reconcile report.
    """
    if recipe is None:
        logger.debug("Box defines no recipe; skipping recipe stage")
        return None

    files, path = resolve_leaf(recipe.specs, preset_choices, choose)
    logger.info("Resolved recipe variant: %s", " / ".join(path) or "(default)")
    manifest = build_manifest(files, recipe.common)
    report = reconcile(destination, manifest)
    return path, report


__all__ = ["ChooseFn", "follow_box_recipe", "resolve_leaf", "split_option"]
