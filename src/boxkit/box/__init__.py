"""Unpacking boxes: fetch, merge and recipe reconciliation.

This subpackage holds the whole unbox pipeline; the CLI layer only
supplies the interactive choice and confirm callbacks.
"""

from boxkit.box.config import (
    BoxConfig,
    Branch,
    Leaf,
    MoveSpec,
    Recipe,
    load_box_config,
    parse_box_config,
    parse_recipe,
)
from boxkit.box.exceptions import (
    BoxConfigError,
    BoxError,
    ConfigMismatch,
    ConnectivityError,
    HookError,
    RecipeError,
    SourceNotFound,
)
from boxkit.box.manifest import TargetManifest, build_manifest
from boxkit.box.merge import MergeResult, copy_temp_into_destination, prepare_to_copy_files
from boxkit.box.recipe import follow_box_recipe, resolve_leaf, split_option
from boxkit.box.reconcile import ReconcileReport, reconcile, remove_empty_dirs, traverse_dir
from boxkit.box.source import IgnoreRules, fetch_repository, load_ignore_rules, verify_source_path
from boxkit.box.unbox import UnboxResult, unbox

__all__ = [
    "BoxConfig",
    "BoxConfigError",
    "BoxError",
    "Branch",
    "ConfigMismatch",
    "ConnectivityError",
    "HookError",
    "IgnoreRules",
    "Leaf",
    "MergeResult",
    "MoveSpec",
    "Recipe",
    "RecipeError",
    "ReconcileReport",
    "SourceNotFound",
    "TargetManifest",
    "UnboxResult",
    "build_manifest",
    "copy_temp_into_destination",
    "fetch_repository",
    "follow_box_recipe",
    "load_box_config",
    "load_ignore_rules",
    "parse_box_config",
    "parse_recipe",
    "prepare_to_copy_files",
    "reconcile",
    "remove_empty_dirs",
    "resolve_leaf",
    "split_option",
    "traverse_dir",
    "unbox",
    "verify_source_path",
]
