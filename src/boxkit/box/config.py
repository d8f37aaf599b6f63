"""Box configuration: typed recipe model and config file loading.

A box ships an optional ``box.json`` (or ``box.yaml``) at its root::

    {
      "ignore": ["README.md"],
      "recipes": {
        "specs": {"js": ["a.js"], "ts": ["a.ts", {"from": "tpl.txt", "to": "src/tpl.txt"}]},
        "common": ["package.json"],
        "prompts": [{"message": "Which language?"}]
      },
      "hooks": {"post-unpack": "npm install"}
    }

Recipe scopes are parsed into explicit :class:`Branch` / :class:`Leaf`
values here, so the rest of the pipeline never has to sniff shapes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, Union

import yaml

from boxkit.box.exceptions import BoxConfigError, ConfigMismatch
from boxkit.core.constants import BOX_CONFIG_FILENAMES

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_MESSAGE = "Select a variant"


# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MoveSpec:
    """Rename/move of ``source`` to ``target``, both relative to the destination."""

    source: str
    target: str


FileSpec = Union[str, MoveSpec]


@dataclass(frozen=True)
class Leaf:
    files: tuple[FileSpec, ...]


@dataclass(frozen=True)
class Branch:
    children: dict[str, "RecipeScope"]
    message: str = DEFAULT_PROMPT_MESSAGE

    @property
    def choices(self) -> list[str]:
        return list(self.children)


RecipeScope = Union[Branch, Leaf]


@dataclass(frozen=True)
class Recipe:
    specs: RecipeScope
    common: tuple[FileSpec, ...] = ()


@dataclass(frozen=True)
class BoxConfig:
    ignore: tuple[str, ...] = ()
    recipes: Recipe | None = None
    post_unpack: str = ""
    source_file: Path | None = field(default=None, compare=False)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def normalize_relative_path(raw: Any, *, phase: str = "config") -> str:
    """Return ``raw`` as a normalized POSIX path relative to the destination.

    Raises:
        ConfigMismatch: If the path is empty, absolute or escapes via ``..``.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigMismatch(f"Expected a non-empty relative path, got {raw!r}", path=raw, phase=phase)

    text = raw.strip().replace("\\", "/")
    if PureWindowsPath(text).drive or PurePosixPath(text).is_absolute():
        raise ConfigMismatch(f"Absolute paths are not allowed: {raw}", path=raw, phase=phase)

    parts = [part for part in PurePosixPath(text).parts if part not in ("", ".")]
    if ".." in parts:
        raise ConfigMismatch(f"Path escapes the destination: {raw}", path=raw, phase=phase)
    if not parts:
        raise ConfigMismatch(f"Path refers to the destination root: {raw}", path=raw, phase=phase)
    return "/".join(parts)


def parse_file_spec(entry: Any) -> FileSpec:
    """Parse a plain path string or a ``{"from": ..., "to": ...}`` mapping."""
    if isinstance(entry, str):
        return normalize_relative_path(entry, phase="recipe")
    if isinstance(entry, dict) and set(entry) == {"from", "to"}:
        return MoveSpec(
            source=normalize_relative_path(entry["from"], phase="recipe"),
            target=normalize_relative_path(entry["to"], phase="recipe"),
        )
    raise ConfigMismatch(
        f"Invalid file spec {entry!r}: expected a path or a {{from, to}} mapping",
        phase="recipe",
    )


def _parse_file_specs(entries: Any, where: str) -> tuple[FileSpec, ...]:
    if not isinstance(entries, list):
        raise BoxConfigError(f"{where} must be a list of file specs", phase="recipe")
    return tuple(parse_file_spec(entry) for entry in entries)


def _parse_prompts(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise BoxConfigError("recipes.prompts must be a list", phase="recipe")
    messages: list[str] = []
    for item in raw:
        if isinstance(item, dict) and isinstance(item.get("message"), str):
            messages.append(item["message"])
        elif isinstance(item, str):
            messages.append(item)
        else:
            raise BoxConfigError(f"Invalid prompt entry {item!r}: expected {{message}}", phase="recipe")
    return tuple(messages)


def _parse_scope(data: Any, prompts: tuple[str, ...], trail: tuple[str, ...]) -> RecipeScope:
    where = "recipes.specs" + "".join(f"[{key!r}]" for key in trail)
    if isinstance(data, list):
        return Leaf(files=_parse_file_specs(data, where))
    if isinstance(data, dict):
        if not data:
            raise BoxConfigError(f"{where} has no choices", phase="recipe")
        depth = len(trail)
        message = prompts[depth] if depth < len(prompts) else DEFAULT_PROMPT_MESSAGE
        children = {str(key): _parse_scope(value, prompts, trail + (str(key),)) for key, value in data.items()}
        return Branch(children=children, message=message)
    raise BoxConfigError(f"{where} must be a mapping of choices or a list of file specs", phase="recipe")


def parse_recipe(data: Any) -> Recipe | None:
    """Parse the ``recipes`` section. An empty or missing section yields None."""
    if not data:
        return None
    if not isinstance(data, dict):
        raise BoxConfigError("recipes must be a mapping", phase="recipe")
    if "specs" not in data:
        raise BoxConfigError("recipes is missing 'specs'", phase="recipe")

    prompts = _parse_prompts(data.get("prompts"))
    return Recipe(
        specs=_parse_scope(data["specs"], prompts, ()),
        common=_parse_file_specs(data.get("common") or [], "recipes.common"),
    )


def parse_box_config(data: Any, source_file: Path | None = None) -> BoxConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise BoxConfigError(f"Box config must be a mapping, got {type(data).__name__}", path=source_file)

    ignore_raw = data.get("ignore") or []
    if not isinstance(ignore_raw, list):
        raise BoxConfigError("ignore must be a list of paths", path=source_file)
    ignore = tuple(normalize_relative_path(item, phase="ignore") for item in ignore_raw)

    hooks = data.get("hooks") or {}
    if not isinstance(hooks, dict):
        raise BoxConfigError("hooks must be a mapping", path=source_file)
    post_unpack = hooks.get("post-unpack") or ""
    if not isinstance(post_unpack, str):
        raise BoxConfigError("hooks.post-unpack must be a command string", path=source_file)

    return BoxConfig(
        ignore=ignore,
        recipes=parse_recipe(data.get("recipes")),
        post_unpack=post_unpack.strip(),
        source_file=source_file,
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def find_box_config(directory: Path) -> Path | None:
    """Return the first box config file present in ``directory``."""
    for name in BOX_CONFIG_FILENAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_box_config(directory: Path) -> BoxConfig:
    """Load the box config of an extracted box, defaulting when absent.

    Raises:
        BoxConfigError: If the file exists but cannot be parsed.
    """
    config_path = find_box_config(directory)
    if config_path is None:
        logger.debug("No box config in %s, using defaults", directory)
        return BoxConfig()

    text = config_path.read_text(encoding="utf-8")
    try:
        if config_path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise BoxConfigError(f"Could not parse {config_path.name}: {exc}", path=config_path) from exc

    config = parse_box_config(data, source_file=config_path)
    logger.debug("Loaded box config from %s", config_path)
    return config


__all__ = [
    "BoxConfig",
    "Branch",
    "DEFAULT_PROMPT_MESSAGE",
    "FileSpec",
    "Leaf",
    "MoveSpec",
    "Recipe",
    "RecipeScope",
    "find_box_config",
    "load_box_config",
    "normalize_relative_path",
    "parse_box_config",
    "parse_file_spec",
    "parse_recipe",
]
