"""Merge an extracted box into a possibly non-empty destination directory.

Top-level entries that only exist in the box are copied. Entries present
on both sides (collisions) are overwritten when ``force`` is set, otherwise
the ``confirm`` callback decides per entry. Decisions are based on names
only; file contents are never compared.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from boxkit.box.config import BoxConfig
from boxkit.core.constants import BOX_CONFIG_FILENAMES

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


@dataclass
class MergeResult:
    copied: list[str] = field(default_factory=list)
    overwritten: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _remove_path(path: Path) -> None:
    if _is_real_dir(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        path.unlink()


def _copy_entry(source: Path, target: Path) -> None:
    """Copy a file or directory tree, merging into existing directories.

    Files and symlinks replace whatever sits at ``target``; an existing
    symlink is unlinked, never written through. Directories merge entry
    by entry into a real directory at ``target``.
    """
    if _is_real_dir(source):
        if os.path.lexists(target) and not _is_real_dir(target):
            _remove_path(target)
        target.mkdir(exist_ok=True)
        for entry in sorted(source.iterdir(), key=lambda p: p.name):
            _copy_entry(entry, target / entry.name)
        shutil.copystat(source, target)
    else:
        if os.path.lexists(target):
            _remove_path(target)
        shutil.copy2(source, target, follow_symlinks=False)


def prepare_to_copy_files(tmp_dir: Path, config: BoxConfig) -> list[str]:
    """Remove ignored paths and the box config files from ``tmp_dir``.

    Missing paths are skipped. Returns the paths that were removed.
    """
    removed: list[str] = []
    for relative in (*config.ignore, *BOX_CONFIG_FILENAMES):
        path = tmp_dir / relative
        if path.exists() or path.is_symlink():
            _remove_path(path)
            removed.append(relative)
            logger.debug("Removed %s before merge", relative)
    return removed


def copy_temp_into_destination(
    tmp_dir: Path,
    destination: Path,
    *,
    force: bool = False,
    confirm: ConfirmFn | None = None,
) -> MergeResult:
    """Copy the box in ``tmp_dir`` into ``destination``.

    Args:
        tmp_dir: Directory holding the extracted, prepared box.
        destination: Target directory; created if missing.
        force: Overwrite every collision without asking.
        confirm: Called with the colliding entry name; True overwrites it.
            Required unless ``force`` is set.

    Returns:
        Names copied fresh, overwritten and skipped.
    """
    if not force and confirm is None:
        raise ValueError("confirm callback is required unless force is set")

    destination.mkdir(parents=True, exist_ok=True)
    box_contents = sorted(entry.name for entry in tmp_dir.iterdir())
    destination_contents = {entry.name for entry in destination.iterdir()}
    collisions = [name for name in box_contents if name in destination_contents]
    logger.debug("Merging %d entries into %s (%d collisions)", len(box_contents), destination, len(collisions))

    result = MergeResult()
    for name in box_contents:
        source = tmp_dir / name
        target = destination / name

        if name not in destination_contents:
            _copy_entry(source, target)
            result.copied.append(name)
            continue

        if force:
            _copy_entry(source, target)
            result.overwritten.append(name)
            continue

        logger.info("%s already exists in this directory...", name)
        if confirm(name):
            _remove_path(target)
            _copy_entry(source, target)
            result.overwritten.append(name)
        else:
            result.skipped.append(name)

    return result


__all__ = ["ConfirmFn", "MergeResult", "copy_temp_into_destination", "prepare_to_copy_files"]
