"""Reconcile a merged destination tree against a recipe manifest.

Three phases run in a fixed order with no rollback:

1. prune every file whose relative path is not in the manifest,
2. apply the manifest's moves/renames,
3. remove directories left empty (never the destination root).

Moves run after pruning so a freshly placed target is never pruned, and
empty-directory cleanup runs last so directories vacated by either of the
earlier phases are collected.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from boxkit.box.exceptions import ConfigMismatch
from boxkit.box.manifest import TargetManifest

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    deleted: list[str] = field(default_factory=list)
    moved: list[tuple[str, str]] = field(default_factory=list)
    removed_dirs: list[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.deleted or self.moved or self.removed_dirs)


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def traverse_dir(directory: Path) -> list[str]:
    """Return every file below ``directory`` as a POSIX path relative to it.

    Directories are descended into but not listed. Symlinks are listed as
    files and never followed.
    """
    result: list[str] = []

    def _walk(current: Path, relative: tuple[str, ...]) -> None:
        for entry in sorted(current.iterdir(), key=lambda p: p.name):
            entry_relative = relative + (entry.name,)
            if _is_real_dir(entry):
                _walk(entry, entry_relative)
            else:
                result.append("/".join(entry_relative))

    _walk(directory, ())
    return result


def remove_empty_dirs(directory: Path) -> list[str]:
    """Recursively remove all empty directories below ``directory``.

    Children are visited before their parent, so a directory that only
    contained empty directories is removed too. The starting directory
    itself is kept even when it ends up empty.

    Returns:
        The removed directories as POSIX paths relative to ``directory``,
        deepest first.
    """
    removed: list[str] = []
    if not _is_real_dir(directory):
        return removed

    def _collect(current: Path, relative: tuple[str, ...]) -> None:
        for entry in list(current.iterdir()):
            if _is_real_dir(entry):
                _collect(entry, relative + (entry.name,))
        # Re-evaluate after nested removals.
        if relative and not any(current.iterdir()):
            current.rmdir()
            removed.append("/".join(relative))
            logger.debug("Removed empty directory %s", "/".join(relative))

    _collect(directory, ())
    return removed


def _already_moved(destination: Path, source: str, target: str) -> bool:
    return not os.path.lexists(destination / source) and os.path.lexists(destination / target)


def prune_extra_files(destination: Path, manifest: TargetManifest) -> list[str]:
    """Delete every file not named by ``manifest``; return the deleted paths."""
    keep = set(manifest.paths)
    keep.update(mv.target for mv in manifest.moves if _already_moved(destination, mv.source, mv.target))

    deleted: list[str] = []
    for relative in traverse_dir(destination):
        if relative in keep:
            continue
        (destination / relative).unlink()
        deleted.append(relative)
        logger.debug("Pruned %s", relative)
    return deleted


def apply_moves(destination: Path, manifest: TargetManifest) -> list[tuple[str, str]]:
    """Apply every move of ``manifest`` in recipe order.

    Raises:
        ConfigMismatch: If a move's source file does not exist.
    """
    moved: list[tuple[str, str]] = []
    for mv in manifest.moves:
        source = destination / mv.source
        target = destination / mv.target
        if not os.path.lexists(source):
            if os.path.lexists(target):
                logger.info("Move %s -> %s treated as already applied (target exists)", mv.source, mv.target)
                continue
            raise ConfigMismatch(
                f"Cannot move {mv.source} to {mv.target}: {mv.source} does not exist",
                path=mv.source,
                phase="move",
            )
        # Create parent dir of target in case it doesn't exist.
        target.parent.mkdir(parents=True, exist_ok=True)
        source.replace(target)
        moved.append((mv.source, mv.target))
        logger.debug("Moved %s -> %s", mv.source, mv.target)
    return moved


def reconcile(destination: Path, manifest: TargetManifest) -> ReconcileReport:
    """Make the files under ``destination`` match ``manifest`` exactly."""
    report = ReconcileReport()
    report.deleted = prune_extra_files(destination, manifest)
    report.moved = apply_moves(destination, manifest)
    report.removed_dirs = remove_empty_dirs(destination)
    logger.info(
        "Reconciled %s: %d pruned, %d moved, %d empty directories removed",
        destination,
        len(report.deleted),
        len(report.moved),
        len(report.removed_dirs),
    )
    return report


__all__ = [
    "ReconcileReport",
    "apply_moves",
    "prune_extra_files",
    "reconcile",
    "remove_empty_dirs",
    "traverse_dir",
]
