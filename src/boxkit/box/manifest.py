"""Flatten a resolved recipe leaf into the manifest the destination must match."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from boxkit.box.config import FileSpec, MoveSpec


@dataclass(frozen=True)
class TargetManifest:
    """Files that must exist after reconciliation, plus renames to apply.

    ``paths`` holds every plain path and every move's source; ``moves``
    keeps recipe order.
    """

    paths: frozenset[str]
    moves: tuple[MoveSpec, ...] = ()


def build_manifest(leaf: Iterable[FileSpec], common: Iterable[FileSpec] = ()) -> TargetManifest:
    paths: set[str] = set()
    moves: list[MoveSpec] = []
    for spec in [*leaf, *common]:
        if isinstance(spec, MoveSpec):
            paths.add(spec.source)
            moves.append(spec)
        else:
            paths.add(spec)
    return TargetManifest(paths=frozenset(paths), moves=tuple(moves))


__all__ = ["TargetManifest", "build_manifest"]
