from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> content) under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


def read_tree(root: Path) -> dict[str, str]:
    """Return every file under ``root`` as relative POSIX path -> content."""
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture()
def make_tree() -> Callable[[Path, dict[str, str]], Path]:
    return write_tree


@pytest.fixture()
def make_box(tmp_path: Path) -> Callable[..., Path]:
    """Build a local box directory with a ``box.json`` and the given files."""

    def _make(files: dict[str, str], config: dict | None = None, name: str = "box") -> Path:
        root = write_tree(tmp_path / name, files)
        (root / "box.json").write_text(json.dumps(config or {}), encoding="utf-8")
        return root

    return _make


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove boxkit-related environment variables."""
    for name in ("BOXKIT_GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN", "BOXKIT_DEFAULT_REF", "BOXKIT_HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def snapshot_tree() -> Callable[[Path], dict[str, str]]:
    return read_tree
