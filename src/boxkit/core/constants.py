"""Shared constants for box layout and remote hosts."""

from __future__ import annotations

# Box config filenames, in lookup order.
BOX_CONFIG_FILENAMES: tuple[str, ...] = ("box.json", "box.yaml", "box.yml")

GITIGNORE_FILENAME = ".gitignore"

GITHUB_RAW_HOST = "raw.githubusercontent.com"
GITHUB_CODELOAD_HOST = "codeload.github.com"

DEFAULT_REF = "master"
DEFAULT_HTTP_TIMEOUT = 30.0

__all__ = [
    "BOX_CONFIG_FILENAMES",
    "DEFAULT_HTTP_TIMEOUT",
    "DEFAULT_REF",
    "GITHUB_CODELOAD_HOST",
    "GITHUB_RAW_HOST",
    "GITIGNORE_FILENAME",
]
