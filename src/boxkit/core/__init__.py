"""Core utilities and configuration exports."""

from .config import BoxkitSettings
from .constants import (
    BOX_CONFIG_FILENAMES,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_REF,
    GITHUB_CODELOAD_HOST,
    GITHUB_RAW_HOST,
    GITIGNORE_FILENAME,
)

__all__ = [
    "BOX_CONFIG_FILENAMES",
    "BoxkitSettings",
    "DEFAULT_HTTP_TIMEOUT",
    "DEFAULT_REF",
    "GITHUB_CODELOAD_HOST",
    "GITHUB_RAW_HOST",
    "GITIGNORE_FILENAME",
]
