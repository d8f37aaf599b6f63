"""Exception hierarchy for unboxing templates."""

from __future__ import annotations

from pathlib import Path


class BoxError(Exception):
    """Base exception for unbox errors."""
    pass


class SourceNotFound(BoxError):
    """The box source does not exist (local path or remote repository)."""

    def __init__(self, source: str, message: str | None = None):
        self.source = source
        super().__init__(message or f"Box at {source} doesn't exist.")


class ConnectivityError(BoxError):
    """A network request failed for reasons other than a missing box."""

    def __init__(self, url: str, detail: str = ""):
        self.url = url
        message = (
            f"Error connecting to {url}. "
            f"Please check your internet connection and try again."
        )
        if detail:
            message = f"{message}\n\n{detail}"
        super().__init__(message)


class ConfigMismatch(BoxError):
    """The box configuration does not match the files it describes.

    Raised for malformed file specs, paths escaping the destination and
    move operations whose source file is missing.
    """

    def __init__(self, message: str, path: str | Path | None = None, phase: str | None = None):
        self.path = str(path) if path is not None else None
        self.phase = phase
        prefix = f"[{phase}] " if phase else ""
        super().__init__(f"{prefix}{message}")


class BoxConfigError(ConfigMismatch):
    """The box config file could not be read or has the wrong shape."""


class RecipeError(ConfigMismatch):
    """A recipe choice could not be resolved."""


class HookError(BoxError):
    """A post-unpack hook exited with a non-zero status."""

    def __init__(self, command: str, returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"Post-unpack hook `{command}` failed with exit code {returncode}")
