"""CLI command modules for boxkit."""

from .unbox import register_unbox_command

__all__ = ["register_unbox_command"]
