"""CLI helpers exposed for other modules."""

from .ui import StepTracker, choose_variant, confirm_overwrite

__all__ = ["StepTracker", "choose_variant", "confirm_overwrite"]
