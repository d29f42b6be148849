"""Stage timing for tracked runs."""

from .stage_timer import StageTimer, classify_stage

__all__ = ["StageTimer", "classify_stage"]
