"""Interaction state of the analysis view."""

from cardnet.interaction.view_state import MAX_SCALE, MIN_SCALE, Transform, ViewState

__all__ = ["Transform", "ViewState", "MIN_SCALE", "MAX_SCALE"]
