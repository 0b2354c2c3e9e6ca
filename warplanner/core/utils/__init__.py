"""Shared helpers for the scoring core."""

from warplanner.core.utils.clamp import (
    clamp,
    clamp_score,
    clamp_team_size,
    clamp_window_days,
    half_up_round,
    safe_ratio,
)

__all__ = [
    "clamp",
    "clamp_score",
    "clamp_team_size",
    "clamp_window_days",
    "half_up_round",
    "safe_ratio",
]
