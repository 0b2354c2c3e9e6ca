"""Rounding and clamping helpers shared by every scorer.

Scores are rounded half-up (``2.5 -> 3``, ``-2.5 -> -2``) rather than with
Python's banker's rounding so that stored profiles and plans match the
values the dashboards have always shown.
"""

from __future__ import annotations

import math
from typing import Any, Final

SCORE_MIN: Final[int] = 0
SCORE_MAX: Final[int] = 100


def half_up_round(value: float) -> int:
    """Round to the nearest integer, ties towards +infinity."""

    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``."""

    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    """Round half-up and clamp into the 0-100 score range."""

    return int(clamp(half_up_round(value), SCORE_MIN, SCORE_MAX))


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide with the denominator floored at 1."""

    return numerator / max(1, denominator)


def clamp_window_days(value: Any, *, default: int = 60, low: int = 7, high: int = 180) -> int:
    """Coerce a caller-supplied day window into ``[low, high]``.

    Missing, zero or non-numeric input falls back to ``default``; out of
    range values are clamped rather than rejected.
    """

    return _bounded_int(value, default=default, low=low, high=high)


def clamp_team_size(value: Any, *, default: int = 15, low: int = 5, high: int = 50) -> int:
    """Coerce a requested team size into ``[low, high]`` (same rules as days)."""

    return _bounded_int(value, default=default, low=low, high=high)


def _bounded_int(value: Any, *, default: int, low: int, high: int) -> int:
    number = _to_number(value)
    if not number:
        return int(clamp(default, low, high))
    if math.isinf(number):
        return high if number > 0 else low
    return int(clamp(int(number), low, high))


def _to_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number
