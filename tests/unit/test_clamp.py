"""Unit tests for the shared rounding and clamping helpers."""

import math

import pytest

from warplanner.core.utils.clamp import (
    clamp,
    clamp_score,
    clamp_team_size,
    clamp_window_days,
    half_up_round,
    safe_ratio,
)


class TestHalfUpRound:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(2.5, 3), (3.5, 4), (2.4999, 2), (-2.5, -2), (-2.6, -3), (0.0, 0), (33.333, 33)],
    )
    def test_ties_round_towards_positive_infinity(self, value: float, expected: int) -> None:
        assert half_up_round(value) == expected

    def test_differs_from_bankers_rounding(self) -> None:
        assert round(2.5) == 2
        assert half_up_round(2.5) == 3


class TestClampScore:
    def test_within_range_is_rounded(self) -> None:
        assert clamp_score(66.5) == 67

    def test_clamps_both_ends(self) -> None:
        assert clamp_score(100.6) == 100
        assert clamp_score(-3) == 0

    def test_returns_int(self) -> None:
        assert isinstance(clamp_score(42.0), int)


def test_clamp_float_bounds() -> None:
    assert clamp(3.7, 0, 3) == 3
    assert clamp(-0.1, 0, 3) == 0
    assert clamp(1.25, 0, 3) == 1.25


def test_safe_ratio_floors_denominator_at_one() -> None:
    assert safe_ratio(5, 0) == 5
    assert safe_ratio(3, 4) == 0.75


class TestClampWindowDays:
    @pytest.mark.parametrize("value", [None, "", "abc", 0, "0", False, math.nan, [], {}])
    def test_missing_or_non_numeric_falls_back_to_default(self, value: object) -> None:
        assert clamp_window_days(value) == 60

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(3, 7), (-5, 7), (500, 180), (30, 30), ("30", 30), (30.9, 30), ("45.5", 45)],
    )
    def test_out_of_range_values_are_clamped(self, value: object, expected: int) -> None:
        assert clamp_window_days(value) == expected

    def test_infinities_go_to_the_bounds(self) -> None:
        assert clamp_window_days(math.inf) == 180
        assert clamp_window_days(-math.inf) == 7

    def test_custom_bounds(self) -> None:
        assert clamp_window_days(None, default=90, low=30, high=120) == 90
        assert clamp_window_days(10, default=90, low=30, high=120) == 30

    def test_default_outside_bounds_is_clamped_too(self) -> None:
        assert clamp_window_days(None, default=365, low=7, high=180) == 180


class TestClampTeamSize:
    def test_default(self) -> None:
        assert clamp_team_size(None) == 15
        assert clamp_team_size("lots") == 15

    @pytest.mark.parametrize(("value", "expected"), [(2, 5), (99, 50), ("20", 20), (10, 10)])
    def test_bounds(self, value: object, expected: int) -> None:
        assert clamp_team_size(value) == expected
