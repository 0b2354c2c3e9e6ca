"""Pytest configuration and shared fixtures for the war planner tests.

Row factories keep test data terse: every helper fills the fields a test
does not care about with neutral values.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from warplanner.contracts.history import AttackRecord, RosterEntry, WarEvent
from warplanner.contracts.roster import LiveMember
from warplanner.contracts.skill_profile import SkillProfile

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixed clock shared by every test."""
    return NOW


@pytest.fixture
def days_ago(now: datetime) -> Callable[[float], datetime]:
    def _days_ago(days: float) -> datetime:
        return now - timedelta(days=days)

    return _days_ago


@pytest.fixture
def make_attack() -> Callable[..., AttackRecord]:
    def _make(
        attacker_id: str, stars: int, event_end_time: datetime, **kwargs: Any
    ) -> AttackRecord:
        fields: dict[str, Any] = {
            "group_id": "#CLAN",
            "destruction_percent": {0: 20.0, 1: 55.0, 2: 80.0, 3: 100.0}[stars],
        }
        fields.update(kwargs)
        return AttackRecord(
            attacker_id=attacker_id, stars=stars, event_end_time=event_end_time, **fields
        )

    return _make


@pytest.fixture
def make_roster() -> Callable[..., RosterEntry]:
    def _make(member_id: str, event_end_time: datetime, **kwargs: Any) -> RosterEntry:
        fields: dict[str, Any] = {"group_id": "#CLAN", "member_name": member_id.strip("#")}
        fields.update(kwargs)
        return RosterEntry(member_id=member_id, event_end_time=event_end_time, **fields)

    return _make


@pytest.fixture
def make_event() -> Callable[..., WarEvent]:
    def _make(event_end_time: datetime, is_league_format: bool = False, **kwargs: Any) -> WarEvent:
        return WarEvent(
            group_id=kwargs.pop("group_id", "#CLAN"),
            event_end_time=event_end_time,
            is_league_format=is_league_format,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_profile(now: datetime) -> Callable[..., SkillProfile]:
    def _make(member_id: str, **scores: int) -> SkillProfile:
        fields: dict[str, Any] = {
            "offense_skill": 0,
            "cleanup_skill": 0,
            "consistency": 0,
            "clutch": 0,
            "participation": 0,
            "capital_efficiency": 50,
            "updated_at": now,
        }
        fields.update(scores)
        return SkillProfile(member_id=member_id, **fields)

    return _make


@pytest.fixture
def make_member() -> Callable[..., LiveMember]:
    def _make(
        member_id: str, town_hall_level: int = 0, map_position: int = 0, **kwargs: Any
    ) -> LiveMember:
        return LiveMember(
            id=member_id,
            name=kwargs.pop("name", member_id.strip("#")),
            town_hall_level=town_hall_level,
            map_position=map_position,
            **kwargs,
        )

    return _make
