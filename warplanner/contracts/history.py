"""History rows consumed by the scoring core.

These mirror the shape the history and snapshot stores hand back; the
stores own persistence, the core only reads them.
"""

from datetime import date, datetime

from pydantic import Field, field_validator

from warplanner.contracts.common import RowContract, ensure_utc


class AttackRecord(RowContract):
    """A single historical war attack."""

    group_id: str | None = Field(default=None, description="Clan tag of the attacking side")
    event_end_time: datetime = Field(description="End time of the war the attack belongs to")
    attacker_id: str
    attacker_name: str | None = None
    defender_id: str | None = None
    stars: int = Field(ge=0, le=3)
    destruction_percent: float = Field(ge=0.0, le=100.0)
    order_num: int = Field(default=1, ge=0)
    is_league_format: bool = False
    map_position: int | None = None

    @field_validator("event_end_time")
    @classmethod
    def normalise_event_end(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def expected_attacks(self) -> int:
        return expected_attacks_per_event(self.is_league_format)


class RosterEntry(RowContract):
    """One member's slot in one war."""

    event_end_time: datetime
    group_id: str
    member_id: str
    member_name: str = ""
    map_position: int | None = None

    @field_validator("event_end_time")
    @classmethod
    def normalise_event_end(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ActivitySnapshot(RowContract):
    """Daily member activity snapshot (one per member per day)."""

    snapshot_day: date
    member_id: str
    member_name: str | None = None
    group_id: str | None = None
    donations_given: int = Field(default=0, ge=0)
    donations_received: int = Field(default=0, ge=0)
    war_stars: int | None = None
    trophies: int | None = None


class WarEvent(RowContract):
    """Per-war metadata: format flag, size and the headline result."""

    group_id: str
    event_end_time: datetime
    is_league_format: bool = False
    team_size: int | None = None
    opponent_id: str | None = None
    result: str | None = None
    stars: int | None = None
    destruction_percent: float | None = None
    attacks_used: int | None = None
    opponent_stars: int | None = None
    opponent_destruction_percent: float | None = None

    @field_validator("event_end_time")
    @classmethod
    def normalise_event_end(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def expected_attacks(self) -> int:
        return expected_attacks_per_event(self.is_league_format)


def expected_attacks_per_event(is_league_format: bool) -> int:
    """League wars give one attack per member, regular wars two."""
    return 1 if is_league_format else 2
