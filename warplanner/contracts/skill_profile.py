"""Derived per-member skill profile."""

from datetime import datetime

from pydantic import Field, field_validator

from warplanner.contracts.common import RowContract, ensure_utc


class SkillProfile(RowContract):
    """Normalised 0-100 sub-scores for one member.

    Profiles are recomputed wholesale and overwritten by ``member_id``;
    no history is kept.
    """

    member_id: str
    offense_skill: int = Field(ge=0, le=100)
    cleanup_skill: int = Field(ge=0, le=100)
    consistency: int = Field(ge=0, le=100)
    clutch: int = Field(ge=0, le=100)
    participation: int = Field(ge=0, le=100)
    capital_efficiency: int = Field(ge=0, le=100)
    total_attacks: int = Field(default=0, ge=0)
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def normalise_updated_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)
