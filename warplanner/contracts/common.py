"""
Common data types and base models for the war planner.
All models use Pydantic V2 with strict type checking.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class BaseContract(BaseModel):
    """Base model for all data contracts with common configuration."""

    model_config = ConfigDict(
        # Validate data on assignment
        validate_assignment=True,
        # Use enum values in JSON
        use_enum_values=True,
        # Forbid extra fields to ensure data integrity
        extra="forbid",
    )


class RowContract(BaseModel):
    """Immutable historical row (attacks, rosters, snapshots)."""

    model_config = ConfigDict(frozen=True, extra="forbid")
