"""Attendance / risk report contracts."""

from datetime import datetime

from pydantic import Field

from warplanner.contracts.common import BaseContract


class AttendanceSummary(BaseContract):
    """Missed-attack tally and risk score for one member over the window."""

    member_id: str
    member_name: str = ""
    wars_count: int = Field(ge=0)
    total_events: int = Field(default=0, ge=0)
    expected_attacks: int = Field(ge=0)
    used_attacks: int = Field(ge=0)
    missed_attacks: int = Field(ge=0)
    participation_rate: int = Field(ge=0, le=100)
    miss_rate: int = Field(ge=0)
    risk: int = Field(ge=0, le=100)
    last_event_time: datetime | None = None


class AttendanceWindowSummary(BaseContract):
    window_days: int
    events_analyzed: int = Field(ge=0)
    members_analyzed: int = Field(ge=0)
    avg_miss_rate: int = Field(ge=0)


class AttendanceReport(BaseContract):
    summary: AttendanceWindowSummary
    results: list[AttendanceSummary] = Field(default_factory=list)
    generated_at: datetime
