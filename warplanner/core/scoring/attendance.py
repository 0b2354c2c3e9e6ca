"""Attendance / risk analysis over a window of wars.

Pure function over roster, attack and war-metadata rows. The participation
rate is a per-member flag over the whole window (100 if the member used any
attack at all, else 0), not an average across individual wars.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from warplanner.config.settings import Settings
from warplanner.contracts.attendance import (
    AttendanceReport,
    AttendanceSummary,
    AttendanceWindowSummary,
)
from warplanner.contracts.common import ensure_utc
from warplanner.contracts.history import (
    AttackRecord,
    RosterEntry,
    WarEvent,
    expected_attacks_per_event,
)
from warplanner.core.utils.clamp import clamp_score, clamp_window_days, half_up_round

logger = logging.getLogger(__name__)

_MISS_RATE_WEIGHT = 0.7
_NON_PARTICIPATION_WEIGHT = 0.3


class AttendanceConfig(BaseModel):
    """Window bounds and recent-miss penalty for attendance analysis."""

    model_config = ConfigDict(frozen=True)

    default_days: int = 60
    min_days: int = Field(default=7, ge=1)
    max_days: int = Field(default=180, ge=1)
    recent_miss_days: int = Field(default=14, ge=0)
    recent_miss_penalty: int = Field(default=15, ge=0, le=100)

    @classmethod
    def from_settings(cls, settings: Settings) -> AttendanceConfig:
        return cls(
            default_days=settings.attendance_default_days,
            min_days=settings.attendance_min_days,
            max_days=settings.attendance_max_days,
            recent_miss_days=settings.recent_miss_days,
            recent_miss_penalty=settings.recent_miss_penalty,
        )

    def clamp_days(self, days: object) -> int:
        return clamp_window_days(
            days, default=self.default_days, low=self.min_days, high=self.max_days
        )


@dataclass
class _MemberTally:
    member_id: str
    member_name: str
    last_event: datetime
    wars: int = 0
    expected: int = 0
    used: int = 0
    missed: int = 0
    missed_events: list[datetime] = field(default_factory=list)


def calculate_risk(miss_rate: int, participation_rate: int, recent_miss_penalty: int) -> int:
    """Blend miss rate, non-participation and the recent-miss penalty."""
    return clamp_score(
        miss_rate * _MISS_RATE_WEIGHT
        + (100 - participation_rate) * _NON_PARTICIPATION_WEIGHT
        + recent_miss_penalty
    )


def _summarise(
    tally: _MemberTally,
    *,
    total_events: int,
    recent_cutoff: datetime,
    config: AttendanceConfig,
) -> AttendanceSummary:
    participation_rate = clamp_score(100 if tally.used > 0 else 0) if tally.wars > 0 else 0
    miss_rate = half_up_round((tally.missed / tally.expected) * 100) if tally.expected > 0 else 0
    recent_penalty = (
        config.recent_miss_penalty
        if any(event > recent_cutoff for event in tally.missed_events)
        else 0
    )
    return AttendanceSummary(
        member_id=tally.member_id,
        member_name=tally.member_name,
        wars_count=tally.wars,
        total_events=total_events,
        expected_attacks=tally.expected,
        used_attacks=tally.used,
        missed_attacks=tally.missed,
        participation_rate=participation_rate,
        miss_rate=miss_rate,
        risk=calculate_risk(miss_rate, participation_rate, recent_penalty),
        last_event_time=tally.last_event,
    )


def analyze_attendance(
    roster: Iterable[RosterEntry],
    attacks: Iterable[AttackRecord],
    events: Iterable[WarEvent],
    *,
    window_days: object = None,
    now: datetime | None = None,
    config: AttendanceConfig | None = None,
) -> AttendanceReport:
    """Count expected, used and missed attacks per member and score the risk.

    ``window_days`` is clamped into the configured bounds (missing or
    non-numeric values take the default). Wars without metadata count as
    regular wars (two expected attacks). Results are ordered by risk,
    highest first; ties keep roster order.
    """
    config = config or AttendanceConfig()
    now = ensure_utc(now) if now else datetime.now(UTC)
    days = config.clamp_days(window_days)
    since = now - timedelta(days=days)
    recent_cutoff = now - timedelta(days=config.recent_miss_days)

    expected_by_event = {
        event.event_end_time: event.expected_attacks
        for event in events
        if event.event_end_time >= since
    }
    used_by_member = Counter(
        (attack.event_end_time, attack.attacker_id)
        for attack in attacks
        if attack.event_end_time >= since
    )

    tallies: dict[str, _MemberTally] = {}
    seen_events: set[datetime] = set()
    for row in roster:
        event_time = row.event_end_time
        if event_time < since:
            continue
        seen_events.add(event_time)

        expected = expected_by_event.get(event_time, expected_attacks_per_event(False))
        used = used_by_member[(event_time, row.member_id)]
        missed = max(0, expected - used)

        tally = tallies.get(row.member_id)
        if tally is None:
            tally = _MemberTally(
                member_id=row.member_id, member_name=row.member_name, last_event=event_time
            )
            tallies[row.member_id] = tally
        tally.wars += 1
        tally.expected += expected
        tally.used += used
        tally.missed += missed
        if missed > 0:
            tally.missed_events.append(event_time)
        if event_time > tally.last_event:
            tally.last_event = event_time

    results = sorted(
        (
            _summarise(
                tally, total_events=len(seen_events), recent_cutoff=recent_cutoff, config=config
            )
            for tally in tallies.values()
        ),
        key=lambda summary: summary.risk,
        reverse=True,
    )

    avg_miss_rate = half_up_round(np.mean([r.miss_rate for r in results]).item()) if results else 0
    summary = AttendanceWindowSummary(
        window_days=days,
        events_analyzed=len(seen_events),
        members_analyzed=len(results),
        avg_miss_rate=avg_miss_rate,
    )

    logger.debug(
        "attendance_analyzed",
        extra={"window_days": days, "events": len(seen_events), "members": len(results)},
    )
    return AttendanceReport(summary=summary, results=results, generated_at=now)
