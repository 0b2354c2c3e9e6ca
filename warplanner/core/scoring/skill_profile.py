"""Skill Profile Aggregator - pure domain functions with zero I/O.

Turns raw war attacks and daily activity snapshots into one
:class:`SkillProfile` per member. Every sub-score is rounded half-up and
clamped to 0-100.

CRITICAL: This module MUST NOT contain any:
- Database operations
- Game API calls
- Settings lookups (pass a SkillScoringConfig instead)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from warplanner.config.settings import Settings
from warplanner.contracts.common import ensure_utc
from warplanner.contracts.history import ActivitySnapshot, AttackRecord
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.utils.clamp import clamp_score, safe_ratio

logger = logging.getLogger(__name__)

# A steady 3-star attacker lands at 99.
_OFFENSE_STAR_SCALE = 33
_CLEANUP_MIN_STARS = 2
_CLUTCH_STARS = 3
_CONSISTENCY_MIDPOINT = 50


class SkillScoringConfig(BaseModel):
    """Tunables for a profile recompute run."""

    model_config = ConfigDict(frozen=True)

    window_days: int = Field(default=90, ge=1)
    capital_efficiency_default: int = Field(default=50, ge=0, le=100)

    @classmethod
    def from_settings(cls, settings: Settings) -> SkillScoringConfig:
        return cls(
            window_days=settings.skills_window_days,
            capital_efficiency_default=settings.capital_efficiency_default,
        )


@dataclass
class _MemberHistory:
    attacks: list[AttackRecord] = field(default_factory=list)
    snapshot_days: set[date] = field(default_factory=set)


def calculate_offense_skill(attacks: list[AttackRecord]) -> int:
    """Average stars per attack scaled by 33."""
    total_stars = sum(a.stars for a in attacks)
    return clamp_score(safe_ratio(total_stars, len(attacks)) * _OFFENSE_STAR_SCALE)


def calculate_cleanup_skill(attacks: list[AttackRecord]) -> int:
    """Share of attacks that landed at least two stars."""
    hits = sum(1 for a in attacks if a.stars >= _CLEANUP_MIN_STARS)
    return clamp_score(safe_ratio(hits, len(attacks)) * 100)


def calculate_clutch(attacks: list[AttackRecord]) -> int:
    """Share of attacks that landed three stars."""
    triples = sum(1 for a in attacks if a.stars == _CLUTCH_STARS)
    return clamp_score(safe_ratio(triples, len(attacks)) * 100)


def calculate_participation(days_present: int, window_days: int) -> int:
    """Share of the window's days with an activity snapshot."""
    return clamp_score(safe_ratio(days_present, window_days) * 100)


def calculate_consistency(offense_skill: int) -> int:
    """Symmetric penalty around the offense midpoint.

    Not a variance measure; a member at offense 50 scores 100 and the score
    falls off linearly towards 0 and 100 offense.
    """
    return clamp_score(100 - abs(_CONSISTENCY_MIDPOINT - offense_skill))


def _group_by_member(
    attacks: Iterable[AttackRecord],
    snapshots: Iterable[ActivitySnapshot],
    since: datetime,
) -> dict[str, _MemberHistory]:
    histories: dict[str, _MemberHistory] = {}
    since_day = since.date()

    for snap in snapshots:
        if snap.snapshot_day <= since_day:
            continue
        histories.setdefault(snap.member_id, _MemberHistory()).snapshot_days.add(
            snap.snapshot_day
        )

    for attack in attacks:
        if attack.event_end_time < since:
            continue
        histories.setdefault(attack.attacker_id, _MemberHistory()).attacks.append(attack)

    return histories


def build_skill_profile(
    member_id: str,
    attacks: list[AttackRecord],
    snapshot_days: int,
    *,
    updated_at: datetime,
    config: SkillScoringConfig,
) -> SkillProfile:
    """Score a single member from their already-windowed history."""
    offense = calculate_offense_skill(attacks)
    return SkillProfile(
        member_id=member_id,
        offense_skill=offense,
        cleanup_skill=calculate_cleanup_skill(attacks),
        consistency=calculate_consistency(offense),
        clutch=calculate_clutch(attacks),
        participation=calculate_participation(snapshot_days, config.window_days),
        capital_efficiency=clamp_score(config.capital_efficiency_default),
        total_attacks=len(attacks),
        updated_at=updated_at,
    )


def build_skill_profiles(
    attacks: Iterable[AttackRecord],
    snapshots: Iterable[ActivitySnapshot],
    *,
    now: datetime | None = None,
    config: SkillScoringConfig | None = None,
) -> list[SkillProfile]:
    """Aggregate attack and snapshot rows into per-member skill profiles.

    Rows older than ``config.window_days`` before ``now`` are ignored.
    Snapshot days count from the day after that cutoff up to and including
    the day of ``now``, so the window holds exactly ``window_days`` days. Every
    member seen in either input gets a full profile; a member with only
    snapshots gets zero offense, cleanup and clutch (consistency then sits at
    50) and a member with only attacks gets zero participation.
    An empty window yields an empty list.

    Output order follows first appearance (snapshots, then attacks), so the
    same rows and ``now`` always give an identical result.
    """
    config = config or SkillScoringConfig()
    now = ensure_utc(now) if now else datetime.now(UTC)
    since = now - timedelta(days=config.window_days)

    histories = _group_by_member(attacks, snapshots, since)
    profiles = [
        build_skill_profile(
            member_id,
            history.attacks,
            len(history.snapshot_days),
            updated_at=now,
            config=config,
        )
        for member_id, history in histories.items()
    ]

    logger.debug(
        "skill_profiles_built",
        extra={"members": len(profiles), "window_days": config.window_days},
    )
    return profiles
