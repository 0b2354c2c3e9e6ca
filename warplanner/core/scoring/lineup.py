"""Lineup selection from the current member list.

Ranks every member by a fixed-weight composite of skill sub-scores and
splits the ranking into lineup and bench. Openers and cleanup specialists
are independent rankings over all members, not filters of the lineup.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from warplanner.config.settings import Settings
from warplanner.contracts.common import ensure_utc
from warplanner.contracts.roster import LineupEntry, LineupScores, LineupSelection, LiveMember
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.utils.clamp import clamp_team_size, half_up_round

logger = logging.getLogger(__name__)

# Composite weights sum to 1.0 so the composite stays within 0-100.
COMPOSITE_OFFENSE_WEIGHT = 0.4
COMPOSITE_CONSISTENCY_WEIGHT = 0.25
COMPOSITE_CLUTCH_WEIGHT = 0.2
COMPOSITE_PARTICIPATION_WEIGHT = 0.15

_OPENER_OFFENSE_WEIGHT = 0.7
_OPENER_CLUTCH_WEIGHT = 0.3
_CLEANUP_WEIGHT = 0.6
_CLEANUP_CONSISTENCY_WEIGHT = 0.4

_MIN_ROLE_PICKS = 3
_ROLE_PICK_SHARE = 0.2


class LineupConfig(BaseModel):
    """Team-size bounds for lineup selection."""

    model_config = ConfigDict(frozen=True)

    default_team_size: int = 15
    min_team_size: int = Field(default=5, ge=1)
    max_team_size: int = Field(default=50, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> LineupConfig:
        return cls(
            default_team_size=settings.lineup_default_team_size,
            min_team_size=settings.lineup_min_team_size,
            max_team_size=settings.lineup_max_team_size,
        )

    def clamp_team_size(self, team_size: object) -> int:
        return clamp_team_size(
            team_size,
            default=self.default_team_size,
            low=self.min_team_size,
            high=self.max_team_size,
        )


def lineup_composite(offense: int, consistency: int, clutch: int, participation: int) -> int:
    return half_up_round(
        offense * COMPOSITE_OFFENSE_WEIGHT
        + consistency * COMPOSITE_CONSISTENCY_WEIGHT
        + clutch * COMPOSITE_CLUTCH_WEIGHT
        + participation * COMPOSITE_PARTICIPATION_WEIGHT
    )


def opener_rating(scores: LineupScores) -> float:
    return scores.offense * _OPENER_OFFENSE_WEIGHT + scores.clutch * _OPENER_CLUTCH_WEIGHT


def cleanup_rating(scores: LineupScores) -> float:
    return scores.cleanup * _CLEANUP_WEIGHT + scores.consistency * _CLEANUP_CONSISTENCY_WEIGHT


def role_pick_count(team_size: int) -> int:
    """How many openers / cleanup specialists to name for a team size."""
    return max(_MIN_ROLE_PICKS, math.ceil(team_size * _ROLE_PICK_SHARE))


def score_member(member: LiveMember, skill: SkillProfile | None) -> LineupEntry:
    """Build a ranked entry; members without a profile score all zeros."""
    if skill is None:
        return LineupEntry(member=member, skill=None, scores=LineupScores())

    scores = LineupScores(
        offense=skill.offense_skill,
        consistency=skill.consistency,
        clutch=skill.clutch,
        participation=skill.participation,
        cleanup=skill.cleanup_skill,
        capital=skill.capital_efficiency,
        composite=lineup_composite(
            skill.offense_skill, skill.consistency, skill.clutch, skill.participation
        ),
    )
    return LineupEntry(member=member, skill=skill, scores=scores)


def _top(
    entries: list[LineupEntry], key: Callable[[LineupScores], float], count: int
) -> list[LineupEntry]:
    # sorted() is stable, so equal ratings keep member-list order
    return sorted(entries, key=lambda e: key(e.scores), reverse=True)[:count]


def select_lineup(
    members: Iterable[LiveMember],
    profiles: Mapping[str, SkillProfile],
    *,
    team_size: object = None,
    now: datetime | None = None,
    config: LineupConfig | None = None,
) -> LineupSelection:
    """Pick the starting lineup, bench, openers and cleanup specialists.

    ``team_size`` is clamped into the configured bounds. With fewer members
    than the team size the whole roster makes the lineup and the bench is
    empty.
    """
    config = config or LineupConfig()
    size = config.clamp_team_size(team_size)
    entries = [score_member(member, profiles.get(member.id)) for member in members]

    ranked = sorted(entries, key=lambda e: e.scores.composite, reverse=True)
    picks = role_pick_count(size)

    selection = LineupSelection(
        team_size=size,
        lineup=ranked[:size],
        bench=ranked[size:],
        openers=_top(entries, opener_rating, picks),
        cleanup_specialists=_top(entries, cleanup_rating, picks),
        generated_at=ensure_utc(now) if now else datetime.now(UTC),
    )
    logger.debug(
        "lineup_selected",
        extra={"team_size": size, "members": len(entries), "bench": len(selection.bench)},
    )
    return selection
