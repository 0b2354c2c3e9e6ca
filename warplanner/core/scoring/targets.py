"""Target assignment for a live war.

Greedy heuristic, not an optimal bipartite matching. Attackers are taken in
descending composite order and each one commits to the best-scoring
defender still free, scanning defenders in a fixed order (town hall
descending, then map position ascending). Only a strictly higher score
replaces the current pick, so on equal scores the earlier defender wins.
Callers rely on this exact ordering; do not swap in a min-cost solver.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime

from warplanner.contracts.common import ensure_utc
from warplanner.contracts.roster import (
    Assignment,
    AssignmentRationale,
    AttackerScores,
    LiveMember,
    LiveWar,
    PlannedAttacker,
    TargetPlan,
    WarHeader,
)
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.utils.clamp import clamp, half_up_round

logger = logging.getLogger(__name__)

# Attacker composite weights sum to 1.0.
ATTACKER_OFFENSE_WEIGHT = 0.5
ATTACKER_CLUTCH_WEIGHT = 0.3
ATTACKER_CONSISTENCY_WEIGHT = 0.2

_MATCH_OFFENSE_WEIGHT = 1.0
_MATCH_CLUTCH_WEIGHT = 0.2
_MATCH_TH_DIFF_WEIGHT = 15

_BASE_STARS = 1.5
_STARS_OFFENSE_PIVOT = 50
_STARS_TH_DIFF_WEIGHT = 0.25
_MAX_STARS = 3

_NO_PICK_SCORE = -1e9


def attacker_composite(offense: int, clutch: int, consistency: int) -> int:
    return half_up_round(
        offense * ATTACKER_OFFENSE_WEIGHT
        + clutch * ATTACKER_CLUTCH_WEIGHT
        + consistency * ATTACKER_CONSISTENCY_WEIGHT
    )


def score_attacker(member: LiveMember, skill: SkillProfile | None) -> PlannedAttacker:
    offense = skill.offense_skill if skill else 0
    clutch = skill.clutch if skill else 0
    consistency = skill.consistency if skill else 0
    return PlannedAttacker(
        member=member,
        scores=AttackerScores(
            offense=offense,
            clutch=clutch,
            consistency=consistency,
            composite=attacker_composite(offense, clutch, consistency),
        ),
    )


def rank_attackers(
    members: Iterable[LiveMember],
    profiles: Mapping[str, SkillProfile],
    team_size: int,
) -> list[PlannedAttacker]:
    """Our members by composite, best first, cut to the team size."""
    scored = [score_attacker(member, profiles.get(member.id)) for member in members]
    scored.sort(key=lambda a: a.scores.composite, reverse=True)
    return scored[: max(0, team_size)]


def order_defenders(members: Iterable[LiveMember]) -> list[LiveMember]:
    """Opponents by town hall descending, then map position ascending."""
    return sorted(members, key=lambda d: (-d.town_hall_level, d.map_position))


def matchup_score(attacker: PlannedAttacker, defender: LiveMember) -> float:
    th_diff = attacker.member.town_hall_level - defender.town_hall_level
    return (
        attacker.scores.offense * _MATCH_OFFENSE_WEIGHT
        + attacker.scores.clutch * _MATCH_CLUTCH_WEIGHT
        + th_diff * _MATCH_TH_DIFF_WEIGHT
    )


def predict_stars(offense: int, th_diff: int) -> float:
    """Expected stars in [0, 3], unrounded."""
    return clamp(
        _BASE_STARS
        + (offense - _STARS_OFFENSE_PIVOT) / _STARS_OFFENSE_PIVOT
        + th_diff * _STARS_TH_DIFF_WEIGHT,
        0,
        _MAX_STARS,
    )


def assign_targets(
    attackers: list[PlannedAttacker], defenders: list[LiveMember]
) -> tuple[list[Assignment], set[int]]:
    """Single greedy pass; returns the assignments and the taken defender indexes.

    An attacker left without a free defender gets no assignment and is
    omitted from the result.
    """
    taken: set[int] = set()
    assignments: list[Assignment] = []

    for attacker in attackers:
        best_idx = -1
        best_score = _NO_PICK_SCORE
        best_pred = 0.0
        for idx, defender in enumerate(defenders):
            if idx in taken:
                continue
            score = matchup_score(attacker, defender)
            if score > best_score:
                th_diff = attacker.member.town_hall_level - defender.town_hall_level
                best_idx = idx
                best_score = score
                best_pred = predict_stars(attacker.scores.offense, th_diff)

        if best_idx < 0:
            continue

        defender = defenders[best_idx]
        taken.add(best_idx)
        assignments.append(
            Assignment(
                attacker=attacker,
                defender=defender,
                predicted_stars=half_up_round(best_pred * 10) / 10,
                rationale=AssignmentRationale(
                    th_diff=attacker.member.town_hall_level - defender.town_hall_level,
                    offense=attacker.scores.offense,
                    clutch=attacker.scores.clutch,
                ),
            )
        )

    return assignments, taken


def resolve_team_size(war: LiveWar) -> int:
    """Declared team size, else the smaller side."""
    return war.team_size or min(len(war.our_members), len(war.opponent_members))


def plan_targets(
    war: LiveWar,
    profiles: Mapping[str, SkillProfile],
    *,
    now: datetime | None = None,
) -> TargetPlan:
    """Build the attacker lineup, greedy assignments and alternates for a war.

    Alternates are the defenders left unassigned, in defender order, capped
    at ``team_size - len(assignments)``.
    """
    team_size = resolve_team_size(war)
    attackers = rank_attackers(war.our_members, profiles, team_size)
    defenders = order_defenders(war.opponent_members)

    assignments, taken = assign_targets(attackers, defenders)
    open_slots = max(0, team_size - len(assignments))
    alternates = [d for idx, d in enumerate(defenders) if idx not in taken][:open_slots]

    logger.debug(
        "targets_planned",
        extra={
            "team_size": team_size,
            "attackers": len(attackers),
            "defenders": len(defenders),
            "assignments": len(assignments),
        },
    )
    return TargetPlan(
        war=WarHeader(
            state=war.state,
            team_size=team_size,
            opponent_name=war.opponent_name,
            opponent_tag=war.opponent_tag,
        ),
        lineup=attackers,
        assignments=assignments,
        alternates=alternates,
        generated_at=ensure_utc(now) if now else datetime.now(UTC),
    )
