"""Per-clan planning views: attendance risk, lineup selection, target plan.

Each call is request-scoped: fetch rows through the ports, hand them to the
pure scorer, return the scorer's result. Profiles may be arbitrarily stale;
nothing here waits on a recompute.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from warplanner.contracts.attendance import AttendanceReport
from warplanner.contracts.common import ensure_utc
from warplanner.contracts.roster import LineupSelection, TargetPlan
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.errors import NotInGroupError, NotInWarError, UpstreamUnavailableError
from warplanner.core.observability import trace_service
from warplanner.core.ports import (
    GroupResolverPort,
    HistoryStorePort,
    RosterSourcePort,
    SkillProfileStorePort,
)
from warplanner.core.scoring.attendance import AttendanceConfig, analyze_attendance
from warplanner.core.scoring.lineup import LineupConfig, select_lineup
from warplanner.core.scoring.targets import plan_targets

logger = logging.getLogger(__name__)


class WarPlanningService:
    """Read-side service behind the attendance, selection and targets views."""

    def __init__(
        self,
        *,
        history_store: HistoryStorePort,
        roster_source: RosterSourcePort,
        profile_store: SkillProfileStorePort,
        group_resolver: GroupResolverPort | None = None,
        attendance_config: AttendanceConfig | None = None,
        lineup_config: LineupConfig | None = None,
    ) -> None:
        self.history = history_store
        self.roster = roster_source
        self.profiles = profile_store
        self.resolver = group_resolver
        self.attendance_config = attendance_config or AttendanceConfig()
        self.lineup_config = lineup_config or LineupConfig()

    async def resolve_group(self, user_id: str) -> str:
        """Clan tag for a user.

        Raises:
            NotInGroupError: The user has no clan association.
            UpstreamUnavailableError: The lookup itself failed.
        """
        if self.resolver is None:
            raise NotInGroupError(user_id)
        try:
            group_id = await self.resolver.resolve_group_id(user_id)
        except Exception as exc:
            raise UpstreamUnavailableError("group_resolver", user_id, str(exc)) from exc
        if not group_id:
            raise NotInGroupError(user_id)
        return group_id

    @trace_service
    async def attendance_report(
        self, group_id: str, *, days: object = None, now: datetime | None = None
    ) -> AttendanceReport:
        now = ensure_utc(now) if now else datetime.now(UTC)
        window_days = self.attendance_config.clamp_days(days)
        since = now - timedelta(days=window_days)

        try:
            roster = await self.history.fetch_roster(group_id, since)
            attacks = await self.history.fetch_attacks(group_id, since)
            events = await self.history.fetch_war_events(group_id, since)
        except Exception as exc:
            raise UpstreamUnavailableError("history_store", group_id, str(exc)) from exc

        return analyze_attendance(
            roster,
            attacks,
            events,
            window_days=window_days,
            now=now,
            config=self.attendance_config,
        )

    @trace_service
    async def lineup(
        self, group_id: str, *, team_size: object = None, now: datetime | None = None
    ) -> LineupSelection:
        try:
            members = await self.roster.get_clan_members(group_id)
        except Exception as exc:
            raise UpstreamUnavailableError("roster_source", group_id, str(exc)) from exc

        profiles = await self._profiles_for(group_id, (m.id for m in members))
        return select_lineup(
            members, profiles, team_size=team_size, now=now, config=self.lineup_config
        )

    @trace_service
    async def target_plan(self, group_id: str, *, now: datetime | None = None) -> TargetPlan:
        """Greedy target plan for the clan's live war.

        Raises:
            NotInWarError: No live war, or the war state is ``notInWar``.
            UpstreamUnavailableError: Live war or profile lookup failed.
        """
        try:
            war = await self.roster.get_current_war(group_id)
        except Exception as exc:
            raise UpstreamUnavailableError("roster_source", group_id, str(exc)) from exc
        if war is None or not war.is_active:
            raise NotInWarError(group_id)

        profiles = await self._profiles_for(group_id, (m.id for m in war.our_members))
        return plan_targets(war, profiles, now=now)

    async def _profiles_for(
        self, group_id: str, member_ids: Iterable[str]
    ) -> dict[str, SkillProfile]:
        try:
            return await self.profiles.get_profiles(list(member_ids))
        except Exception as exc:
            raise UpstreamUnavailableError("skill_profile_store", group_id, str(exc)) from exc
