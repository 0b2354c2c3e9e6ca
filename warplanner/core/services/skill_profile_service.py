"""Skill profile recompute service.

Fetches the trailing window of attacks and snapshots, runs the aggregator
and upserts the result. Recomputing is idempotent per member, so repeated
or concurrent runs over the same rows converge without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from warplanner.contracts.batch import BatchResult
from warplanner.contracts.common import ensure_utc
from warplanner.contracts.history import ActivitySnapshot, AttackRecord
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.errors import UpstreamUnavailableError
from warplanner.core.observability import trace_service
from warplanner.core.ports import HistoryStorePort, SkillProfileStorePort, SnapshotStorePort
from warplanner.core.scoring.skill_profile import SkillScoringConfig, build_skill_profiles

logger = logging.getLogger(__name__)


class SkillProfileService:
    """Recomputes and stores member skill profiles."""

    def __init__(
        self,
        history_store: HistoryStorePort,
        snapshot_store: SnapshotStorePort,
        profile_store: SkillProfileStorePort,
        config: SkillScoringConfig | None = None,
    ) -> None:
        self.history = history_store
        self.snapshots = snapshot_store
        self.profiles = profile_store
        self.config = config or SkillScoringConfig()

    @trace_service
    async def recompute(
        self, group_id: str | None = None, *, now: datetime | None = None
    ) -> list[SkillProfile]:
        """Rebuild profiles for one clan (or every clan when ``group_id`` is None).

        With a ``group_id`` only that clan's attacks are scored; use
        :meth:`recompute_for_groups` for members who attack for several clans.

        Raises:
            UpstreamUnavailableError: A source fetch or the profile upsert failed.
        """
        now = ensure_utc(now) if now else datetime.now(UTC)
        since = now - timedelta(days=self.config.window_days)

        try:
            attacks = await self.history.fetch_attacks(group_id, since)
            snapshots = await self.snapshots.fetch_snapshots(since, group_id)
        except Exception as exc:
            raise UpstreamUnavailableError("history_store", group_id, str(exc)) from exc

        profiles = build_skill_profiles(attacks, snapshots, now=now, config=self.config)
        if not profiles:
            logger.info("skill_recompute_empty_window", extra={"group_id": group_id})
            return profiles

        try:
            await self.profiles.upsert_profiles(profiles)
        except Exception as exc:
            raise UpstreamUnavailableError("skill_profile_store", group_id, str(exc)) from exc

        logger.info(
            "skill_profiles_recomputed",
            extra={"group_id": group_id, "profiles": len(profiles), "attacks": len(attacks)},
        )
        return profiles

    async def recompute_for_groups(
        self, group_ids: Iterable[str], *, now: datetime | None = None
    ) -> BatchResult:
        """Recompute profiles from the pooled rows of every clan.

        Rows are fetched clan by clan; a clan whose fetch fails is counted
        and skipped. The aggregator then runs once over everything that
        arrived, so a member who attacked for several clans gets one profile
        from all of their attacks regardless of clan order.

        Raises:
            UpstreamUnavailableError: The profile upsert failed.
        """
        now = ensure_utc(now) if now else datetime.now(UTC)
        since = now - timedelta(days=self.config.window_days)

        result = BatchResult()
        attacks: list[AttackRecord] = []
        snapshots: list[ActivitySnapshot] = []
        for group_id in dict.fromkeys(group_ids):
            try:
                group_attacks = await self.history.fetch_attacks(group_id, since)
                group_snapshots = await self.snapshots.fetch_snapshots(since, group_id)
            except Exception as exc:
                logger.warning(
                    "skill_recompute_item_failed",
                    extra={
                        "group_id": group_id,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
                result.record_failure(group_id)
                continue
            attacks.extend(group_attacks)
            snapshots.extend(group_snapshots)
            result.record_success()

        profiles = build_skill_profiles(attacks, snapshots, now=now, config=self.config)
        if profiles:
            try:
                result.rows_written = await self.profiles.upsert_profiles(profiles)
            except Exception as exc:
                raise UpstreamUnavailableError("skill_profile_store", None, str(exc)) from exc

        logger.info("skill_recompute_batch_finished", extra=result.model_dump())
        return result
