"""Daily member snapshots: record who is in each clan on each UTC day.

The participation score counts snapshot days, so this job has to run at
least once a day. Re-running it on the same day overwrites that day's row.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime

from warplanner.contracts.batch import BatchResult
from warplanner.contracts.common import ensure_utc
from warplanner.contracts.history import ActivitySnapshot
from warplanner.contracts.roster import LiveMember
from warplanner.core.errors import UpstreamUnavailableError
from warplanner.core.observability import trace_service
from warplanner.core.ports import RosterSourcePort, SnapshotStorePort

logger = logging.getLogger(__name__)


def member_snapshot(group_id: str, member: LiveMember, day: date) -> ActivitySnapshot:
    return ActivitySnapshot(
        snapshot_day=day,
        member_id=member.id,
        member_name=member.name or None,
        group_id=group_id,
        donations_given=member.donations or 0,
        donations_received=member.donations_received or 0,
        trophies=member.trophies,
    )


class SnapshotIngestionService:
    def __init__(self, roster_source: RosterSourcePort, snapshot_store: SnapshotStorePort) -> None:
        self.roster = roster_source
        self.snapshots = snapshot_store

    @trace_service
    async def ingest_group(
        self, group_id: str, *, now: datetime | None = None
    ) -> list[ActivitySnapshot]:
        """Snapshot one clan's current members for today (UTC).

        Raises:
            UpstreamUnavailableError: The roster could not be fetched or stored.
        """
        day = (ensure_utc(now) if now else datetime.now(UTC)).date()
        try:
            members = await self.roster.get_clan_members(group_id)
        except Exception as exc:
            raise UpstreamUnavailableError("roster_source", group_id, str(exc)) from exc

        snapshots = [member_snapshot(group_id, m, day) for m in members]
        if snapshots:
            try:
                await self.snapshots.upsert_snapshots(snapshots)
            except Exception as exc:
                raise UpstreamUnavailableError("snapshot_store", group_id, str(exc)) from exc
        return snapshots

    async def ingest(
        self, group_ids: Iterable[str], *, now: datetime | None = None
    ) -> BatchResult:
        result = BatchResult()
        for group_id in group_ids:
            try:
                snapshots = await self.ingest_group(group_id, now=now)
            except Exception as exc:
                logger.warning(
                    "member_snapshot_item_failed",
                    extra={
                        "group_id": group_id,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
                result.record_failure(group_id)
                continue
            result.record_success(len(snapshots))

        logger.info("member_snapshot_batch_finished", extra=result.model_dump())
        return result
