"""Unit tests for SnapshotIngestionService."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from warplanner.adapters.memory_store import InMemoryStore
from warplanner.core.errors import UpstreamUnavailableError
from warplanner.core.services.skill_profile_service import SkillProfileService
from warplanner.core.services.snapshot_ingestion_service import SnapshotIngestionService

TODAY = date(2024, 6, 1)


@pytest.fixture
def store(make_member) -> InMemoryStore:
    store = InMemoryStore()
    store.members["#CLAN"] = [
        make_member("#A", donations=120, donations_received=30, trophies=5100),
        make_member("#B"),
    ]
    store.members["#OTHER"] = [make_member("#C")]
    return store


class TestIngestGroup:
    @pytest.mark.asyncio
    async def test_one_snapshot_per_member(self, store, now) -> None:
        service = SnapshotIngestionService(roster_source=store, snapshot_store=store)

        snapshots = await service.ingest_group("#CLAN", now=now)

        assert [s.member_id for s in snapshots] == ["#A", "#B"]
        first = store.snapshots[("#A", TODAY)]
        assert first.group_id == "#CLAN"
        assert first.member_name == "A"
        assert (first.donations_given, first.donations_received) == (120, 30)
        assert first.trophies == 5100
        assert store.snapshots[("#B", TODAY)].donations_given == 0

    @pytest.mark.asyncio
    async def test_day_is_taken_in_utc(self, store) -> None:
        service = SnapshotIngestionService(store, store)
        # 01:30 on June 2nd in UTC+3 is still June 1st in UTC
        local = datetime(2024, 6, 2, 1, 30, tzinfo=timezone(timedelta(hours=3)))

        snapshots = await service.ingest_group("#CLAN", now=local)

        assert {s.snapshot_day for s in snapshots} == {TODAY}

    @pytest.mark.asyncio
    async def test_same_day_rerun_overwrites(self, store, make_member, now) -> None:
        service = SnapshotIngestionService(store, store)

        await service.ingest_group("#CLAN", now=now)
        store.members["#CLAN"] = [make_member("#A", donations=150)]
        await service.ingest_group("#CLAN", now=now)

        assert len(store.snapshots) == 2
        assert store.snapshots[("#A", TODAY)].donations_given == 150

    @pytest.mark.asyncio
    async def test_empty_roster_skips_the_write(self, now) -> None:
        source = AsyncMock()
        source.get_clan_members.return_value = []
        snapshot_store = AsyncMock()
        service = SnapshotIngestionService(source, snapshot_store)

        assert await service.ingest_group("#QUIET", now=now) == []
        snapshot_store.upsert_snapshots.assert_not_called()

    @pytest.mark.asyncio
    async def test_roster_failure_raises_upstream_unavailable(self, store, now) -> None:
        source = AsyncMock()
        source.get_clan_members.side_effect = ConnectionError("api down")
        service = SnapshotIngestionService(source, store)

        with pytest.raises(UpstreamUnavailableError) as excinfo:
            await service.ingest_group("#CLAN", now=now)

        assert excinfo.value.source == "roster_source"
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_store_failure_raises_upstream_unavailable(self, store, now) -> None:
        snapshot_store = AsyncMock()
        snapshot_store.upsert_snapshots.side_effect = TimeoutError()
        service = SnapshotIngestionService(store, snapshot_store)

        with pytest.raises(UpstreamUnavailableError, match="snapshot_store"):
            await service.ingest_group("#CLAN", now=now)


class TestIngest:
    @pytest.mark.asyncio
    async def test_batch_skips_failing_clan(self, store, now) -> None:
        original = store.get_clan_members

        async def flaky(group_id):
            if group_id == "#BROKEN":
                raise ConnectionError("timeout")
            return await original(group_id)

        store.get_clan_members = flaky
        service = SnapshotIngestionService(store, store)

        result = await service.ingest(["#CLAN", "#BROKEN", "#OTHER"], now=now)

        assert result.processed == 3
        assert result.succeeded == 2
        assert result.failed_items == ["#BROKEN"]
        assert result.rows_written == 3

    @pytest.mark.asyncio
    async def test_daily_snapshots_feed_participation(self, store, now) -> None:
        snapshots = SnapshotIngestionService(store, store)
        for days_back in range(45):
            await snapshots.ingest(["#CLAN"], now=now - timedelta(days=days_back))

        profiles = SkillProfileService(store, store, store)
        await profiles.recompute_for_groups(["#CLAN"], now=now)

        assert store.profiles["#A"].participation == 50
