"""InMemoryStore behaves like the database adapter for keys and filters."""

import pytest

from warplanner.adapters.memory_store import InMemoryStore
from warplanner.contracts.batch import WarLogRows
from warplanner.contracts.history import ActivitySnapshot


@pytest.mark.asyncio
async def test_history_filters_by_group_and_time(make_attack, make_roster, days_ago) -> None:
    store = InMemoryStore()
    store.add_attacks(
        [
            make_attack("#A", 3, days_ago(1)),
            make_attack("#B", 2, days_ago(1), group_id="#OTHER"),
            make_attack("#A", 1, days_ago(50)),
        ]
    )
    store.add_roster([make_roster("#A", days_ago(1)), make_roster("#A", days_ago(50))])

    assert len(await store.fetch_attacks("#CLAN", days_ago(10))) == 1
    assert len(await store.fetch_attacks(None, days_ago(10))) == 2
    assert len(await store.fetch_roster("#CLAN", days_ago(60))) == 2


@pytest.mark.asyncio
async def test_war_rows_fill_missing_attack_group(make_attack, days_ago) -> None:
    store = InMemoryStore()
    rows = WarLogRows(attacks=[make_attack("#A", 3, days_ago(1), group_id=None)])

    assert await store.upsert_war_rows("#CLAN", rows) == 1
    assert [a.group_id for a in await store.fetch_attacks("#CLAN", days_ago(2))] == ["#CLAN"]


@pytest.mark.asyncio
async def test_profiles_last_write_wins(make_profile) -> None:
    store = InMemoryStore()

    await store.upsert_profiles([make_profile("#A", offense_skill=10)])
    await store.upsert_profiles([make_profile("#A", offense_skill=90)])

    profiles = await store.get_profiles(["#A", "#UNKNOWN"])
    assert list(profiles) == ["#A"]
    assert profiles["#A"].offense_skill == 90


@pytest.mark.asyncio
async def test_group_links() -> None:
    store = InMemoryStore()
    store.link_user("u1", active_group="#LINKED", own_group="#OWN")
    store.link_user("u2", own_group="#OWN")

    assert await store.resolve_group_id("u1") == "#LINKED"
    assert await store.resolve_group_id("u2") == "#OWN"
    assert await store.resolve_group_id("nobody") is None
    assert await store.tracked_group_ids() == ["#LINKED", "#OWN"]


@pytest.mark.asyncio
async def test_snapshots_keyed_by_member_and_day(now) -> None:
    store = InMemoryStore()
    day = now.date()
    first = ActivitySnapshot(snapshot_day=day, member_id="#A", group_id="#CLAN")
    later = ActivitySnapshot(snapshot_day=day, member_id="#A", group_id="#CLAN", trophies=10)

    assert await store.upsert_snapshots([first]) == 1
    assert await store.upsert_snapshots(iter([later])) == 1

    assert await store.fetch_snapshots(now, "#CLAN") == [later]
