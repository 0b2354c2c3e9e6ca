"""In-process implementation of every port.

Backs unit tests and local runs without Postgres or the game API. Keys
mirror the database primary keys, so re-ingesting the same rows
overwrites instead of duplicating.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from warplanner.contracts.batch import WarLogRows
from warplanner.contracts.history import ActivitySnapshot, AttackRecord, RosterEntry, WarEvent
from warplanner.contracts.roster import LiveMember, LiveWar
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.ports import (
    GroupResolverPort,
    HistoryStorePort,
    RosterSourcePort,
    SkillProfileStorePort,
    SnapshotStorePort,
    WarLogSourcePort,
)


class InMemoryStore(
    HistoryStorePort,
    SnapshotStorePort,
    SkillProfileStorePort,
    RosterSourcePort,
    WarLogSourcePort,
    GroupResolverPort,
):
    def __init__(self) -> None:
        self.events: dict[tuple[str, datetime], WarEvent] = {}
        self.roster: dict[tuple[str, datetime, str], RosterEntry] = {}
        self.attacks: dict[tuple[str, datetime, str, int], AttackRecord] = {}
        self.snapshots: dict[tuple[str, Any], ActivitySnapshot] = {}
        self.profiles: dict[str, SkillProfile] = {}
        self.members: dict[str, list[LiveMember]] = {}
        self.wars: dict[str, LiveWar] = {}
        self.war_logs: dict[str, list[dict[str, Any]]] = {}
        # user_id -> (active linked clan, own profile clan)
        self.user_groups: dict[str, tuple[str | None, str | None]] = {}

    # seeding helpers

    def add_attacks(self, attacks: Iterable[AttackRecord]) -> None:
        for attack in attacks:
            key = (attack.group_id or "", attack.event_end_time, attack.attacker_id)
            self.attacks[(*key, attack.order_num)] = attack

    def add_roster(self, entries: Iterable[RosterEntry]) -> None:
        for entry in entries:
            self.roster[(entry.group_id, entry.event_end_time, entry.member_id)] = entry

    def add_events(self, events: Iterable[WarEvent]) -> None:
        for event in events:
            self.events[(event.group_id, event.event_end_time)] = event

    def add_snapshots(self, snapshots: Iterable[ActivitySnapshot]) -> None:
        for snap in snapshots:
            self.snapshots[(snap.member_id, snap.snapshot_day)] = snap

    def link_user(
        self, user_id: str, *, active_group: str | None = None, own_group: str | None = None
    ) -> None:
        self.user_groups[user_id] = (active_group, own_group)

    # HistoryStorePort

    async def fetch_attacks(self, group_id: str | None, since: datetime) -> list[AttackRecord]:
        return [
            a
            for a in self.attacks.values()
            if a.event_end_time >= since and (group_id is None or a.group_id == group_id)
        ]

    async def fetch_roster(self, group_id: str, since: datetime) -> list[RosterEntry]:
        return [
            r for r in self.roster.values() if r.group_id == group_id and r.event_end_time >= since
        ]

    async def fetch_war_events(self, group_id: str, since: datetime) -> list[WarEvent]:
        return [
            e for e in self.events.values() if e.group_id == group_id and e.event_end_time >= since
        ]

    async def upsert_war_rows(self, group_id: str, rows: WarLogRows) -> int:
        self.add_events(rows.events)
        self.add_roster(rows.roster)
        self.add_attacks(
            a if a.group_id else a.model_copy(update={"group_id": group_id}) for a in rows.attacks
        )
        return rows.row_count

    # SnapshotStorePort

    async def fetch_snapshots(
        self, since: datetime, group_id: str | None = None
    ) -> list[ActivitySnapshot]:
        since_day = since.date()
        return [
            s
            for s in self.snapshots.values()
            if s.snapshot_day >= since_day and (group_id is None or s.group_id == group_id)
        ]

    async def upsert_snapshots(self, snapshots: Iterable[ActivitySnapshot]) -> int:
        snapshots = list(snapshots)
        self.add_snapshots(snapshots)
        return len(snapshots)

    # SkillProfileStorePort

    async def upsert_profiles(self, profiles: Iterable[SkillProfile]) -> int:
        written = 0
        for profile in profiles:
            self.profiles[profile.member_id] = profile
            written += 1
        return written

    async def get_profiles(self, member_ids: Iterable[str]) -> dict[str, SkillProfile]:
        return {mid: self.profiles[mid] for mid in member_ids if mid in self.profiles}

    # RosterSourcePort / WarLogSourcePort

    async def get_clan_members(self, group_id: str) -> list[LiveMember]:
        return list(self.members.get(group_id, []))

    async def get_current_war(self, group_id: str) -> LiveWar | None:
        return self.wars.get(group_id)

    async def get_war_log(self, group_id: str) -> list[dict[str, Any]]:
        return list(self.war_logs.get(group_id, []))

    # GroupResolverPort

    async def resolve_group_id(self, user_id: str) -> str | None:
        active, own = self.user_groups.get(user_id, (None, None))
        return active or own

    async def tracked_group_ids(self) -> list[str]:
        groups: set[str] = set()
        for active, own in self.user_groups.values():
            groups.update(g for g in (active, own) if g)
        return sorted(groups)
