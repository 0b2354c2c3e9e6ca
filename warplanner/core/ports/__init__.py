"""Port interfaces for hexagonal architecture.

These ports define the contracts between the scoring core and the stores
and live sources that feed it. Adapters implement them; services receive
them by injection so the pure scorers never see a store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from warplanner.contracts.batch import WarLogRows
from warplanner.contracts.history import ActivitySnapshot, AttackRecord, RosterEntry, WarEvent
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.ports.live_source_port import (
    GroupResolverPort,
    RosterSourcePort,
    WarLogSourcePort,
)

__all__ = [
    "GroupResolverPort",
    "HistoryStorePort",
    "RosterSourcePort",
    "SkillProfileStorePort",
    "SnapshotStorePort",
    "WarLogSourcePort",
]


class HistoryStorePort(ABC):
    """Port for historical war rows (attacks, rosters, war metadata)."""

    @abstractmethod
    async def fetch_attacks(
        self, group_id: str | None, since: datetime
    ) -> list[AttackRecord]:
        """Attacks with ``event_end_time >= since``; ``group_id=None`` means all clans."""
        pass

    @abstractmethod
    async def fetch_roster(self, group_id: str, since: datetime) -> list[RosterEntry]:
        """Roster rows for one clan's wars ending at or after ``since``."""
        pass

    @abstractmethod
    async def fetch_war_events(self, group_id: str, since: datetime) -> list[WarEvent]:
        """Per-war metadata (league flag, team size) for one clan."""
        pass

    @abstractmethod
    async def upsert_war_rows(self, group_id: str, rows: WarLogRows) -> int:
        """Idempotently store flattened war-log rows; returns rows written."""
        pass


class SnapshotStorePort(ABC):
    """Port for daily member activity snapshots."""

    @abstractmethod
    async def fetch_snapshots(
        self, since: datetime, group_id: str | None = None
    ) -> list[ActivitySnapshot]:
        """Snapshots taken on or after ``since``, optionally for one clan."""
        pass

    @abstractmethod
    async def upsert_snapshots(self, snapshots: Iterable[ActivitySnapshot]) -> int:
        """Store snapshots keyed by ``(member_id, snapshot_day)``; returns rows written."""
        pass


class SkillProfileStorePort(ABC):
    """Port for the derived skill profile store (last write wins per member)."""

    @abstractmethod
    async def upsert_profiles(self, profiles: Iterable[SkillProfile]) -> int:
        """Replace stored profiles keyed by ``member_id``; returns rows written."""
        pass

    @abstractmethod
    async def get_profiles(self, member_ids: Iterable[str]) -> dict[str, SkillProfile]:
        """Profiles for the given members; unknown ids are simply absent."""
        pass
