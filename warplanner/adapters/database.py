"""Database adapter using asyncpg for PostgreSQL.

Implements the history, snapshot and skill-profile store ports plus the
group lookups behind :class:`GroupResolverPort`. Reads raise on failure so
services can translate them into ``UpstreamUnavailableError``; writes run in
a transaction and are idempotent (``ON CONFLICT ... DO UPDATE``).
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import asyncpg

from warplanner.config.settings import settings
from warplanner.contracts.batch import WarLogRows
from warplanner.contracts.history import ActivitySnapshot, AttackRecord, RosterEntry, WarEvent
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.observability import trace_adapter
from warplanner.core.ports import (
    GroupResolverPort,
    HistoryStorePort,
    SkillProfileStorePort,
    SnapshotStorePort,
)

logger = logging.getLogger(__name__)

_ATTACK_COLUMNS = (
    "group_id, event_end_time, attacker_id, attacker_name, defender_id, stars, "
    "destruction_percent, order_num, is_league_format, map_position"
)
_ROSTER_COLUMNS = "event_end_time, group_id, member_id, member_name, map_position"
_EVENT_COLUMNS = (
    "group_id, event_end_time, is_league_format, team_size, opponent_id, result, stars, "
    "destruction_percent, attacks_used, opponent_stars, opponent_destruction_percent"
)
_SNAPSHOT_COLUMNS = (
    "snapshot_day, member_id, member_name, group_id, donations_given, donations_received, "
    "war_stars, trophies"
)
_PROFILE_COLUMNS = (
    "member_id, offense_skill, cleanup_skill, consistency, clutch, participation, "
    "capital_efficiency, total_attacks, updated_at"
)


class DatabaseAdapter(
    HistoryStorePort, SnapshotStorePort, SkillProfileStorePort, GroupResolverPort
):
    """Database adapter implementation using asyncpg.

    Features:
    - Async connection pooling shared by the services and batch tasks
    - Timezone-aware timestamps throughout
    - Bulk upserts via ``executemany`` inside a single transaction
    """

    def __init__(self) -> None:
        self._pool: Any = None  # asyncpg.Pool (untyped library)
        logger.info("Database adapter initialized")

    async def connect(self) -> None:
        """Create the connection pool and make sure the schema exists.

        This should be called once per process (or once per task run).
        """
        if self._pool is not None:
            logger.warning("Database pool already exists")
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=settings.database_url,
                min_size=1,
                max_size=settings.database_pool_size,
                max_inactive_connection_lifetime=300,
                command_timeout=settings.database_pool_timeout,
            )
            logger.info("Database connection pool created successfully")

            await self._initialize_schema()

        except Exception as e:
            logger.error(f"Failed to create database pool: {e}")
            raise

    async def disconnect(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection pool closed")

    def _require_pool(self) -> Any:
        if not self._pool:
            raise RuntimeError("Database pool not initialized")
        return self._pool

    async def _initialize_schema(self) -> None:
        """Create tables if they don't exist (mirrors the alembic revision)."""
        pool = self._require_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS war_events (
                    group_id VARCHAR(32) NOT NULL,
                    event_end_time TIMESTAMPTZ NOT NULL,
                    is_league_format BOOLEAN NOT NULL DEFAULT FALSE,
                    team_size INTEGER,
                    opponent_id VARCHAR(32),
                    result VARCHAR(16),
                    stars INTEGER,
                    destruction_percent DOUBLE PRECISION,
                    attacks_used INTEGER,
                    opponent_stars INTEGER,
                    opponent_destruction_percent DOUBLE PRECISION,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (group_id, event_end_time)
                );

                CREATE INDEX IF NOT EXISTS idx_war_events_end_time
                ON war_events(event_end_time DESC);
            """
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS war_rosters (
                    group_id VARCHAR(32) NOT NULL,
                    event_end_time TIMESTAMPTZ NOT NULL,
                    member_id VARCHAR(32) NOT NULL,
                    member_name VARCHAR(64) NOT NULL DEFAULT '',
                    map_position INTEGER,
                    PRIMARY KEY (group_id, event_end_time, member_id)
                );
            """
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS war_attacks (
                    group_id VARCHAR(32) NOT NULL,
                    event_end_time TIMESTAMPTZ NOT NULL,
                    attacker_id VARCHAR(32) NOT NULL,
                    attacker_name VARCHAR(64),
                    defender_id VARCHAR(32),
                    stars SMALLINT NOT NULL CHECK (stars BETWEEN 0 AND 3),
                    destruction_percent DOUBLE PRECISION NOT NULL
                        CHECK (destruction_percent BETWEEN 0 AND 100),
                    order_num INTEGER NOT NULL DEFAULT 1,
                    is_league_format BOOLEAN NOT NULL DEFAULT FALSE,
                    map_position INTEGER,
                    PRIMARY KEY (group_id, event_end_time, attacker_id, order_num)
                );

                CREATE INDEX IF NOT EXISTS idx_war_attacks_attacker
                ON war_attacks(attacker_id, event_end_time DESC);
            """
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS member_daily_snapshots (
                    member_id VARCHAR(32) NOT NULL,
                    snapshot_day DATE NOT NULL,
                    member_name VARCHAR(64),
                    group_id VARCHAR(32),
                    donations_given INTEGER NOT NULL DEFAULT 0,
                    donations_received INTEGER NOT NULL DEFAULT 0,
                    war_stars INTEGER,
                    trophies INTEGER,
                    PRIMARY KEY (member_id, snapshot_day)
                );

                CREATE INDEX IF NOT EXISTS idx_member_daily_snapshots_group_day
                ON member_daily_snapshots(group_id, snapshot_day);
            """
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS member_skill_profiles (
                    member_id VARCHAR(32) PRIMARY KEY,
                    offense_skill SMALLINT NOT NULL,
                    cleanup_skill SMALLINT NOT NULL,
                    consistency SMALLINT NOT NULL,
                    clutch SMALLINT NOT NULL,
                    participation SMALLINT NOT NULL,
                    capital_efficiency SMALLINT NOT NULL,
                    total_attacks INTEGER NOT NULL DEFAULT 0,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );
            """
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_group_links (
                    user_id VARCHAR(64) NOT NULL,
                    group_id VARCHAR(32) NOT NULL,
                    is_active BOOLEAN NOT NULL DEFAULT FALSE,
                    is_own_profile BOOLEAN NOT NULL DEFAULT FALSE,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (user_id, group_id)
                );
            """
            )

            logger.info("Database schema initialized")

    # ========================================================================
    # History store
    # ========================================================================

    @trace_adapter
    async def fetch_attacks(self, group_id: str | None, since: datetime) -> list[AttackRecord]:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            if group_id is None:
                rows = await conn.fetch(
                    f"""
                    SELECT {_ATTACK_COLUMNS} FROM war_attacks
                    WHERE event_end_time >= $1
                    ORDER BY event_end_time, attacker_id, order_num
                    """,
                    since,
                )
            else:
                rows = await conn.fetch(
                    f"""
                    SELECT {_ATTACK_COLUMNS} FROM war_attacks
                    WHERE group_id = $1 AND event_end_time >= $2
                    ORDER BY event_end_time, attacker_id, order_num
                    """,
                    group_id,
                    since,
                )
        return [AttackRecord(**dict(row)) for row in rows]

    @trace_adapter
    async def fetch_roster(self, group_id: str, since: datetime) -> list[RosterEntry]:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_ROSTER_COLUMNS} FROM war_rosters
                WHERE group_id = $1 AND event_end_time >= $2
                ORDER BY event_end_time, map_position NULLS LAST, member_id
                """,
                group_id,
                since,
            )
        return [RosterEntry(**dict(row)) for row in rows]

    @trace_adapter
    async def fetch_war_events(self, group_id: str, since: datetime) -> list[WarEvent]:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_EVENT_COLUMNS} FROM war_events
                WHERE group_id = $1 AND event_end_time >= $2
                ORDER BY event_end_time
                """,
                group_id,
                since,
            )
        return [WarEvent(**dict(row)) for row in rows]

    @trace_adapter
    async def upsert_war_rows(self, group_id: str, rows: WarLogRows) -> int:
        """Write events, rosters and attacks in one transaction."""
        pool = self._require_pool()
        now = datetime.now(UTC)

        async with pool.acquire() as conn:
            async with conn.transaction():
                if rows.events:
                    await conn.executemany(
                        f"""
                        INSERT INTO war_events ({_EVENT_COLUMNS}, updated_at)
                        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                        ON CONFLICT (group_id, event_end_time)
                        DO UPDATE SET
                            is_league_format = EXCLUDED.is_league_format,
                            team_size = EXCLUDED.team_size,
                            opponent_id = EXCLUDED.opponent_id,
                            result = EXCLUDED.result,
                            stars = EXCLUDED.stars,
                            destruction_percent = EXCLUDED.destruction_percent,
                            attacks_used = EXCLUDED.attacks_used,
                            opponent_stars = EXCLUDED.opponent_stars,
                            opponent_destruction_percent = EXCLUDED.opponent_destruction_percent,
                            updated_at = EXCLUDED.updated_at
                        """,
                        [
                            (
                                e.group_id,
                                e.event_end_time,
                                e.is_league_format,
                                e.team_size,
                                e.opponent_id,
                                e.result,
                                e.stars,
                                e.destruction_percent,
                                e.attacks_used,
                                e.opponent_stars,
                                e.opponent_destruction_percent,
                                now,
                            )
                            for e in rows.events
                        ],
                    )

                if rows.roster:
                    await conn.executemany(
                        f"""
                        INSERT INTO war_rosters ({_ROSTER_COLUMNS})
                        VALUES ($1, $2, $3, $4, $5)
                        ON CONFLICT (group_id, event_end_time, member_id)
                        DO UPDATE SET
                            member_name = EXCLUDED.member_name,
                            map_position = EXCLUDED.map_position
                        """,
                        [
                            (
                                r.event_end_time,
                                r.group_id,
                                r.member_id,
                                r.member_name,
                                r.map_position,
                            )
                            for r in rows.roster
                        ],
                    )

                if rows.attacks:
                    await conn.executemany(
                        f"""
                        INSERT INTO war_attacks ({_ATTACK_COLUMNS})
                        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                        ON CONFLICT (group_id, event_end_time, attacker_id, order_num)
                        DO UPDATE SET
                            attacker_name = EXCLUDED.attacker_name,
                            defender_id = EXCLUDED.defender_id,
                            stars = EXCLUDED.stars,
                            destruction_percent = EXCLUDED.destruction_percent,
                            is_league_format = EXCLUDED.is_league_format,
                            map_position = EXCLUDED.map_position
                        """,
                        [
                            (
                                a.group_id or group_id,
                                a.event_end_time,
                                a.attacker_id,
                                a.attacker_name,
                                a.defender_id,
                                a.stars,
                                a.destruction_percent,
                                a.order_num,
                                a.is_league_format,
                                a.map_position,
                            )
                            for a in rows.attacks
                        ],
                    )

        logger.info(
            "war_rows_upserted",
            extra={
                "group_id": group_id,
                "events": len(rows.events),
                "roster": len(rows.roster),
                "attacks": len(rows.attacks),
            },
        )
        return rows.row_count

    # ========================================================================
    # Snapshot store
    # ========================================================================

    @trace_adapter
    async def fetch_snapshots(
        self, since: datetime, group_id: str | None = None
    ) -> list[ActivitySnapshot]:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            if group_id is None:
                rows = await conn.fetch(
                    f"""
                    SELECT {_SNAPSHOT_COLUMNS} FROM member_daily_snapshots
                    WHERE snapshot_day >= $1
                    ORDER BY snapshot_day, member_id
                    """,
                    since.date(),
                )
            else:
                rows = await conn.fetch(
                    f"""
                    SELECT {_SNAPSHOT_COLUMNS} FROM member_daily_snapshots
                    WHERE group_id = $1 AND snapshot_day >= $2
                    ORDER BY snapshot_day, member_id
                    """,
                    group_id,
                    since.date(),
                )
        return [ActivitySnapshot(**dict(row)) for row in rows]

    @trace_adapter
    async def upsert_snapshots(self, snapshots: Iterable[ActivitySnapshot]) -> int:
        """One row per member per day; a later snapshot the same day replaces it."""
        pool = self._require_pool()
        records = [
            (
                s.snapshot_day,
                s.member_id,
                s.member_name,
                s.group_id,
                s.donations_given,
                s.donations_received,
                s.war_stars,
                s.trophies,
            )
            for s in snapshots
        ]
        if not records:
            return 0

        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(
                    f"""
                    INSERT INTO member_daily_snapshots ({_SNAPSHOT_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    ON CONFLICT (member_id, snapshot_day)
                    DO UPDATE SET
                        member_name = EXCLUDED.member_name,
                        group_id = EXCLUDED.group_id,
                        donations_given = EXCLUDED.donations_given,
                        donations_received = EXCLUDED.donations_received,
                        war_stars = EXCLUDED.war_stars,
                        trophies = EXCLUDED.trophies
                    """,
                    records,
                )

        logger.info("member_snapshots_upserted", extra={"rows": len(records)})
        return len(records)

    # ========================================================================
    # Skill profile store
    # ========================================================================

    @trace_adapter
    async def upsert_profiles(self, profiles: Iterable[SkillProfile]) -> int:
        """Last write wins per ``member_id``."""
        pool = self._require_pool()
        records = [
            (
                p.member_id,
                p.offense_skill,
                p.cleanup_skill,
                p.consistency,
                p.clutch,
                p.participation,
                p.capital_efficiency,
                p.total_attacks,
                p.updated_at,
            )
            for p in profiles
        ]
        if not records:
            return 0

        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(
                    f"""
                    INSERT INTO member_skill_profiles ({_PROFILE_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    ON CONFLICT (member_id)
                    DO UPDATE SET
                        offense_skill = EXCLUDED.offense_skill,
                        cleanup_skill = EXCLUDED.cleanup_skill,
                        consistency = EXCLUDED.consistency,
                        clutch = EXCLUDED.clutch,
                        participation = EXCLUDED.participation,
                        capital_efficiency = EXCLUDED.capital_efficiency,
                        total_attacks = EXCLUDED.total_attacks,
                        updated_at = EXCLUDED.updated_at
                    """,
                    records,
                )

        logger.info("skill_profiles_upserted", extra={"rows": len(records)})
        return len(records)

    @trace_adapter
    async def get_profiles(self, member_ids: Iterable[str]) -> dict[str, SkillProfile]:
        ids = list(dict.fromkeys(member_ids))
        if not ids:
            return {}

        pool = self._require_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_PROFILE_COLUMNS} FROM member_skill_profiles
                WHERE member_id = ANY($1::varchar[])
                """,
                ids,
            )
        return {row["member_id"]: SkillProfile(**dict(row)) for row in rows}

    # ========================================================================
    # Group resolution
    # ========================================================================

    @trace_adapter
    async def resolve_group_id(self, user_id: str) -> str | None:
        """Active linked profile first, then the user's own profile."""
        pool = self._require_pool()
        async with pool.acquire() as conn:
            group_id: str | None = await conn.fetchval(
                """
                SELECT group_id FROM user_group_links
                WHERE user_id = $1 AND (is_active OR is_own_profile)
                ORDER BY is_active DESC, updated_at DESC
                LIMIT 1
                """,
                user_id,
            )
        return group_id

    @trace_adapter
    async def tracked_group_ids(self) -> list[str]:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT DISTINCT group_id FROM user_group_links ORDER BY group_id"
            )
        return [row["group_id"] for row in rows]

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is accessible, False otherwise
        """
        if not self._pool:
            return False

        try:
            async with self._pool.acquire() as conn:
                result: int | None = await conn.fetchval("SELECT 1")
                return bool(result == 1)
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
