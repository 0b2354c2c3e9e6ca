"""Add war history, daily snapshots and skill profile tables

Revision ID: 4c1e9a7b2d60
Revises:
Create Date: 2026-10-19 09:12:31.504117

"""
from typing import Union
from collections.abc import Sequence

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "4c1e9a7b2d60"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: war history rows, snapshots, derived profiles, user links."""
    op.execute(
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
        """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_war_events_end_time ON war_events(event_end_time DESC);"
    )

    op.execute(
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

    op.execute(
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
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_war_attacks_attacker
        ON war_attacks(attacker_id, event_end_time DESC);
        """
    )

    op.execute(
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
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_member_daily_snapshots_group_day
        ON member_daily_snapshots(group_id, snapshot_day);
        """
    )

    # One row per member, overwritten on every recompute
    op.execute(
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

    op.execute(
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


def downgrade() -> None:
    """Downgrade schema: drop every table created above."""
    op.execute("DROP TABLE IF EXISTS user_group_links;")
    op.execute("DROP TABLE IF EXISTS member_skill_profiles;")
    op.execute("DROP INDEX IF EXISTS idx_member_daily_snapshots_group_day;")
    op.execute("DROP TABLE IF EXISTS member_daily_snapshots;")
    op.execute("DROP INDEX IF EXISTS idx_war_attacks_attacker;")
    op.execute("DROP TABLE IF EXISTS war_attacks;")
    op.execute("DROP TABLE IF EXISTS war_rosters;")
    op.execute("DROP INDEX IF EXISTS idx_war_events_end_time;")
    op.execute("DROP TABLE IF EXISTS war_events;")
