"""Periodic batch jobs: member snapshots, war-log ingestion and skill recompute.

Celery workers run sync code, so each task bridges into async on a fresh
event loop. Per-clan failures are counted in the returned batch result;
only a failure to reach the database fails (and retries) the whole task.
"""

import asyncio
import logging
from typing import Any

from warplanner.adapters.database import DatabaseAdapter
from warplanner.adapters.game_api import GameApiAdapter
from warplanner.config.settings import settings
from warplanner.contracts.batch import BatchResult
from warplanner.core.scoring.skill_profile import SkillScoringConfig
from warplanner.core.services.skill_profile_service import SkillProfileService
from warplanner.core.services.snapshot_ingestion_service import SnapshotIngestionService
from warplanner.core.services.war_log_ingestion_service import WarLogIngestionService
from warplanner.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _recompute(group_ids: list[str] | None) -> BatchResult:
    db = DatabaseAdapter()
    await db.connect()
    try:
        groups = group_ids if group_ids is not None else await db.tracked_group_ids()
        service = SkillProfileService(
            history_store=db,
            snapshot_store=db,
            profile_store=db,
            config=SkillScoringConfig.from_settings(settings),
        )
        return await service.recompute_for_groups(groups)
    finally:
        await db.disconnect()


async def _ingest(group_ids: list[str] | None) -> BatchResult:
    db = DatabaseAdapter()
    await db.connect()
    try:
        groups = group_ids if group_ids is not None else await db.tracked_group_ids()
        async with GameApiAdapter() as game_api:
            service = WarLogIngestionService(war_log_source=game_api, history_store=db)
            return await service.ingest(groups)
    finally:
        await db.disconnect()


async def _snapshot(group_ids: list[str] | None) -> BatchResult:
    db = DatabaseAdapter()
    await db.connect()
    try:
        groups = group_ids if group_ids is not None else await db.tracked_group_ids()
        async with GameApiAdapter() as game_api:
            service = SnapshotIngestionService(roster_source=game_api, snapshot_store=db)
            return await service.ingest(groups)
    finally:
        await db.disconnect()


def _run(coro: Any) -> BatchResult:
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(
    name="warplanner.tasks.skill_tasks.recompute_skill_profiles",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def recompute_skill_profiles(
    self: Any,  # Celery task instance
    group_ids: list[str] | None = None,
) -> dict[str, Any]:
    """Recompute skill profiles for every tracked clan (or the given ones).

    Returns:
        The batch result as a dict plus the task id.
    """
    logger.info(f"[Task {self.request.id}] Recomputing skill profiles")
    try:
        result = _run(_recompute(group_ids))
    except Exception as exc:
        logger.error(f"[Task {self.request.id}] Skill recompute failed: {exc}")
        raise self.retry(exc=exc, countdown=2**self.request.retries) from exc

    logger.info(
        f"[Task {self.request.id}] Skill recompute done: "
        f"{result.succeeded}/{result.processed} clans, {result.rows_written} profiles"
    )
    return {**result.model_dump(), "task_id": self.request.id}


@celery_app.task(
    name="warplanner.tasks.skill_tasks.ingest_war_logs",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def ingest_war_logs(
    self: Any,  # Celery task instance
    group_ids: list[str] | None = None,
) -> dict[str, Any]:
    """Pull finished wars for every tracked clan (or the given ones) into history."""
    logger.info(f"[Task {self.request.id}] Ingesting war logs")
    try:
        result = _run(_ingest(group_ids))
    except Exception as exc:
        logger.error(f"[Task {self.request.id}] War-log ingest failed: {exc}")
        raise self.retry(exc=exc, countdown=2**self.request.retries) from exc

    logger.info(
        f"[Task {self.request.id}] War-log ingest done: "
        f"{result.succeeded}/{result.processed} clans, {result.rows_written} rows"
    )
    return {**result.model_dump(), "task_id": self.request.id}


@celery_app.task(
    name="warplanner.tasks.skill_tasks.snapshot_members",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def snapshot_members(
    self: Any,  # Celery task instance
    group_ids: list[str] | None = None,
) -> dict[str, Any]:
    """Record today's members of every tracked clan (or the given ones)."""
    logger.info(f"[Task {self.request.id}] Snapshotting clan members")
    try:
        result = _run(_snapshot(group_ids))
    except Exception as exc:
        logger.error(f"[Task {self.request.id}] Member snapshot failed: {exc}")
        raise self.retry(exc=exc, countdown=2**self.request.retries) from exc

    logger.info(
        f"[Task {self.request.id}] Member snapshot done: "
        f"{result.succeeded}/{result.processed} clans, {result.rows_written} members"
    )
    return {**result.model_dump(), "task_id": self.request.id}
