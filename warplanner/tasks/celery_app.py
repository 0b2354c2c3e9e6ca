"""Celery application configuration.

Configures Celery with Redis as broker and result backend, registers the
batch task modules and schedules the periodic jobs on celery beat.
"""

import contextlib
import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun

from warplanner.config.settings import settings
from warplanner.core.observability import (
    clear_correlation_id,
    configure_stdlib_json_logging,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

configure_stdlib_json_logging(level=settings.app_log_level)

celery_app = Celery(
    "warplanner",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["warplanner.tasks.skill_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,
    task_routes={
        "warplanner.tasks.skill_tasks.*": {"queue": "batch"},
    },
    task_track_started=True,
    task_time_limit=settings.celery_task_time_limit,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    beat_schedule={
        "ingest-war-logs": {
            "task": "warplanner.tasks.skill_tasks.ingest_war_logs",
            "schedule": float(settings.war_log_ingest_interval_seconds),
        },
        "snapshot-members": {
            "task": "warplanner.tasks.skill_tasks.snapshot_members",
            "schedule": float(settings.member_snapshot_interval_seconds),
        },
        "recompute-skill-profiles": {
            "task": "warplanner.tasks.skill_tasks.recompute_skill_profiles",
            "schedule": float(settings.skills_recompute_interval_seconds),
        },
    },
)

logger.info("Celery application configured successfully")


# Lifecycle hooks only log; they must never affect task execution.


@task_prerun.connect
def _on_task_prerun(task=None, task_id=None, args=None, kwargs=None, **_):
    with contextlib.suppress(Exception):
        set_correlation_id((kwargs or {}).get("correlation_id") or task_id)
        logger.info(
            "celery_task_started",
            extra={"task_id": task_id, "task_name": getattr(task, "name", None)},
        )


@task_postrun.connect
def _on_task_postrun(task=None, task_id=None, retval=None, state=None, **_):
    with contextlib.suppress(Exception):
        logger.info(
            "celery_task_finished",
            extra={"task_id": task_id, "task_name": getattr(task, "name", None), "state": state},
        )
        clear_correlation_id()


@task_failure.connect
def _on_task_failure(task_id=None, exception=None, sender=None, **_):
    with contextlib.suppress(Exception):
        logger.error(
            "celery_task_failed",
            extra={
                "task_id": task_id,
                "task_name": getattr(sender, "name", None),
                "error": str(exception) if exception else None,
            },
        )
