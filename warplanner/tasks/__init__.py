"""Celery tasks for the periodic batch jobs."""

from warplanner.tasks.celery_app import celery_app

__all__ = ["celery_app"]
