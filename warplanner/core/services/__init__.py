"""Orchestration services: fetch rows through ports, score, store."""

from warplanner.core.services.skill_profile_service import SkillProfileService
from warplanner.core.services.snapshot_ingestion_service import SnapshotIngestionService
from warplanner.core.services.war_log_ingestion_service import WarLogIngestionService
from warplanner.core.services.war_planning_service import WarPlanningService

__all__ = [
    "SkillProfileService",
    "SnapshotIngestionService",
    "WarLogIngestionService",
    "WarPlanningService",
]
