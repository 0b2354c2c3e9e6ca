"""Contract models for data validation."""

from .attendance import AttendanceReport, AttendanceSummary, AttendanceWindowSummary
from .batch import BatchResult, WarLogRows
from .common import BaseContract, RowContract
from .history import (
    ActivitySnapshot,
    AttackRecord,
    RosterEntry,
    WarEvent,
    expected_attacks_per_event,
)
from .roster import (
    Assignment,
    AssignmentRationale,
    AttackerScores,
    LineupEntry,
    LineupScores,
    LineupSelection,
    LiveMember,
    LiveWar,
    PlannedAttacker,
    TargetPlan,
    WarHeader,
)
from .skill_profile import SkillProfile

__all__ = [
    "ActivitySnapshot",
    "Assignment",
    "AssignmentRationale",
    "AttackRecord",
    "AttackerScores",
    "AttendanceReport",
    "AttendanceSummary",
    "AttendanceWindowSummary",
    "BaseContract",
    "BatchResult",
    "LineupEntry",
    "LineupScores",
    "LineupSelection",
    "LiveMember",
    "LiveWar",
    "PlannedAttacker",
    "RosterEntry",
    "RowContract",
    "SkillProfile",
    "TargetPlan",
    "WarEvent",
    "WarHeader",
    "WarLogRows",
    "expected_attacks_per_event",
]
