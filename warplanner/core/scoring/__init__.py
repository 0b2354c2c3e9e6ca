"""War scoring engine - skill profiles, attendance risk, lineups, targets.

Pure domain logic (zero I/O operations). Each entry point is a function
over already-fetched rows plus a small config model:

1. build_skill_profiles - attacks + snapshots -> SkillProfile per member
2. analyze_attendance   - roster + attacks + war flags -> risk report
3. select_lineup        - live members + profiles -> lineup / bench / roles
4. plan_targets         - live war + profiles -> greedy target assignments
"""

from warplanner.core.scoring.attendance import AttendanceConfig, analyze_attendance
from warplanner.core.scoring.lineup import LineupConfig, select_lineup
from warplanner.core.scoring.skill_profile import SkillScoringConfig, build_skill_profiles
from warplanner.core.scoring.targets import plan_targets

__all__ = [
    "AttendanceConfig",
    "LineupConfig",
    "SkillScoringConfig",
    "analyze_attendance",
    "build_skill_profiles",
    "plan_targets",
    "select_lineup",
]
