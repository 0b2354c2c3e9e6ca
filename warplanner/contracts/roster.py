"""Live (current) roster contracts: members, lineups and target plans."""

from datetime import datetime

from pydantic import Field

from warplanner.contracts.common import BaseContract
from warplanner.contracts.skill_profile import SkillProfile


class LiveMember(BaseContract):
    """A member as reported by the live clan / war snapshot."""

    id: str
    name: str = ""
    town_hall_level: int = Field(default=0, ge=0)
    role: str | None = None
    map_position: int = 0
    trophies: int | None = None
    donations: int | None = None
    donations_received: int | None = None


class LineupScores(BaseContract):
    offense: int = 0
    consistency: int = 0
    clutch: int = 0
    participation: int = 0
    cleanup: int = 0
    capital: int = 0
    composite: int = 0


class LineupEntry(BaseContract):
    member: LiveMember
    skill: SkillProfile | None = None
    scores: LineupScores


class LineupSelection(BaseContract):
    team_size: int
    lineup: list[LineupEntry] = Field(default_factory=list)
    bench: list[LineupEntry] = Field(default_factory=list)
    openers: list[LineupEntry] = Field(default_factory=list)
    cleanup_specialists: list[LineupEntry] = Field(default_factory=list)
    generated_at: datetime


class LiveWar(BaseContract):
    """Current war state for both sides."""

    state: str = "inWar"
    team_size: int | None = None
    our_members: list[LiveMember] = Field(default_factory=list)
    opponent_members: list[LiveMember] = Field(default_factory=list)
    opponent_name: str | None = None
    opponent_tag: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state != "notInWar"


class AttackerScores(BaseContract):
    offense: int = 0
    clutch: int = 0
    consistency: int = 0
    composite: int = 0


class PlannedAttacker(BaseContract):
    member: LiveMember
    scores: AttackerScores


class AssignmentRationale(BaseContract):
    th_diff: int
    offense: int
    clutch: int


class Assignment(BaseContract):
    attacker: PlannedAttacker
    defender: LiveMember
    predicted_stars: float = Field(ge=0.0, le=3.0)
    rationale: AssignmentRationale


class WarHeader(BaseContract):
    state: str
    team_size: int
    opponent_name: str | None = None
    opponent_tag: str | None = None


class TargetPlan(BaseContract):
    war: WarHeader
    lineup: list[PlannedAttacker] = Field(default_factory=list)
    assignments: list[Assignment] = Field(default_factory=list)
    alternates: list[LiveMember] = Field(default_factory=list)
    generated_at: datetime
