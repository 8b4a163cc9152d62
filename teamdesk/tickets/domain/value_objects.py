"""
Ticket Value Objects
====================

Immutable value objects and stateless domain services for tickets.

- AssignmentScorer: picks the best member for a set of required skills
- TeamMemberSeed / TeamConfig: skill vocabulary and seed team, loaded from YAML
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from teamdesk.config import AVAILABLE_SKILLS
from teamdesk.tickets.domain.entities import TeamMember


class AssignmentScorer:
    """
    Pure functions for skill-based assignment.

    score = matching skills * 1 / (active workload + 1)

    An idle member always beats an equally skilled busy one. On equal scores
    the member enumerated first wins, and members are enumerated in creation
    order, so the earliest created member takes ties.
    """

    @staticmethod
    def score(match_count: int, workload: int) -> float:
        """Score for a member with match_count overlapping skills."""
        return match_count * (1 / (workload + 1))

    @staticmethod
    def find_best_member(
        required_skills: Iterable[str],
        members: Iterable[TeamMember],
        workload: Dict[int, int]
    ) -> Optional[int]:
        """
        Find the best member for a ticket.

        Args:
            required_skills: Skills the ticket needs
            members: Candidates, in enumeration (creation) order
            workload: Active ticket count per member id; missing means 0

        Returns:
            The winning member id, or None if no member shares a skill
        """
        required = set(required_skills)
        if not required:
            return None

        best_member: Optional[int] = None
        best_score = -1.0

        for member in members:
            match_count = len(member.matching_skills(required))
            if match_count == 0:
                continue

            score = AssignmentScorer.score(match_count, workload.get(member.id, 0))
            # Strict comparison: earlier members keep ties
            if score > best_score:
                best_score = score
                best_member = member.id

        return best_member


DEFAULT_TEAM = [
    {"name": "John Doe", "skills": ["Frontend", "Design"], "initials": "JD"},
    {"name": "Jane Smith", "skills": ["Backend", "Database"], "initials": "JS"},
    {"name": "Alex Johnson", "skills": ["Frontend", "Backend"], "initials": "AJ"},
    {"name": "Sam Williams", "skills": ["Design", "Database"], "initials": "SW"},
    {"name": "Taylor Green", "skills": ["Frontend", "Backend", "Database"], "initials": "TG"},
]


class TeamMemberSeed(BaseModel):
    """A team member to create at startup."""
    name: str = Field(..., min_length=1)
    skills: List[str] = Field(..., min_length=1)
    initials: Optional[str] = Field(default=None, max_length=4)

    @model_validator(mode="after")
    def fill_initials(self) -> "TeamMemberSeed":
        """Derive initials from the name when not given."""
        if not self.initials:
            self.initials = "".join(part[0] for part in self.name.split()).upper()
        return self


class TeamConfig(BaseModel):
    """
    Team configuration loaded from YAML.

    Member skills must come from the skill vocabulary, otherwise tickets
    could never match them.
    """
    skills: List[str] = Field(
        default_factory=lambda: list(AVAILABLE_SKILLS),
        min_length=1,
        description="Skill vocabulary shared by members and tickets"
    )
    team_members: List[TeamMemberSeed] = Field(
        default_factory=lambda: [TeamMemberSeed(**m) for m in DEFAULT_TEAM],
        description="Members seeded on first startup, in enumeration order"
    )

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: List[str]) -> List[str]:
        """Reject duplicate skill tags."""
        if len(set(v)) != len(v):
            raise ValueError("skills must be unique")
        return v

    @model_validator(mode="after")
    def validate_member_skills(self) -> "TeamConfig":
        vocabulary = set(self.skills)
        for member in self.team_members:
            unknown = [s for s in member.skills if s not in vocabulary]
            if unknown:
                raise ValueError(f"member {member.name!r} has unknown skills {unknown}")
        return self
