"""
Ticket Domain Entities
======================

Pure Python domain entities for ticket assignment and tracking.

Following Domain-Driven Design principles, these entities contain
business rules and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from teamdesk.config import ActivityAction, Priority, TicketStatus
from teamdesk.core import InvalidTransitionException


def normalize_skills(skills: List[str]) -> List[str]:
    """Strip blanks and drop duplicates, keeping first-seen order."""
    seen: Dict[str, None] = {}
    for skill in skills:
        skill = skill.strip()
        if skill:
            seen.setdefault(skill, None)
    return list(seen)


@dataclass(frozen=True)
class TeamMember:
    """
    Team member entity.

    Members are seeded once and never change, so the entity is frozen.
    """
    id: int
    name: str
    skills: List[str]
    initials: str

    def matching_skills(self, required_skills: Iterable[str]) -> List[str]:
        """Required skills this member has."""
        return [skill for skill in required_skills if skill in self.skills]


@dataclass
class Ticket:
    """
    Ticket entity representing a unit of team work.

    Status invariants:
    - assigned  => assigned_to and assigned_at are set
    - completed => completed_at is set
    - pending   => assigned_to is unset

    A completed ticket keeps its assignee so that reopening can derive
    its status from the assignment.
    """

    # Core attributes
    id: Optional[int]  # None until persisted
    title: str
    description: str
    skills: List[str]
    deadline: date
    priority: Priority
    status: TicketStatus
    created_at: datetime

    # Assignment tracking
    assigned_to: Optional[int] = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate ticket on initialization."""
        self.check_invariants()

    def check_invariants(self) -> None:
        """Raise InvalidTransitionException if the status contradicts the fields."""
        if self.status == TicketStatus.ASSIGNED:
            if self.assigned_to is None:
                raise InvalidTransitionException(self.id, self.status.value, "no assignee")
            if self.assigned_at is None:
                raise InvalidTransitionException(self.id, self.status.value, "no assignment time")
        elif self.status == TicketStatus.COMPLETED:
            if self.completed_at is None:
                raise InvalidTransitionException(self.id, self.status.value, "no completion time")
        elif self.status == TicketStatus.PENDING:
            if self.assigned_to is not None:
                raise InvalidTransitionException(self.id, self.status.value, "assignee is set")

        if self.assigned_at and self.assigned_at < self.created_at:
            raise InvalidTransitionException(self.id, self.status.value, "assigned before creation")
        if self.completed_at and self.completed_at < self.created_at:
            raise InvalidTransitionException(self.id, self.status.value, "completed before creation")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready snapshot, used in activity details and API payloads."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "skills": list(self.skills),
            "deadline": self.deadline.isoformat(),
            "priority": self.priority.value,
            "status": self.status.value,
            "assigned_to": self.assigned_to,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ActivityLog:
    """
    Append-only audit entry for one ticket change.

    ticket_id is a plain reference: logs outlive deleted tickets.
    """
    id: int
    ticket_id: int
    action: ActivityAction
    timestamp: datetime
    details: Dict[str, Any] = field(default_factory=dict)
