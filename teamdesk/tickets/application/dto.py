"""
Ticket Application DTOs
=======================

Data Transfer Objects for the tickets API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from teamdesk.tickets.domain import ActivityLog, TeamMember, Ticket, normalize_skills


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["low", "medium", "high"]
TicketStatusStr = Literal["pending", "assigned", "completed"]
ActivityActionStr = Literal["created", "updated", "assigned", "completed", "reopened", "deleted"]


def _clean_skills(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    cleaned = normalize_skills(v)
    if not cleaned:
        raise ValueError("at least one skill is required")
    return cleaned


# ========== Request DTOs ==========

class TicketCreateDTO(BaseModel):
    """DTO for creating a ticket."""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, description="Ticket title")
    description: str = Field(..., min_length=1, description="Ticket description")
    skills: List[str] = Field(..., min_length=1, description="Required skills")
    deadline: date = Field(..., description="Deadline (ISO date)")
    priority: PriorityStr = Field(..., description="Ticket priority")
    assigned_to: Optional[int] = Field(None, description="Member to assign immediately")

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: List[str]) -> List[str]:
        """Drop blank and duplicate skills."""
        return _clean_skills(v)


class TicketUpdateDTO(BaseModel):
    """
    DTO for updating ticket content.

    Status and assignment change only through lifecycle endpoints.
    """
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    skills: Optional[List[str]] = Field(None, min_length=1)
    deadline: Optional[date] = None
    priority: Optional[PriorityStr] = None

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_skills(v)

    @model_validator(mode="after")
    def require_values(self) -> "TicketUpdateDTO":
        """At least one field, and none of them sent as null."""
        if not self.model_fields_set:
            raise ValueError("at least one field is required")
        nulls = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulls:
            raise ValueError(f"fields cannot be null: {', '.join(nulls)}")
        return self

    def to_updates(self) -> Dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class AssignRequest(BaseModel):
    """Assignment request. Omit member_id for automatic assignment."""
    model_config = ConfigDict(extra="forbid")

    member_id: Optional[int] = Field(None, description="Member to assign")


# ========== Response DTOs ==========

class TeamMemberResponse(BaseModel):
    """Response model for a team member."""
    id: int
    name: str
    skills: List[str]
    initials: str
    assigned_ticket_count: Optional[int] = Field(
        None,
        description="Tickets assigned to this member that are not completed"
    )

    @classmethod
    def from_domain(cls, member: TeamMember, workload: Optional[int] = None) -> "TeamMemberResponse":
        return cls(
            id=member.id,
            name=member.name,
            skills=list(member.skills),
            initials=member.initials,
            assigned_ticket_count=workload
        )


class ActivityLogResponse(BaseModel):
    """Response model for an activity log entry."""
    id: int
    ticket_id: int
    action: ActivityActionStr
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, log: ActivityLog) -> "ActivityLogResponse":
        return cls(
            id=log.id,
            ticket_id=log.ticket_id,
            action=log.action.value,
            timestamp=log.timestamp,
            details=log.details
        )


class TicketResponse(BaseModel):
    """Response model for a ticket."""
    id: int
    title: str
    description: str
    skills: List[str]
    deadline: date
    priority: PriorityStr
    status: TicketStatusStr
    assigned_to: Optional[int] = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    assigned_member: Optional[TeamMemberResponse] = None

    @classmethod
    def from_domain(
        cls,
        ticket: Ticket,
        assigned_member: Optional[TeamMember] = None
    ) -> "TicketResponse":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            skills=list(ticket.skills),
            deadline=ticket.deadline,
            priority=ticket.priority.value,
            status=ticket.status.value,
            assigned_to=ticket.assigned_to,
            assigned_at=ticket.assigned_at,
            completed_at=ticket.completed_at,
            created_at=ticket.created_at,
            assigned_member=(
                TeamMemberResponse.from_domain(assigned_member) if assigned_member else None
            )
        )


class TicketDetailResponse(TicketResponse):
    """Ticket with its activity history, most recent first."""
    activity_logs: List[ActivityLogResponse] = Field(default_factory=list)
