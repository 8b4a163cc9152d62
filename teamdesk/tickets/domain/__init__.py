"""
Tickets Domain Layer
====================

Domain layer for the tickets module.

Contains:
- Entities: TeamMember, Ticket, ActivityLog
- Lifecycle: ticket status state machine and status derivation
- Value Objects & Services: AssignmentScorer, TeamConfig, TeamMemberSeed

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from teamdesk.tickets.domain.entities import (
    TeamMember,
    Ticket,
    ActivityLog,
    normalize_skills,
)
from teamdesk.tickets.domain.lifecycle import TicketLifecycle, derive_status
from teamdesk.tickets.domain.value_objects import (
    AssignmentScorer,
    TeamConfig,
    TeamMemberSeed,
    DEFAULT_TEAM,
)

__all__ = [
    # Entities
    "TeamMember",
    "Ticket",
    "ActivityLog",
    "normalize_skills",
    # Lifecycle
    "TicketLifecycle",
    "derive_status",
    # Value Objects & Services
    "AssignmentScorer",
    "TeamConfig",
    "TeamMemberSeed",
    "DEFAULT_TEAM",
]
