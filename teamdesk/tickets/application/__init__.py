"""
Tickets Application Layer
=========================

Application layer for the tickets module.

Contains:
- Services: TicketService facade and ActivityLogger
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from teamdesk.tickets.application.dto import (
    TicketCreateDTO,
    TicketUpdateDTO,
    AssignRequest,
    TeamMemberResponse,
    TicketResponse,
    TicketDetailResponse,
    ActivityLogResponse,
)
from teamdesk.tickets.application.services import (
    TicketService,
    ActivityLogger,
    ITeamMemberRepository,
    ITicketRepository,
    IActivityLogRepository,
    ITeamConfigProvider,
    UNKNOWN_MEMBER_NAME,
    UPDATABLE_FIELDS,
)

__all__ = [
    # DTOs
    "TicketCreateDTO",
    "TicketUpdateDTO",
    "AssignRequest",
    "TeamMemberResponse",
    "TicketResponse",
    "TicketDetailResponse",
    "ActivityLogResponse",
    # Services
    "TicketService",
    "ActivityLogger",
    "UNKNOWN_MEMBER_NAME",
    "UPDATABLE_FIELDS",
    # Repository Interfaces
    "ITeamMemberRepository",
    "ITicketRepository",
    "IActivityLogRepository",
    "ITeamConfigProvider",
]
