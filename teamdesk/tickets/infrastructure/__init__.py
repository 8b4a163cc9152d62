"""
Tickets Infrastructure Layer
============================

Infrastructure implementations for the tickets module:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer and YAML team config
"""

from sqlalchemy.ext.asyncio import AsyncSession

from teamdesk.tickets.application import ActivityLogger, TicketService
from teamdesk.tickets.infrastructure.models import (
    TeamMemberModel,
    TicketModel,
    ActivityLogModel,
)
from teamdesk.tickets.infrastructure.repositories import (
    SQLAlchemyTeamMemberRepository,
    SQLAlchemyTicketRepository,
    SQLAlchemyActivityLogRepository,
    YAMLTeamConfigProvider,
)


def build_ticket_service(session: AsyncSession) -> TicketService:
    """Wire a TicketService whose repositories share one session."""
    return TicketService(
        SQLAlchemyTeamMemberRepository(session),
        SQLAlchemyTicketRepository(session),
        ActivityLogger(SQLAlchemyActivityLogRepository(session))
    )


__all__ = [
    "TeamMemberModel",
    "TicketModel",
    "ActivityLogModel",
    "SQLAlchemyTeamMemberRepository",
    "SQLAlchemyTicketRepository",
    "SQLAlchemyActivityLogRepository",
    "YAMLTeamConfigProvider",
    "build_ticket_service",
]
