"""
Ticket Infrastructure Repositories
==================================

Concrete implementations of the ticket repository interfaces using
SQLAlchemy, plus the YAML team configuration provider.

Repositories flush but never commit. The session owner commits the whole
unit of work, so a ticket change and its activity entry land together.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teamdesk.config import ActivityAction, Priority, TicketStatus
from teamdesk.core import ConfigurationException, RepositoryException
from teamdesk.shared.infrastructure.logging import get_logger
from teamdesk.tickets.application import (
    IActivityLogRepository,
    ITeamConfigProvider,
    ITeamMemberRepository,
    ITicketRepository,
)
from teamdesk.tickets.domain import ActivityLog, TeamConfig, TeamMember, Ticket
from teamdesk.tickets.infrastructure.models import (
    ActivityLogModel,
    TeamMemberModel,
    TicketModel,
)

logger = get_logger(__name__)


def _member_to_domain(model: TeamMemberModel) -> TeamMember:
    return TeamMember(
        id=model.id,
        name=model.name,
        skills=list(model.skills or []),
        initials=model.initials
    )


def _ticket_to_domain(model: TicketModel) -> Ticket:
    return Ticket(
        id=model.id,
        title=model.title,
        description=model.description,
        skills=list(model.skills or []),
        deadline=model.deadline,
        priority=Priority(model.priority),
        status=TicketStatus(model.status),
        created_at=model.created_at,
        assigned_to=model.assigned_to,
        assigned_at=model.assigned_at,
        completed_at=model.completed_at
    )


def _log_to_domain(model: ActivityLogModel) -> ActivityLog:
    return ActivityLog(
        id=model.id,
        ticket_id=model.ticket_id,
        action=ActivityAction(model.action),
        timestamp=model.timestamp,
        details=dict(model.details or {})
    )


class SQLAlchemyTeamMemberRepository(ITeamMemberRepository):
    """SQLAlchemy implementation for team members."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_all(self) -> List[TeamMember]:
        # Ascending id is creation order, which the scorer uses for ties
        stmt = select(TeamMemberModel).order_by(TeamMemberModel.id.asc())
        result = await self._session.execute(stmt)
        return [_member_to_domain(model) for model in result.scalars().all()]

    async def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        model = await self._session.get(TeamMemberModel, member_id)
        return _member_to_domain(model) if model else None

    async def create(self, name: str, skills: List[str], initials: str) -> TeamMember:
        model = TeamMemberModel(name=name, skills=list(skills), initials=initials)
        self._session.add(model)
        await self._session.flush()
        return _member_to_domain(model)

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(TeamMemberModel.id)))
        return result.scalar_one()


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        model = await self._session.get(TicketModel, ticket_id)
        return _ticket_to_domain(model) if model else None

    async def list(self, statuses: Optional[List[TicketStatus]] = None) -> List[Ticket]:
        stmt = select(TicketModel)
        if statuses:
            stmt = stmt.where(TicketModel.status.in_([TicketStatus(s).value for s in statuses]))
        stmt = stmt.order_by(TicketModel.id.asc())

        result = await self._session.execute(stmt)
        return [_ticket_to_domain(model) for model in result.scalars().all()]

    async def add(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            title=ticket.title,
            description=ticket.description,
            skills=list(ticket.skills),
            deadline=ticket.deadline,
            priority=ticket.priority.value,
            status=ticket.status.value,
            assigned_to=ticket.assigned_to,
            assigned_at=ticket.assigned_at,
            completed_at=ticket.completed_at,
            created_at=ticket.created_at
        )

        self._session.add(model)
        await self._session.flush()

        return _ticket_to_domain(model)

    async def save(self, ticket: Ticket) -> Ticket:
        model = await self._session.get(TicketModel, ticket.id)
        if model is None:
            raise RepositoryException(f"Ticket {ticket.id} not found", {"ticket_id": ticket.id})

        # created_at is immutable and never written back
        model.title = ticket.title
        model.description = ticket.description
        model.skills = list(ticket.skills)
        model.deadline = ticket.deadline
        model.priority = ticket.priority.value
        model.status = ticket.status.value
        model.assigned_to = ticket.assigned_to
        model.assigned_at = ticket.assigned_at
        model.completed_at = ticket.completed_at

        await self._session.flush()

        return _ticket_to_domain(model)

    async def delete(self, ticket_id: int) -> bool:
        model = await self._session.get(TicketModel, ticket_id)
        if model is None:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def count_active_by_member(self) -> Dict[int, int]:
        stmt = (
            select(TicketModel.assigned_to, func.count(TicketModel.id))
            .where(
                TicketModel.assigned_to.is_not(None),
                TicketModel.status != TicketStatus.COMPLETED.value
            )
            .group_by(TicketModel.assigned_to)
        )
        result = await self._session.execute(stmt)
        return {member_id: count for member_id, count in result.all()}


class SQLAlchemyActivityLogRepository(IActivityLogRepository):
    """SQLAlchemy implementation for the append-only activity log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(
        self,
        ticket_id: int,
        action: ActivityAction,
        timestamp: datetime,
        details: Dict[str, Any]
    ) -> ActivityLog:
        model = ActivityLogModel(
            ticket_id=ticket_id,
            action=ActivityAction(action).value,
            timestamp=timestamp,
            details=details
        )

        self._session.add(model)
        await self._session.flush()

        return _log_to_domain(model)

    async def latest_timestamp(self, ticket_id: int) -> Optional[datetime]:
        stmt = (
            select(ActivityLogModel.timestamp)
            .where(ActivityLogModel.ticket_id == ticket_id)
            .order_by(ActivityLogModel.timestamp.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_ticket(self, ticket_id: int) -> List[ActivityLog]:
        stmt = (
            select(ActivityLogModel)
            .where(ActivityLogModel.ticket_id == ticket_id)
            .order_by(ActivityLogModel.timestamp.desc(), ActivityLogModel.id.desc())
        )
        result = await self._session.execute(stmt)
        return [_log_to_domain(model) for model in result.scalars().all()]


class YAMLTeamConfigProvider(ITeamConfigProvider):
    """
    Team configuration provider that loads from YAML.

    A missing file yields the built-in skill vocabulary and team.
    """

    def __init__(self, config_path: str | Path):
        self._config_path = Path(config_path)
        self._config: Optional[TeamConfig] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.info(
                "Team config not found, using defaults",
                extra={"path": str(self._config_path)}
            )
            self._config = TeamConfig()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(
                f"Invalid YAML in {self._config_path}: {e}",
                {"path": str(self._config_path)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationException(
                f"Team config {self._config_path} must be a mapping",
                {"path": str(self._config_path)}
            )

        try:
            self._config = TeamConfig(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid team config in {self._config_path}",
                {"path": str(self._config_path), "errors": e.errors(include_url=False)}
            ) from e

        logger.info(
            "Team config loaded",
            extra={
                "path": str(self._config_path),
                "skills": self._config.skills,
                "member_count": len(self._config.team_members)
            }
        )

    def get_config(self) -> TeamConfig:
        """Get current team configuration."""
        return self._config

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
