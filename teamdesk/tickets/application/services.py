"""
Ticket Application Services
===========================

Application services orchestrate the domain (lifecycle, scorer) and the
repositories.

TicketService is the single entry point for every ticket read and write.
Each mutating operation applies its state change and appends exactly one
activity entry through repositories that share one unit of work, so the
two writes commit or roll back together.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from teamdesk.config import ActivityAction, Priority, TicketStatus
from teamdesk.core import ValidationException
from teamdesk.shared.infrastructure.logging import get_logger
from teamdesk.tickets.domain import (
    ActivityLog,
    AssignmentScorer,
    TeamConfig,
    TeamMember,
    TeamMemberSeed,
    Ticket,
    TicketLifecycle,
    normalize_skills,
)

logger = get_logger(__name__)

UNKNOWN_MEMBER_NAME = "Unknown"
UPDATABLE_FIELDS = ("title", "description", "skills", "deadline", "priority")


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITeamMemberRepository(ABC):
    """Interface for team member data access."""

    @abstractmethod
    async def list_all(self) -> List[TeamMember]:
        """All members in enumeration (creation) order."""

    @abstractmethod
    async def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        """Get member by ID."""

    @abstractmethod
    async def create(self, name: str, skills: List[str], initials: str) -> TeamMember:
        """Create a member."""

    @abstractmethod
    async def count(self) -> int:
        """Number of members."""


class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def list(self, statuses: Optional[List[TicketStatus]] = None) -> List[Ticket]:
        """Tickets in creation order, optionally filtered by status."""

    @abstractmethod
    async def add(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket and return it with its ID."""

    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        """Persist changes to an existing ticket."""

    @abstractmethod
    async def delete(self, ticket_id: int) -> bool:
        """Remove a ticket. False if it did not exist."""

    @abstractmethod
    async def count_active_by_member(self) -> Dict[int, int]:
        """Non-completed ticket count per assignee."""


class IActivityLogRepository(ABC):
    """Interface for activity log data access. Append-only."""

    @abstractmethod
    async def add(
        self,
        ticket_id: int,
        action: ActivityAction,
        timestamp: datetime,
        details: Dict[str, Any]
    ) -> ActivityLog:
        """Append an entry."""

    @abstractmethod
    async def latest_timestamp(self, ticket_id: int) -> Optional[datetime]:
        """Timestamp of the newest entry for a ticket."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: int) -> List[ActivityLog]:
        """Entries for a ticket, most recent first."""


class ITeamConfigProvider(ABC):
    """Interface for team configuration access."""

    @abstractmethod
    def get_config(self) -> TeamConfig:
        """Get current team configuration."""


# ========== Application Services ==========

class ActivityLogger:
    """
    Appends audit entries for ticket changes.

    Never checks that the ticket still exists; the deleted entry is written
    after the ticket is gone. Timestamps for a ticket strictly increase.
    """

    def __init__(self, repository: IActivityLogRepository):
        self._repo = repository

    async def append(
        self,
        ticket_id: int,
        action: ActivityAction,
        details: Optional[Dict[str, Any]] = None
    ) -> ActivityLog:
        """
        Append an entry stamped with the current time.

        If the clock has not moved past the newest entry for this ticket,
        the new entry is stamped one microsecond after it.
        """
        timestamp = datetime.now(timezone.utc)
        latest = await self._repo.latest_timestamp(ticket_id)
        if latest is not None and timestamp <= latest:
            timestamp = latest + timedelta(microseconds=1)

        entry = await self._repo.add(ticket_id, action, timestamp, details or {})

        logger.debug(
            "Activity recorded",
            extra={"ticket_id": ticket_id, "action": action.value, "log_id": entry.id}
        )
        return entry

    async def list_for_ticket(self, ticket_id: int) -> List[ActivityLog]:
        """Entries for a ticket, most recent first."""
        return await self._repo.list_for_ticket(ticket_id)


class TicketService:
    """
    Facade over ticket storage, lifecycle and assignment.

    Not-found is reported as None (or False for delete), never raised.
    A failed automatic assignment returns the ticket unchanged.
    """

    def __init__(
        self,
        member_repository: ITeamMemberRepository,
        ticket_repository: ITicketRepository,
        activity_logger: ActivityLogger
    ):
        self._members = member_repository
        self._tickets = ticket_repository
        self._activity = activity_logger

    # ---------- Team members ----------

    async def list_members(self) -> List[TeamMember]:
        return await self._members.list_all()

    async def get_member(self, member_id: int) -> Optional[TeamMember]:
        return await self._members.get_by_id(member_id)

    async def get_member_workloads(self) -> Dict[int, int]:
        """Active (non-completed) assigned ticket count per member."""
        return await self._tickets.count_active_by_member()

    async def seed_team_members(self, seeds: List[TeamMemberSeed]) -> List[TeamMember]:
        """
        Create the seed team once.

        Does nothing when members already exist, so restarts keep ids and
        enumeration order stable.
        """
        if await self._members.count() > 0:
            return await self._members.list_all()

        members = []
        for seed in seeds:
            members.append(
                await self._members.create(seed.name, normalize_skills(seed.skills), seed.initials)
            )

        logger.info("Team members seeded", extra={"member_count": len(members)})
        return members

    # ---------- Assignment ----------

    async def find_best_member(self, required_skills: List[str]) -> Optional[TeamMember]:
        """
        Best member for the skills given current workload.

        Workload is read fresh on every call.
        """
        if not required_skills:
            return None

        members = await self._members.list_all()
        workload = await self._tickets.count_active_by_member()

        member_id = AssignmentScorer.find_best_member(required_skills, members, workload)
        if member_id is None:
            return None
        return next(member for member in members if member.id == member_id)

    # ---------- Tickets: reads ----------

    async def list_tickets(self, statuses: Optional[List[TicketStatus]] = None) -> List[Ticket]:
        return await self._tickets.list(statuses)

    async def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        return await self._tickets.get_by_id(ticket_id)

    async def list_activity(self, ticket_id: int) -> List[ActivityLog]:
        """Activity for a ticket, most recent first. Works for deleted tickets."""
        return await self._activity.list_for_ticket(ticket_id)

    # ---------- Tickets: lifecycle ----------

    async def create_ticket(
        self,
        title: str,
        description: str,
        skills: List[str],
        deadline: date,
        priority: Priority,
        assigned_to: Optional[int] = None
    ) -> Ticket:
        """
        Create a pending ticket.

        With assigned_to, the ticket is assigned to that member straight
        away (no scoring). An unknown member leaves it pending.
        """
        ticket = TicketLifecycle.create(title, description, skills, deadline, priority)
        ticket = await self._tickets.add(ticket)

        await self._activity.append(ticket.id, ActivityAction.CREATED, {"ticket": ticket.to_dict()})

        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.id, "priority": ticket.priority.value, "skills": ticket.skills}
        )

        if assigned_to is not None:
            return await self.assign_ticket(ticket.id, assigned_to)

        return ticket

    async def update_ticket(self, ticket_id: int, updates: Dict[str, Any]) -> Optional[Ticket]:
        """
        Apply partial content updates.

        Only title, description, skills, deadline and priority may change
        here. Lifecycle fields go through assign/complete/reopen.

        Raises:
            ValidationException: On any other field
        """
        invalid = sorted(set(updates) - set(UPDATABLE_FIELDS))
        if invalid:
            raise ValidationException(
                f"Fields cannot be updated directly: {', '.join(invalid)}",
                {"fields": invalid}
            )

        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            logger.info("Update skipped, ticket not found", extra={"ticket_id": ticket_id})
            return None

        changes = dict(updates)
        if "skills" in changes:
            changes["skills"] = normalize_skills(changes["skills"])
        if "priority" in changes:
            changes["priority"] = Priority(changes["priority"])
        if "deadline" in changes and isinstance(changes["deadline"], str):
            changes["deadline"] = date.fromisoformat(changes["deadline"])

        updated = await self._tickets.save(replace(ticket, **changes))

        applied = {
            key: value.isoformat() if isinstance(value, date)
            else value.value if isinstance(value, Priority)
            else value
            for key, value in changes.items()
        }
        await self._activity.append(ticket_id, ActivityAction.UPDATED, {"updates": applied})

        logger.info("Ticket updated", extra={"ticket_id": ticket_id, "fields": sorted(applied)})
        return updated

    async def delete_ticket(self, ticket_id: int) -> bool:
        """Remove a ticket. Its activity history is kept."""
        deleted = await self._tickets.delete(ticket_id)
        if not deleted:
            logger.info("Delete skipped, ticket not found", extra={"ticket_id": ticket_id})
            return False

        await self._activity.append(ticket_id, ActivityAction.DELETED, {"ticket_id": ticket_id})

        logger.info("Ticket deleted", extra={"ticket_id": ticket_id})
        return True

    async def assign_ticket(self, ticket_id: int, member_id: Optional[int] = None) -> Optional[Ticket]:
        """
        Assign a ticket, automatically when member_id is None.

        Returns:
            None if the ticket does not exist. The unchanged ticket if no
            member matches or member_id is unknown. Otherwise the assigned
            ticket.
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            logger.info("Assign skipped, ticket not found", extra={"ticket_id": ticket_id})
            return None

        if member_id is None:
            member = await self.find_best_member(ticket.skills)
            if member is None:
                logger.warning(
                    "No eligible assignee",
                    extra={"ticket_id": ticket_id, "skills": ticket.skills}
                )
                return ticket
        else:
            member = await self._members.get_by_id(member_id)
            if member is None:
                logger.warning(
                    "Assign skipped, member not found",
                    extra={"ticket_id": ticket_id, "member_id": member_id}
                )
                return ticket

        previous_assignee = ticket.assigned_to
        updated = await self._tickets.save(TicketLifecycle.assign(ticket, member.id))

        await self._activity.append(
            ticket_id,
            ActivityAction.ASSIGNED,
            {"member_id": member.id, "member_name": member.name}
        )

        logger.info(
            "Ticket assigned",
            extra={
                "ticket_id": ticket_id,
                "member_id": member.id,
                "previous_member_id": previous_assignee,
                "automatic": member_id is None
            }
        )
        return updated

    async def complete_ticket(self, ticket_id: int) -> Optional[Ticket]:
        """
        Complete a ticket from any state.

        completed_by in the log is the assignee's name, or "Unknown".
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            logger.info("Complete skipped, ticket not found", extra={"ticket_id": ticket_id})
            return None

        updated = await self._tickets.save(TicketLifecycle.complete(ticket))

        member = None
        if ticket.assigned_to is not None:
            member = await self._members.get_by_id(ticket.assigned_to)

        await self._activity.append(
            ticket_id,
            ActivityAction.COMPLETED,
            {
                "completed_at": updated.completed_at.isoformat(),
                "completed_by": member.name if member else UNKNOWN_MEMBER_NAME
            }
        )

        logger.info(
            "Ticket completed",
            extra={"ticket_id": ticket_id, "previous_status": ticket.status.value}
        )
        return updated

    async def reopen_ticket(self, ticket_id: int) -> Optional[Ticket]:
        """Reopen a ticket; status becomes assigned or pending from its assignee."""
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            logger.info("Reopen skipped, ticket not found", extra={"ticket_id": ticket_id})
            return None

        updated = await self._tickets.save(TicketLifecycle.reopen(ticket))

        await self._activity.append(
            ticket_id,
            ActivityAction.REOPENED,
            {"previous_status": ticket.status.value}
        )

        logger.info(
            "Ticket reopened",
            extra={
                "ticket_id": ticket_id,
                "previous_status": ticket.status.value,
                "status": updated.status.value
            }
        )
        return updated
