"""
Ticket Lifecycle
================

State machine for ticket status: pending -> assigned -> completed, with
reopen deriving the status back from the assignment.

Transitions are pure: each returns a new Ticket and leaves the input
untouched. Whether a ticket exists, and which member to assign, is decided
by the caller.
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import List, Optional

from teamdesk.config import Priority, TicketStatus
from teamdesk.tickets.domain.entities import Ticket, normalize_skills


def derive_status(ticket: Ticket) -> TicketStatus:
    """
    Status a non-completed ticket should have given its assignment.

    Reopen uses this instead of remembering a previous status.
    """
    return TicketStatus.ASSIGNED if ticket.assigned_to is not None else TicketStatus.PENDING


def _now(timestamp: Optional[datetime]) -> datetime:
    return timestamp or datetime.now(timezone.utc)


class TicketLifecycle:
    """Stateless transition functions."""

    @staticmethod
    def create(
        title: str,
        description: str,
        skills: List[str],
        deadline: date,
        priority: Priority,
        timestamp: Optional[datetime] = None
    ) -> Ticket:
        """New tickets always start pending and unassigned."""
        return Ticket(
            id=None,
            title=title,
            description=description,
            skills=normalize_skills(skills),
            deadline=deadline,
            priority=Priority(priority),
            status=TicketStatus.PENDING,
            created_at=_now(timestamp),
        )

    @staticmethod
    def assign(ticket: Ticket, member_id: int, timestamp: Optional[datetime] = None) -> Ticket:
        """
        Assign to a member from any state.

        Reassigning overwrites the previous assignee and assignment time.
        completed_at is cleared since the ticket is active again.
        """
        return replace(
            ticket,
            status=TicketStatus.ASSIGNED,
            assigned_to=member_id,
            assigned_at=_now(timestamp),
            completed_at=None,
        )

    @staticmethod
    def complete(ticket: Ticket, timestamp: Optional[datetime] = None) -> Ticket:
        """
        Complete from any state.

        There is no guard on the ticket being assigned first; a pending
        ticket can be completed directly and keeps no assignee.
        """
        return replace(
            ticket,
            status=TicketStatus.COMPLETED,
            completed_at=_now(timestamp),
        )

    @staticmethod
    def reopen(ticket: Ticket) -> Ticket:
        """Clear completion and re-derive the status. Safe on any state."""
        return replace(ticket, completed_at=None, status=derive_status(ticket))
