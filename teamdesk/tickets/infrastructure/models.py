"""
Ticket Infrastructure Models
============================

SQLAlchemy ORM models for the tickets module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from teamdesk.config import Priority, TicketStatus
from teamdesk.infrastructure.database import Base, UTCDateTime


class TeamMemberModel(Base):
    """
    Database model for TeamMember entity.

    Maps to the 'team_members' table.
    """
    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    initials: Mapped[str] = mapped_column(String(8), nullable=False)


class TicketModel(Base):
    """
    Database model for Ticket entity.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Ticket content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    deadline: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=Priority.MEDIUM.value)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TicketStatus.PENDING.value, index=True)
    # Plain member id, no foreign key: a ticket refers to a member, never owns one
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class ActivityLogModel(Base):
    """
    Database model for ActivityLog entity.

    Maps to the 'activity_logs' table. Rows are inserted, never updated or
    deleted. ticket_id has no foreign key so history survives ticket deletion.
    """
    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
