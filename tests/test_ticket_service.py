"""
Tests for TicketService: lifecycle orchestration, assignment and the
activity trail, against an in-memory SQLite database.
"""

from datetime import date

import pytest

from teamdesk.config import ActivityAction, Priority, TicketStatus
from teamdesk.core import RepositoryException, ValidationException
from teamdesk.infrastructure.database import get_session_context
from teamdesk.tickets.application import ActivityLogger, TicketService
from teamdesk.tickets.domain import TeamConfig, TeamMemberSeed
from teamdesk.tickets.infrastructure import (
    SQLAlchemyActivityLogRepository,
    SQLAlchemyTeamMemberRepository,
    SQLAlchemyTicketRepository,
    build_ticket_service,
)


def actions(logs):
    return [log.action for log in logs]


async def member_id(service, name):
    members = await service.list_members()
    return next(m.id for m in members if m.name == name)


# ========== Seeding ==========

async def test_seed_creates_members_in_order(service):
    members = await service.seed_team_members(TeamConfig().team_members)

    assert [m.name for m in members] == [
        "John Doe", "Jane Smith", "Alex Johnson", "Sam Williams", "Taylor Green"
    ]
    assert [m.id for m in members] == sorted(m.id for m in members)
    assert members[1].skills == ["Backend", "Database"]
    assert members[1].initials == "JS"


async def test_seed_is_skipped_when_members_exist(seeded_service):
    again = await seeded_service.seed_team_members([TeamMemberSeed(name="Extra Person", skills=["Design"])])

    assert len(again) == 5
    assert all(m.name != "Extra Person" for m in again)


async def test_get_member_unknown_returns_none(seeded_service):
    assert await seeded_service.get_member(999) is None


# ========== Create ==========

async def test_create_ticket_is_pending_with_created_log(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    assert ticket.id is not None
    assert ticket.status == TicketStatus.PENDING
    assert ticket.assigned_to is None

    logs = await seeded_service.list_activity(ticket.id)
    assert actions(logs) == [ActivityAction.CREATED]
    assert logs[0].details["ticket"]["id"] == ticket.id
    assert logs[0].details["ticket"]["status"] == "pending"


async def test_create_with_member_assigns_directly(seeded_service, make_ticket):
    sam = await member_id(seeded_service, "Sam Williams")

    # Sam has no Backend skill; an explicit member bypasses scoring
    ticket = await make_ticket(seeded_service, skills=["Backend"], assigned_to=sam)

    assert ticket.status == TicketStatus.ASSIGNED
    assert ticket.assigned_to == sam
    assert ticket.assigned_at is not None
    assert actions(await seeded_service.list_activity(ticket.id)) == [
        ActivityAction.ASSIGNED, ActivityAction.CREATED
    ]


async def test_create_with_unknown_member_stays_pending(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service, assigned_to=999)

    assert ticket.status == TicketStatus.PENDING
    assert ticket.assigned_to is None
    assert actions(await seeded_service.list_activity(ticket.id)) == [ActivityAction.CREATED]


# ========== Assign ==========

async def test_auto_assign_tie_goes_to_first_seeded_member(seeded_service, make_ticket):
    """Jane and Taylor both match Backend+Database; Jane was seeded first."""
    ticket = await make_ticket(seeded_service, skills=["Backend", "Database"])

    assigned = await seeded_service.assign_ticket(ticket.id)

    assert assigned.status == TicketStatus.ASSIGNED
    assert assigned.assigned_to == await member_id(seeded_service, "Jane Smith")

    log = (await seeded_service.list_activity(ticket.id))[0]
    assert log.action == ActivityAction.ASSIGNED
    assert log.details == {"member_id": assigned.assigned_to, "member_name": "Jane Smith"}


async def test_auto_assign_balances_workload(seeded_service, make_ticket):
    first = await make_ticket(seeded_service, skills=["Backend", "Database"])
    second = await make_ticket(seeded_service, skills=["Backend", "Database"])

    first = await seeded_service.assign_ticket(first.id)
    second = await seeded_service.assign_ticket(second.id)

    assert first.assigned_to == await member_id(seeded_service, "Jane Smith")
    assert second.assigned_to == await member_id(seeded_service, "Taylor Green")


async def test_completed_tickets_do_not_count_as_workload(seeded_service, make_ticket):
    jane = await member_id(seeded_service, "Jane Smith")
    done = await make_ticket(seeded_service, skills=["Backend", "Database"], assigned_to=jane)
    await seeded_service.complete_ticket(done.id)

    assert await seeded_service.get_member_workloads() == {}

    ticket = await make_ticket(seeded_service, skills=["Backend", "Database"])
    assert (await seeded_service.assign_ticket(ticket.id)).assigned_to == jane


async def test_workloads_count_open_assigned_tickets(seeded_service, make_ticket):
    jane = await member_id(seeded_service, "Jane Smith")
    alex = await member_id(seeded_service, "Alex Johnson")
    await make_ticket(seeded_service, assigned_to=jane)
    await make_ticket(seeded_service, assigned_to=jane)
    await make_ticket(seeded_service, assigned_to=alex)
    await make_ticket(seeded_service, skills=["Design"])

    assert await seeded_service.get_member_workloads() == {jane: 2, alex: 1}


async def test_no_eligible_member_leaves_ticket_pending(service, make_ticket):
    await service.seed_team_members([
        TeamMemberSeed(name="Front Only", skills=["Frontend"]),
        TeamMemberSeed(name="Back Only", skills=["Backend"]),
    ])
    ticket = await make_ticket(service, skills=["Design"])

    assert await service.find_best_member(["Design"]) is None

    result = await service.assign_ticket(ticket.id)

    assert result == ticket
    assert result.status == TicketStatus.PENDING
    assert actions(await service.list_activity(ticket.id)) == [ActivityAction.CREATED]


async def test_empty_skills_never_auto_assign(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service, skills=[])

    result = await seeded_service.assign_ticket(ticket.id)

    assert result.status == TicketStatus.PENDING
    assert await seeded_service.find_best_member([]) is None


async def test_assign_unknown_member_returns_ticket_unchanged(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    result = await seeded_service.assign_ticket(ticket.id, 999)

    assert result == ticket
    assert len(await seeded_service.list_activity(ticket.id)) == 1


async def test_assign_missing_ticket_returns_none(seeded_service):
    assert await seeded_service.assign_ticket(12345) is None
    assert await seeded_service.assign_ticket(12345, 1) is None
    assert await seeded_service.list_activity(12345) == []


async def test_reassign_overwrites_assignee(seeded_service, make_ticket):
    john = await member_id(seeded_service, "John Doe")
    alex = await member_id(seeded_service, "Alex Johnson")
    ticket = await make_ticket(seeded_service, assigned_to=john)

    reassigned = await seeded_service.assign_ticket(ticket.id, alex)

    assert reassigned.assigned_to == alex
    assert reassigned.assigned_at >= ticket.assigned_at
    assert actions(await seeded_service.list_activity(ticket.id)) == [
        ActivityAction.ASSIGNED, ActivityAction.ASSIGNED, ActivityAction.CREATED
    ]


# ========== Complete / Reopen ==========

async def test_complete_pending_ticket_records_unknown_completer(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    completed = await seeded_service.complete_ticket(ticket.id)

    assert completed.status == TicketStatus.COMPLETED
    assert completed.completed_at is not None
    log = (await seeded_service.list_activity(ticket.id))[0]
    assert log.action == ActivityAction.COMPLETED
    assert log.details["completed_by"] == "Unknown"
    assert log.details["completed_at"] == completed.completed_at.isoformat()


async def test_complete_assigned_ticket_records_assignee(seeded_service, make_ticket):
    jane = await member_id(seeded_service, "Jane Smith")
    ticket = await make_ticket(seeded_service, assigned_to=jane)

    await seeded_service.complete_ticket(ticket.id)

    log = (await seeded_service.list_activity(ticket.id))[0]
    assert log.details["completed_by"] == "Jane Smith"


async def test_reopen_derives_status_from_assignee(seeded_service, make_ticket):
    jane = await member_id(seeded_service, "Jane Smith")
    assigned = await make_ticket(seeded_service, assigned_to=jane)
    unassigned = await make_ticket(seeded_service, skills=["Design"])

    for ticket in (assigned, unassigned):
        await seeded_service.complete_ticket(ticket.id)

    reopened_assigned = await seeded_service.reopen_ticket(assigned.id)
    reopened_unassigned = await seeded_service.reopen_ticket(unassigned.id)

    assert reopened_assigned.status == TicketStatus.ASSIGNED
    assert reopened_assigned.completed_at is None
    assert reopened_unassigned.status == TicketStatus.PENDING
    assert reopened_unassigned.completed_at is None

    log = (await seeded_service.list_activity(assigned.id))[0]
    assert log.action == ActivityAction.REOPENED
    assert log.details == {"previous_status": "completed"}


async def test_reopen_open_ticket_is_safe(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    reopened = await seeded_service.reopen_ticket(ticket.id)

    assert reopened.status == TicketStatus.PENDING
    assert (await seeded_service.list_activity(ticket.id))[0].details == {"previous_status": "pending"}


async def test_lifecycle_operations_on_missing_ticket_return_none(seeded_service):
    assert await seeded_service.complete_ticket(404) is None
    assert await seeded_service.reopen_ticket(404) is None
    assert await seeded_service.update_ticket(404, {"title": "x"}) is None
    assert await seeded_service.get_ticket(404) is None


# ========== Update / Delete ==========

async def test_update_ticket_applies_fields_and_logs(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    updated = await seeded_service.update_ticket(ticket.id, {
        "title": "Fix login on Safari",
        "priority": "high",
        "deadline": date(2030, 6, 1),
        "skills": ["Frontend", "Frontend", "Backend"],
    })

    assert updated.title == "Fix login on Safari"
    assert updated.priority == Priority.HIGH
    assert updated.deadline == date(2030, 6, 1)
    assert updated.skills == ["Frontend", "Backend"]
    assert updated.created_at == ticket.created_at
    assert updated.status == ticket.status

    log = (await seeded_service.list_activity(ticket.id))[0]
    assert log.action == ActivityAction.UPDATED
    assert log.details == {"updates": {
        "title": "Fix login on Safari",
        "priority": "high",
        "deadline": "2030-06-01",
        "skills": ["Frontend", "Backend"],
    }}


async def test_update_rejects_lifecycle_fields(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    with pytest.raises(ValidationException) as exc:
        await seeded_service.update_ticket(ticket.id, {"status": "completed", "assigned_to": 1})

    assert exc.value.details == {"fields": ["assigned_to", "status"]}
    assert (await seeded_service.get_ticket(ticket.id)).status == TicketStatus.PENDING
    assert len(await seeded_service.list_activity(ticket.id)) == 1


async def test_delete_ticket_keeps_history(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)

    assert await seeded_service.delete_ticket(ticket.id) is True
    assert await seeded_service.get_ticket(ticket.id) is None
    assert ticket.id not in [t.id for t in await seeded_service.list_tickets()]

    logs = await seeded_service.list_activity(ticket.id)
    assert actions(logs) == [ActivityAction.DELETED, ActivityAction.CREATED]
    assert logs[0].details == {"ticket_id": ticket.id}


async def test_delete_missing_ticket_returns_false_without_log(seeded_service):
    assert await seeded_service.delete_ticket(77) is False
    assert await seeded_service.list_activity(77) == []


async def test_list_tickets_filters_by_status(seeded_service, make_ticket):
    jane = await member_id(seeded_service, "Jane Smith")
    pending = await make_ticket(seeded_service, title="a")
    assigned = await make_ticket(seeded_service, title="b", assigned_to=jane)
    done = await make_ticket(seeded_service, title="c")
    await seeded_service.complete_ticket(done.id)

    assert [t.id for t in await seeded_service.list_tickets()] == [pending.id, assigned.id, done.id]
    assert [t.id for t in await seeded_service.list_tickets([TicketStatus.ASSIGNED])] == [assigned.id]
    assert [t.id for t in await seeded_service.list_tickets(
        [TicketStatus.PENDING, TicketStatus.COMPLETED]
    )] == [pending.id, done.id]


# ========== Activity trail ==========

async def test_full_lifecycle_activity_is_most_recent_first(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service, skills=["Backend", "Database"])
    await seeded_service.assign_ticket(ticket.id)
    await seeded_service.complete_ticket(ticket.id)
    await seeded_service.reopen_ticket(ticket.id)

    logs = await seeded_service.list_activity(ticket.id)

    assert actions(logs) == [
        ActivityAction.REOPENED,
        ActivityAction.COMPLETED,
        ActivityAction.ASSIGNED,
        ActivityAction.CREATED,
    ]


async def test_each_change_logs_once_with_later_timestamp(seeded_service, make_ticket):
    ticket = await make_ticket(seeded_service)
    operations = [
        lambda: seeded_service.assign_ticket(ticket.id),
        lambda: seeded_service.update_ticket(ticket.id, {"title": "Renamed"}),
        lambda: seeded_service.complete_ticket(ticket.id),
        lambda: seeded_service.reopen_ticket(ticket.id),
        lambda: seeded_service.delete_ticket(ticket.id),
    ]

    for operation in operations:
        before = await seeded_service.list_activity(ticket.id)
        await operation()
        after = await seeded_service.list_activity(ticket.id)

        assert len(after) == len(before) + 1
        assert after[0].timestamp > before[0].timestamp


async def test_activity_logger_never_checks_ticket_exists(session):
    activity = ActivityLogger(SQLAlchemyActivityLogRepository(session))

    first = await activity.append(42, ActivityAction.DELETED, {"ticket_id": 42})
    second = await activity.append(42, ActivityAction.UPDATED)

    assert first.ticket_id == 42
    assert second.details == {}
    assert second.timestamp > first.timestamp
    assert [log.id for log in await activity.list_for_ticket(42)] == [second.id, first.id]


# ========== Unit of work ==========

class FailingActivityLogRepository(SQLAlchemyActivityLogRepository):
    """Activity repository whose writes always fail."""

    async def add(self, ticket_id, action, timestamp, details):
        raise RepositoryException("activity store unavailable")


async def test_failed_log_write_rolls_back_state_change(db, make_ticket):
    async with get_session_context() as session:
        service = build_ticket_service(session)
        await service.seed_team_members(TeamConfig().team_members)
        ticket = await make_ticket(service, skills=["Backend"])

    with pytest.raises(RepositoryException):
        async with get_session_context() as session:
            failing = TicketService(
                SQLAlchemyTeamMemberRepository(session),
                SQLAlchemyTicketRepository(session),
                ActivityLogger(FailingActivityLogRepository(session)),
            )
            await failing.complete_ticket(ticket.id)

    async with get_session_context() as session:
        service = build_ticket_service(session)
        stored = await service.get_ticket(ticket.id)
        assert stored.status == TicketStatus.PENDING
        assert stored.completed_at is None
        assert actions(await service.list_activity(ticket.id)) == [ActivityAction.CREATED]


class FailingTicketRepository(SQLAlchemyTicketRepository):
    """Ticket repository whose updates always fail."""

    async def save(self, ticket):
        raise RepositoryException("ticket store unavailable", {"ticket_id": ticket.id})


async def test_failed_state_write_leaves_no_log(db, make_ticket):
    async with get_session_context() as session:
        service = build_ticket_service(session)
        await service.seed_team_members(TeamConfig().team_members)
        ticket = await make_ticket(service, skills=["Backend"])

    with pytest.raises(RepositoryException):
        async with get_session_context() as session:
            failing = TicketService(
                SQLAlchemyTeamMemberRepository(session),
                FailingTicketRepository(session),
                ActivityLogger(SQLAlchemyActivityLogRepository(session)),
            )
            await failing.assign_ticket(ticket.id)

    async with get_session_context() as session:
        service = build_ticket_service(session)
        stored = await service.get_ticket(ticket.id)
        assert stored.status == TicketStatus.PENDING
        assert stored.assigned_to is None
        assert actions(await service.list_activity(ticket.id)) == [ActivityAction.CREATED]
