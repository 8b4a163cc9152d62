"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for team members, tickets and ticket activity.

Controllers are thin - they delegate to TicketService and translate
absent results into 404 responses.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from teamdesk.config import VALID_STATUSES, TicketStatus
from teamdesk.core import ValidationException
from teamdesk.infrastructure.database import get_session
from teamdesk.shared.infrastructure.logging import get_context_logger, log_latency
from teamdesk.tickets.application import (
    ActivityLogResponse,
    AssignRequest,
    TeamMemberResponse,
    TicketCreateDTO,
    TicketDetailResponse,
    TicketResponse,
    TicketService,
    TicketUpdateDTO,
)
from teamdesk.tickets.domain import TeamConfig, Ticket
from teamdesk.tickets.infrastructure import build_ticket_service

router = APIRouter(prefix="/api", tags=["Tickets"])


# ========== Example payloads for Swagger ==========

TICKET_CREATE_EXAMPLE = {
    "title": "Checkout page times out",
    "description": "Orders over 50 items time out when saving.",
    "skills": ["Backend", "Database"],
    "deadline": "2024-03-01",
    "priority": "high"
}

TICKET_RESPONSE_EXAMPLE = {
    "id": 1,
    "title": "Checkout page times out",
    "description": "Orders over 50 items time out when saving.",
    "skills": ["Backend", "Database"],
    "deadline": "2024-03-01",
    "priority": "high",
    "status": "assigned",
    "assigned_to": 2,
    "assigned_at": "2024-02-20T09:15:00Z",
    "completed_at": None,
    "created_at": "2024-02-20T09:15:00Z",
    "assigned_member": {
        "id": 2,
        "name": "Jane Smith",
        "skills": ["Backend", "Database"],
        "initials": "JS",
        "assigned_ticket_count": None
    }
}


# ========== Dependencies ==========

async def get_ticket_service(
    session: AsyncSession = Depends(get_session)
) -> TicketService:
    """Get ticket service instance bound to the request session."""
    return build_ticket_service(session)


def get_team_config(request: Request) -> TeamConfig:
    """Team configuration loaded at startup, or the defaults."""
    provider = getattr(request.app.state, "team_config_provider", None)
    return provider.get_config() if provider else TeamConfig()


def _request_logger(request: Request):
    return get_context_logger(__name__, getattr(request.state, "correlation_id", None))


def _check_skills(skills: Optional[List[str]], config: TeamConfig) -> None:
    if skills is None:
        return
    unknown = [skill for skill in skills if skill not in config.skills]
    if unknown:
        raise ValidationException(
            f"Unknown skills: {', '.join(unknown)}",
            {"skills": unknown, "available": config.skills}
        )


def _parse_statuses(raw: Optional[str]) -> Optional[List[TicketStatus]]:
    """Parse 'pending,assigned' style filters. None or 'all' means no filter."""
    if not raw or raw == "all":
        return None

    values = [part.strip() for part in raw.split(",") if part.strip()]
    allowed = {s.value for s in VALID_STATUSES}
    invalid = [value for value in values if value not in allowed]
    if invalid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status filter: {', '.join(invalid)}"
        )
    return [TicketStatus(value) for value in values]


async def _to_response(service: TicketService, ticket: Ticket) -> TicketResponse:
    member = None
    if ticket.assigned_to is not None:
        member = await service.get_member(ticket.assigned_to)
    return TicketResponse.from_domain(ticket, member)


def _not_found(ticket_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Ticket {ticket_id} not found"
    )


# ========== Skills & Team Members ==========

@router.get("/skills", response_model=List[str], summary="List available skills")
async def list_skills(config: TeamConfig = Depends(get_team_config)):
    return config.skills


@router.get(
    "/team-members",
    response_model=List[TeamMemberResponse],
    summary="List team members with their active workload"
)
async def list_team_members(service: TicketService = Depends(get_ticket_service)):
    members = await service.list_members()
    workloads = await service.get_member_workloads()
    return [
        TeamMemberResponse.from_domain(member, workloads.get(member.id, 0))
        for member in members
    ]


@router.get(
    "/team-members/{member_id}",
    response_model=TeamMemberResponse,
    summary="Get a team member",
    responses={404: {"description": "Team member not found"}}
)
async def get_team_member(member_id: int, service: TicketService = Depends(get_ticket_service)):
    member = await service.get_member(member_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team member {member_id} not found"
        )
    return TeamMemberResponse.from_domain(member)


# ========== Tickets ==========

@router.get(
    "/tickets",
    response_model=List[TicketResponse],
    summary="List tickets",
    description="""
    List tickets, newest first, each with its assigned member.

    **Query Parameters:**
    - `status`: `pending`, `assigned`, `completed`, a comma-separated list
      of them, or `all` (default)
    """
)
async def list_tickets(
    ticket_status: Optional[str] = Query(None, alias="status", description="Status filter"),
    service: TicketService = Depends(get_ticket_service)
):
    tickets = await service.list_tickets(_parse_statuses(ticket_status))
    tickets.sort(key=lambda t: (t.created_at, t.id), reverse=True)
    return [await _to_response(service, ticket) for ticket in tickets]


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketDetailResponse,
    summary="Get a ticket with its activity",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.get_ticket(ticket_id)
    if ticket is None:
        raise _not_found(ticket_id)

    base = await _to_response(service, ticket)
    logs = await service.list_activity(ticket_id)
    return TicketDetailResponse(
        **base.model_dump(),
        activity_logs=[ActivityLogResponse.from_domain(log) for log in logs]
    )


@router.post(
    "/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket",
    description="""
    Create a ticket. It starts `pending`.

    - With `assigned_to`, the ticket is assigned to that member.
    - Without it, the best-matching member is picked by skills and current
      workload. If nobody has any of the skills, the ticket stays `pending`.
    """,
    responses={
        201: {
            "description": "Ticket created",
            "content": {"application/json": {"example": TICKET_RESPONSE_EXAMPLE}}
        }
    }
)
async def create_ticket(
    payload: TicketCreateDTO,
    request: Request,
    service: TicketService = Depends(get_ticket_service),
    config: TeamConfig = Depends(get_team_config)
):
    _check_skills(payload.skills, config)
    logger = _request_logger(request)

    with log_latency(logger, "create_ticket"):
        ticket = await service.create_ticket(
            title=payload.title,
            description=payload.description,
            skills=payload.skills,
            deadline=payload.deadline,
            priority=payload.priority,
            assigned_to=payload.assigned_to
        )

        if payload.assigned_to is None and ticket.skills:
            ticket = await service.assign_ticket(ticket.id) or ticket

    return await _to_response(service, ticket)


@router.patch(
    "/tickets/{ticket_id}",
    response_model=TicketResponse,
    summary="Update ticket content",
    responses={404: {"description": "Ticket not found"}}
)
async def update_ticket(
    ticket_id: int,
    payload: TicketUpdateDTO,
    service: TicketService = Depends(get_ticket_service),
    config: TeamConfig = Depends(get_team_config)
):
    _check_skills(payload.skills, config)

    ticket = await service.update_ticket(ticket_id, payload.to_updates())
    if ticket is None:
        raise _not_found(ticket_id)
    return await _to_response(service, ticket)


@router.delete(
    "/tickets/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a ticket",
    responses={404: {"description": "Ticket not found"}}
)
async def delete_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    if not await service.delete_ticket(ticket_id):
        raise _not_found(ticket_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ========== Lifecycle ==========

@router.post(
    "/tickets/{ticket_id}/assign",
    response_model=TicketResponse,
    summary="Assign a ticket",
    description="""
    Assign to `member_id`, or automatically when it is omitted.

    The ticket comes back unchanged when no member matches or `member_id`
    is unknown; compare `assigned_to` to tell.
    """,
    responses={404: {"description": "Ticket not found"}}
)
async def assign_ticket(
    ticket_id: int,
    payload: Optional[AssignRequest] = None,
    service: TicketService = Depends(get_ticket_service)
):
    member_id = payload.member_id if payload else None
    ticket = await service.assign_ticket(ticket_id, member_id)
    if ticket is None:
        raise _not_found(ticket_id)
    return await _to_response(service, ticket)


@router.post(
    "/tickets/{ticket_id}/complete",
    response_model=TicketResponse,
    summary="Complete a ticket",
    responses={404: {"description": "Ticket not found"}}
)
async def complete_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.complete_ticket(ticket_id)
    if ticket is None:
        raise _not_found(ticket_id)
    return await _to_response(service, ticket)


@router.post(
    "/tickets/{ticket_id}/reopen",
    response_model=TicketResponse,
    summary="Reopen a ticket",
    responses={404: {"description": "Ticket not found"}}
)
async def reopen_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.reopen_ticket(ticket_id)
    if ticket is None:
        raise _not_found(ticket_id)
    return await _to_response(service, ticket)


@router.get(
    "/tickets/{ticket_id}/activity",
    response_model=List[ActivityLogResponse],
    summary="Ticket activity, most recent first"
)
async def list_ticket_activity(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    logs = await service.list_activity(ticket_id)
    return [ActivityLogResponse.from_domain(log) for log in logs]


# Export router for inclusion in main app
tickets_router = router
