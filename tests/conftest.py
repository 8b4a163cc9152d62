"""Shared pytest fixtures: in-memory database, sessions and services."""
from datetime import date

import httpx
import pytest

from teamdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)
from teamdesk.tickets.domain import TeamConfig
from teamdesk.tickets.infrastructure import build_ticket_service

TEST_DATABASE_URL = "sqlite+aiosqlite://"
DEADLINE = date(2030, 1, 31)


@pytest.fixture
async def db():
    """Fresh in-memory database per test."""
    init_database(TEST_DATABASE_URL)
    await create_tables()
    yield
    await close_database()


@pytest.fixture
async def session(db):
    """One unit of work spanning the test."""
    async with get_session_context() as session:
        yield session


@pytest.fixture
def service(session):
    """TicketService with no team members."""
    return build_ticket_service(session)


@pytest.fixture
async def seeded_service(service):
    """TicketService with the default five-member team."""
    await service.seed_team_members(TeamConfig().team_members)
    return service


@pytest.fixture
async def client(db):
    """HTTP client against the app, with the default team seeded."""
    from teamdesk.main import create_app

    async with get_session_context() as session:
        await build_ticket_service(session).seed_team_members(TeamConfig().team_members)

    app = create_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def make_ticket():
    """Factory creating a ticket through a service with sensible defaults."""
    async def _make(service, skills=("Backend",), assigned_to=None, title="Fix login"):
        return await service.create_ticket(
            title=title,
            description="Users cannot log in after password reset.",
            skills=list(skills),
            deadline=DEADLINE,
            priority="medium",
            assigned_to=assigned_to,
        )
    return _make
