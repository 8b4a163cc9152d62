"""
TeamDesk - Main Application
===========================

Team ticket assignment and tracking service.

Modules:
- Tickets: skill-based assignment, ticket lifecycle and activity history

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: TicketService facade, ActivityLogger and DTOs
- Domain: Entities, lifecycle state machine, assignment scorer
- Infrastructure: Database, repositories, YAML team config
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from teamdesk.config import settings
from teamdesk.core import ApplicationException

# Infrastructure
from teamdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)

# Tickets module
from teamdesk.tickets.infrastructure import YAMLTeamConfigProvider, build_ticket_service
from teamdesk.tickets.interfaces import tickets_router

# Shared
from teamdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from teamdesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load team configuration
    3. Initialize database and create tables
    4. Seed team members (first start only)

    SHUTDOWN:
    1. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting TeamDesk", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Loading team configuration")
    app.state.team_config_provider = YAMLTeamConfigProvider(settings.team_config_path)

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use Alembic in production)
    await create_tables()

    if settings.seed_team_members:
        seeds = app.state.team_config_provider.get_config().team_members
        async with get_session_context() as session:
            members = await build_ticket_service(session).seed_team_members(seeds)
        logger.info("Team ready", extra={"member_count": len(members)})

    logger.info("TeamDesk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down TeamDesk")
    await close_database()
    logger.info("TeamDesk shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title="TeamDesk API",
        description="""
    ## Team Ticket Assignment & Tracking

    Create tickets with required skills, assign them to team members
    manually or automatically, and follow each ticket's history.

    **Assignment:** members are scored by matching skills divided by
    (active tickets + 1); ties go to the earliest created member.

    **Lifecycle:** `pending` -> `assigned` -> `completed`; reopening sets
    the status back to `assigned` or `pending` depending on the assignee.

    **Activity:** every change appends one entry to the ticket's history.
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last runs first, so the correlation id exists before logging
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(CorrelationIDMiddleware)
    application.add_exception_handler(ApplicationException, application_exception_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    application.include_router(tickets_router)

    @application.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and orchestrators."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment
        }

    @application.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "TeamDesk",
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
            "endpoints": [
                "GET /api/skills",
                "GET /api/team-members",
                "GET /api/tickets",
                "POST /api/tickets",
                "POST /api/tickets/{id}/assign",
                "POST /api/tickets/{id}/complete",
                "POST /api/tickets/{id}/reopen",
                "GET /api/tickets/{id}/activity"
            ]
        }

    return application


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "teamdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
