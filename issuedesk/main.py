"""
IssueDesk - Main Application
============================

Internal issue tracking with role-based workflow and SLA monitoring.

Modules:
- Issues: lifecycle engine, activity log, SLA evaluation
- Analytics: department SLA compliance dashboard

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, state machine, access policy
- Infrastructure: In-memory store, database, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from issuedesk.config import Settings, settings as default_settings
from issuedesk.core import ApplicationException

# Infrastructure
from issuedesk.infrastructure.database import close_database, create_tables, init_database
from issuedesk.issues.application import IssueLockRegistry, SLAMonitor, UserDirectoryService
from issuedesk.issues.infrastructure import InMemoryStore, SLAScheduler
from issuedesk.issues.interfaces.dependencies import open_repositories

# Module Routers
from issuedesk.analytics.interfaces import analytics_router
from issuedesk.issues.interfaces import activity_router, issues_router

# Shared
from issuedesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from issuedesk.shared.infrastructure.clock import Clock, SystemClock
from issuedesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Open the entity store (in-memory or database)
    3. Seed demo users
    4. Start the SLA sweep scheduler

    SHUTDOWN:
    1. Stop the scheduler
    2. Close database connections
    """
    settings: Settings = app.state.settings

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting IssueDesk", extra={
        "version": settings.app_version,
        "environment": settings.environment,
        "storage_backend": settings.storage_backend
    })

    if settings.storage_backend == "database":
        logger.info("Initializing database")
        init_database()
        # For development - use Alembic in production
        await create_tables()
        app.state.store = None
    elif getattr(app.state, "store", None) is None:
        app.state.store = InMemoryStore()

    app.state.demo_users = {}
    if settings.seed_demo_users:
        async with open_repositories(app.state.store) as repositories:
            directory = UserDirectoryService(repositories.users, app.state.clock)
            await directory.seed_demo_users()
            for username in (u["username"] for u in UserDirectoryService.DEMO_USERS):
                user = await repositories.users.get_by_username(username)
                app.state.demo_users[username] = user.id

    scheduler: Optional[SLAScheduler] = None
    if settings.sla_sweep_interval > 0:
        async def sla_sweep_job() -> dict:
            """Background SLA sweep."""
            async with open_repositories(app.state.store) as repositories:
                return await SLAMonitor(repositories.issues, app.state.clock).sweep()

        scheduler = SLAScheduler(interval_seconds=settings.sla_sweep_interval)
        await scheduler.start(sla_sweep_job)
    else:
        logger.info("SLA sweep disabled")
    app.state.sla_scheduler = scheduler

    logger.info("IssueDesk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down IssueDesk")

    if scheduler:
        await scheduler.stop()

    if settings.storage_backend == "database":
        await close_database()

    logger.info("IssueDesk shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    store: Optional[InMemoryStore] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Overrides the environment-derived settings
        clock: Time source shared by every request (tests pass a frozen one)
        store: Pre-built in-memory store (memory backend only)
    """
    settings = settings or default_settings

    app = FastAPI(
        title="IssueDesk API",
        description="""
    ## Internal Issue Tracking with SLA Monitoring

    Employees report issues to a department; department staff work them;
    admins oversee, reassign and close.

    **Identify the caller with the `X-User-Id` header.**

    ### SLA deadlines

    | Priority | Deadline |
    |----------|----------|
    | critical | 4 hours  |
    | high     | 8 hours  |
    | medium   | 24 hours |
    | low      | 48 hours |

    An issue is *at risk* once 25% or less of its window remains and
    *breached* after the deadline.
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.clock = clock or SystemClock()
    app.state.issue_locks = IssueLockRegistry()
    app.state.store = store

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(issues_router)
    app.include_router(activity_router)
    app.include_router(analytics_router)

    # === Health Check Endpoint ===

    @app.get("/health", tags=["Health"], responses={
        200: {
            "description": "Service is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "environment": "development",
                        "checks": {
                            "storage": "memory",
                            "sla_scheduler": "running"
                        }
                    }
                }
            }
        }
    })
    async def health_check(request: Request):
        """Health check endpoint for load balancers and orchestrators."""
        scheduler = getattr(request.app.state, "sla_scheduler", None)
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": {
                "storage": settings.storage_backend,
                "sla_scheduler": "running" if scheduler and scheduler.is_running else "stopped"
            }
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "issuedesk.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug
    )
