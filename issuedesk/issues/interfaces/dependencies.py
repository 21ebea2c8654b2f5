"""
Issue API Dependencies
======================

FastAPI dependency providers: repositories for the configured storage backend,
the lifecycle service and the authenticated actor.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from issuedesk.infrastructure.database import get_session_context
from issuedesk.issues.application import (
    IActivityRepository,
    IIssueRepository,
    IssueLifecycleService,
    IUserRepository,
)
from issuedesk.issues.infrastructure import (
    InMemoryActivityRepository,
    InMemoryIssueRepository,
    InMemoryStore,
    InMemoryUserRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyIssueRepository,
    SQLAlchemyUserRepository,
)


@dataclass
class Repositories:
    """Repository set bound to one request (and one database session)."""
    users: IUserRepository
    issues: IIssueRepository
    activities: IActivityRepository


@asynccontextmanager
async def open_repositories(store: Optional[InMemoryStore]) -> AsyncIterator[Repositories]:
    """
    Repositories over ``store``, or over a fresh database session when no
    in-memory store is configured.

    With the database backend all writes share one session, committed on exit
    and rolled back when the block raises.
    """
    if store is not None:
        yield Repositories(
            users=InMemoryUserRepository(store),
            issues=InMemoryIssueRepository(store),
            activities=InMemoryActivityRepository(store),
        )
        return

    async with get_session_context() as session:
        yield Repositories(
            users=SQLAlchemyUserRepository(session),
            issues=SQLAlchemyIssueRepository(session),
            activities=SQLAlchemyActivityRepository(session),
        )


async def get_repositories(request: Request) -> AsyncGenerator[Repositories, None]:
    """Yield repositories for the configured backend, one set per request."""
    async with open_repositories(getattr(request.app.state, "store", None)) as repositories:
        yield repositories


async def get_lifecycle_service(
    request: Request,
    repositories: Repositories = Depends(get_repositories)
) -> IssueLifecycleService:
    """Get lifecycle service instance (locks and clock are process-wide)."""
    return IssueLifecycleService(
        repositories.users,
        repositories.issues,
        repositories.activities,
        clock=request.app.state.clock,
        locks=request.app.state.issue_locks,
    )


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    repositories: Repositories = Depends(get_repositories)
) -> str:
    """
    Resolve the acting user from the ``X-User-Id`` header.

    Authentication itself is out of scope; the header stands in for a verified
    identity. Missing or unknown ids are rejected with 401.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )
    if await repositories.users.get_by_id(x_user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user"
        )
    return x_user_id
