"""Test configuration and fixtures."""

from datetime import datetime, timezone
from typing import Dict

import pytest
import pytest_asyncio

from issuedesk.config import Department, Priority, UserRole
from issuedesk.issues.application import IssueLifecycleService, UserDirectoryService
from issuedesk.issues.domain import Issue, SLACalculator, User
from issuedesk.issues.infrastructure import (
    InMemoryActivityRepository,
    InMemoryIssueRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from issuedesk.shared.infrastructure.clock import FrozenClock

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def make_user(**overrides) -> User:
    """Create a valid user with optional overrides."""
    defaults = {
        "id": "user-employee",
        "username": "employee",
        "full_name": "Regular Employee",
        "email": "employee@example.com",
        "role": UserRole.EMPLOYEE,
        "department": Department.FINANCE,
        "created_at": START,
    }
    defaults.update(overrides)
    return User(**defaults)


def make_issue(**overrides) -> Issue:
    """Create a valid open IT issue with optional overrides."""
    defaults = {
        "id": "issue-1",
        "title": "Printer offline",
        "description": "The second floor printer does not respond.",
        "department": Department.IT,
        "priority": Priority.HIGH,
        "reporter_id": "user-employee",
        "created_at": START,
        "updated_at": START,
    }
    defaults.update(overrides)
    defaults.setdefault(
        "due_by",
        SLACalculator.calculate_due_by(defaults["priority"], defaults["created_at"])
    )
    return Issue(**defaults)


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at a fixed Monday morning."""
    return FrozenClock(START)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def service(store: InMemoryStore, clock: FrozenClock) -> IssueLifecycleService:
    """Lifecycle service over the in-memory store."""
    return IssueLifecycleService(
        InMemoryUserRepository(store),
        InMemoryIssueRepository(store),
        InMemoryActivityRepository(store),
        clock=clock,
    )


@pytest_asyncio.fixture
async def users(store: InMemoryStore, clock: FrozenClock) -> Dict[str, User]:
    """Demo users plus an HR staff member and a second employee, by username."""
    directory = UserDirectoryService(InMemoryUserRepository(store), clock)
    await directory.seed_demo_users()
    await directory.register_user(
        username="hrstaff", full_name="HR Staff", email="hr@example.com",
        role=UserRole.DEPARTMENT, department=Department.HR,
    )
    await directory.register_user(
        username="colleague", full_name="Another Employee", email="colleague@example.com",
        role=UserRole.EMPLOYEE, department=Department.LEGAL,
    )
    return {user.username: user for user in store.users.values()}


@pytest_asyncio.fixture
async def it_issue(service: IssueLifecycleService, users: Dict[str, User]) -> Issue:
    """A high priority IT issue reported by the employee at START."""
    return await service.create_issue(
        users["employee"].id,
        title="Laptop will not boot",
        description="Black screen after the update.",
        department="IT",
        priority="high",
    )
