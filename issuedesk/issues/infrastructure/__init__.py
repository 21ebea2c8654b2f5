"""
Issue Infrastructure Layer
==========================

Infrastructure implementations for the issue lifecycle:
- Memory: dictionary-backed repositories (default backend)
- Models: SQLAlchemy ORM models
- Repositories: SQLAlchemy data access layer
- External: APScheduler wrapper for the SLA sweep
"""

from issuedesk.issues.infrastructure.external import SLAScheduler
from issuedesk.issues.infrastructure.memory import (
    InMemoryActivityRepository,
    InMemoryIssueRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from issuedesk.issues.infrastructure.models import ActivityModel, IssueModel, UserModel
from issuedesk.issues.infrastructure.repositories import (
    SQLAlchemyActivityRepository,
    SQLAlchemyIssueRepository,
    SQLAlchemyUserRepository,
)

__all__ = [
    "SLAScheduler",
    "InMemoryStore",
    "InMemoryUserRepository",
    "InMemoryIssueRepository",
    "InMemoryActivityRepository",
    "UserModel",
    "IssueModel",
    "ActivityModel",
    "SQLAlchemyUserRepository",
    "SQLAlchemyIssueRepository",
    "SQLAlchemyActivityRepository",
]
