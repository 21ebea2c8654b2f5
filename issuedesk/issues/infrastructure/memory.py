"""
In-Memory Repositories
======================

Dictionary-backed implementations of the repository interfaces.

Default backend for development and tests. Entities are deep-copied on the way
in and out so callers never share state with the store: a change only becomes
visible through ``update``.
"""

from copy import deepcopy
from typing import Dict, List, Optional, Set

from issuedesk.config import Department, SLAStatus
from issuedesk.core import RepositoryException
from issuedesk.issues.application import (
    IActivityRepository,
    IIssueRepository,
    IUserRepository,
)
from issuedesk.issues.domain import Activity, Issue, User


class InMemoryStore:
    """Holds the collections shared by the in-memory repositories."""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.issues: Dict[str, Issue] = {}
        self.activities: List[Activity] = []
        self._sequence = 0

    def next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def clear(self) -> None:
        self.users.clear()
        self.issues.clear()
        self.activities.clear()
        self._sequence = 0


class InMemoryUserRepository(IUserRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_by_id(self, user_id: str) -> Optional[User]:
        user = self._store.users.get(user_id)
        return deepcopy(user) if user else None

    async def get_by_username(self, username: str) -> Optional[User]:
        for user in self._store.users.values():
            if user.username == username:
                return deepcopy(user)
        return None

    async def create(self, user: User) -> User:
        if user.id in self._store.users:
            raise RepositoryException(f"User {user.id} already exists")
        self._store.users[user.id] = deepcopy(user)
        return user

    async def list_by_department(self, department: Department) -> List[User]:
        return [
            deepcopy(user) for user in self._store.users.values()
            if user.department == department
        ]


class InMemoryIssueRepository(IIssueRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def create(self, issue: Issue) -> Issue:
        if issue.id in self._store.issues:
            raise RepositoryException(f"Issue {issue.id} already exists")
        self._store.issues[issue.id] = deepcopy(issue)
        return issue

    async def get_by_id(self, issue_id: str) -> Optional[Issue]:
        issue = self._store.issues.get(issue_id)
        return deepcopy(issue) if issue else None

    async def update(self, issue: Issue) -> Issue:
        if issue.id not in self._store.issues:
            raise RepositoryException(f"Issue {issue.id} not found")
        self._store.issues[issue.id] = deepcopy(issue)
        return issue

    async def set_sla_status(self, issue_id: str, sla_status: SLAStatus) -> None:
        issue = self._store.issues.get(issue_id)
        if issue is not None:
            issue.sla_status = sla_status

    async def list(self, filters: Optional[dict] = None) -> List[Issue]:
        filters = filters or {}

        statuses = filters.get("status")
        if statuses is not None and not isinstance(statuses, (list, tuple, set)):
            statuses = [statuses]

        result = []
        for issue in self._store.issues.values():
            if statuses is not None and issue.status not in statuses:
                continue
            if "reporter_id" in filters and issue.reporter_id != filters["reporter_id"]:
                continue
            if "department" in filters and issue.department != filters["department"]:
                continue
            if "assignee_id" in filters and issue.assignee_id != filters["assignee_id"]:
                continue
            if "is_escalated" in filters and issue.is_escalated != filters["is_escalated"]:
                continue
            result.append(deepcopy(issue))

        # dicts keep insertion order, so equal timestamps stay in creation order
        return sorted(result, key=lambda i: i.created_at)


class InMemoryActivityRepository(IActivityRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def append(self, activity: Activity) -> Activity:
        activity.sequence = self._store.next_sequence()
        self._store.activities.append(deepcopy(activity))
        return activity

    async def list_by_issue(self, issue_id: str) -> List[Activity]:
        return self._newest_first(
            a for a in self._store.activities if a.issue_id == issue_id
        )

    async def list_recent(
        self,
        limit: int,
        issue_ids: Optional[Set[str]] = None
    ) -> List[Activity]:
        activities = self._store.activities
        if issue_ids is not None:
            activities = [a for a in activities if a.issue_id in issue_ids]
        return self._newest_first(activities)[:limit]

    @staticmethod
    def _newest_first(activities) -> List[Activity]:
        return [
            deepcopy(a) for a in
            sorted(activities, key=lambda a: (a.created_at, a.sequence), reverse=True)
        ]
