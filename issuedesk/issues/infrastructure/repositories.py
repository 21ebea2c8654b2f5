"""
Issue Infrastructure Repositories
=================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
entities from the database. Rows are mapped back to domain entities so the
application layer never sees ORM objects.
"""

from datetime import datetime, timezone
from typing import List, Optional, Set

from sqlalchemy import and_, select
from sqlalchemy import update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from issuedesk.config import (
    ActivityAction, Department, IssueStatus, Priority, SLAStatus, UserRole,
)
from issuedesk.core import RepositoryException
from issuedesk.issues.application import (
    IActivityRepository,
    IIssueRepository,
    IUserRepository,
)
from issuedesk.issues.domain import Activity, Comment, Issue, User
from issuedesk.issues.infrastructure.models import ActivityModel, IssueModel, UserModel


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; everything stored is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _user_to_domain(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        full_name=model.full_name,
        email=model.email,
        role=UserRole(model.role),
        department=Department(model.department) if model.department else None,
        created_at=_utc(model.created_at)
    )


def _comment_to_row(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "user_id": comment.user_id,
        "user_name": comment.user_name,
        "text": comment.text,
        "timestamp": comment.timestamp.isoformat(),
    }


def _comment_to_domain(row: dict) -> Comment:
    return Comment(
        id=row["id"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        text=row["text"],
        timestamp=_utc(datetime.fromisoformat(row["timestamp"]))
    )


def _issue_to_domain(model: IssueModel) -> Issue:
    return Issue(
        id=model.id,
        title=model.title,
        description=model.description,
        department=Department(model.department),
        priority=Priority(model.priority),
        reporter_id=model.reporter_id,
        created_at=_utc(model.created_at),
        updated_at=_utc(model.updated_at),
        due_by=_utc(model.due_by),
        status=IssueStatus(model.status),
        sla_status=SLAStatus(model.sla_status),
        is_escalated=model.is_escalated,
        assignee_id=model.assignee_id,
        resolved_at=_utc(model.resolved_at),
        comments=[_comment_to_domain(row) for row in (model.comments or [])]
    )


def _activity_to_domain(model: ActivityModel) -> Activity:
    return Activity(
        id=model.id,
        issue_id=model.issue_id,
        user_id=model.user_id,
        action=ActivityAction(model.action),
        details=dict(model.details or {}),
        created_at=_utc(model.created_at),
        sequence=model.sequence
    )


class SQLAlchemyUserRepository(IUserRepository):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self._session.get(UserModel, user_id)
        return _user_to_domain(model) if model else None

    async def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.username == username)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _user_to_domain(model) if model else None

    async def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            role=user.role.value,
            department=user.department.value if user.department else None,
            created_at=user.created_at
        )
        self._session.add(model)
        await self._session.flush()
        return user

    async def list_by_department(self, department: Department) -> List[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.department == department.value)
            .order_by(UserModel.username)
        )
        result = await self._session.execute(stmt)
        return [_user_to_domain(m) for m in result.scalars().all()]


class SQLAlchemyIssueRepository(IIssueRepository):
    """
    SQLAlchemy implementation of issue repository.

    ``get_for_update`` takes a row lock (SELECT ... FOR UPDATE) so concurrent
    workers mutating the same issue are serialized until the session commits.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, issue: Issue) -> Issue:
        model = IssueModel(id=issue.id)
        self._apply(model, issue)
        self._session.add(model)
        await self._session.flush()
        return issue

    async def get_by_id(self, issue_id: str) -> Optional[Issue]:
        model = await self._session.get(IssueModel, issue_id)
        return _issue_to_domain(model) if model else None

    async def get_for_update(self, issue_id: str) -> Optional[Issue]:
        stmt = (
            select(IssueModel)
            .where(IssueModel.id == issue_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _issue_to_domain(model) if model else None

    async def update(self, issue: Issue) -> Issue:
        model = await self._session.get(IssueModel, issue.id)
        if not model:
            raise RepositoryException(f"Issue {issue.id} not found")

        self._apply(model, issue)
        await self._session.flush()
        return issue

    async def set_sla_status(self, issue_id: str, sla_status: SLAStatus) -> None:
        stmt = (
            sql_update(IssueModel)
            .where(IssueModel.id == issue_id)
            .values(sla_status=sla_status.value)
        )
        await self._session.execute(stmt)

    async def list(self, filters: Optional[dict] = None) -> List[Issue]:
        filters = filters or {}
        stmt = select(IssueModel)

        # Apply filters
        conditions = []
        if "status" in filters:
            status_list = filters["status"]
            if isinstance(status_list, (list, tuple, set)):
                conditions.append(IssueModel.status.in_([IssueStatus(s).value for s in status_list]))
            else:
                conditions.append(IssueModel.status == IssueStatus(status_list).value)

        if "reporter_id" in filters:
            conditions.append(IssueModel.reporter_id == filters["reporter_id"])

        if "department" in filters:
            conditions.append(IssueModel.department == Department(filters["department"]).value)

        if "assignee_id" in filters:
            conditions.append(IssueModel.assignee_id == filters["assignee_id"])

        if "is_escalated" in filters:
            conditions.append(IssueModel.is_escalated == filters["is_escalated"])

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(IssueModel.created_at.asc(), IssueModel.id)

        result = await self._session.execute(stmt)
        return [_issue_to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _apply(model: IssueModel, issue: Issue) -> None:
        model.title = issue.title
        model.description = issue.description
        model.department = issue.department.value
        model.priority = issue.priority.value
        model.status = issue.status.value
        model.sla_status = issue.sla_status.value
        model.is_escalated = issue.is_escalated
        model.reporter_id = issue.reporter_id
        model.assignee_id = issue.assignee_id
        model.created_at = issue.created_at
        model.updated_at = issue.updated_at
        model.due_by = issue.due_by
        model.resolved_at = issue.resolved_at
        # New list so the JSON column is flagged dirty
        model.comments = [_comment_to_row(c) for c in issue.comments]


class SQLAlchemyActivityRepository(IActivityRepository):
    """SQLAlchemy implementation of the append-only activity log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, activity: Activity) -> Activity:
        model = ActivityModel(
            id=activity.id,
            issue_id=activity.issue_id,
            user_id=activity.user_id,
            action=activity.action.value,
            details=dict(activity.details),
            created_at=activity.created_at
        )
        self._session.add(model)
        await self._session.flush()

        # Sequence is generated by the database
        activity.sequence = model.sequence
        return activity

    async def list_by_issue(self, issue_id: str) -> List[Activity]:
        stmt = (
            select(ActivityModel)
            .where(ActivityModel.issue_id == issue_id)
            .order_by(ActivityModel.created_at.desc(), ActivityModel.sequence.desc())
        )
        result = await self._session.execute(stmt)
        return [_activity_to_domain(m) for m in result.scalars().all()]

    async def list_recent(
        self,
        limit: int,
        issue_ids: Optional[Set[str]] = None
    ) -> List[Activity]:
        stmt = select(ActivityModel)
        if issue_ids is not None:
            stmt = stmt.where(ActivityModel.issue_id.in_(list(issue_ids)))
        stmt = (
            stmt.order_by(ActivityModel.created_at.desc(), ActivityModel.sequence.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_activity_to_domain(m) for m in result.scalars().all()]
