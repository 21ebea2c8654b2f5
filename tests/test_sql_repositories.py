"""Integration tests for the SQLAlchemy repositories (SQLite via aiosqlite)."""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio

from issuedesk.config import ActivityAction, Department, IssueStatus, SLAStatus, UserRole
from issuedesk.core import ConfigurationException, RepositoryException
from issuedesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    get_session_maker,
    init_database,
)
from issuedesk.issues.application import IssueLifecycleService, UserDirectoryService
from issuedesk.issues.domain import Activity, Comment
from issuedesk.issues.infrastructure import (
    SQLAlchemyActivityRepository,
    SQLAlchemyIssueRepository,
    SQLAlchemyUserRepository,
)

from conftest import START, make_issue, make_user


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh SQLite database file per test."""
    init_database(f"sqlite+aiosqlite:///{tmp_path / 'issuedesk.db'}")
    await create_tables()
    yield
    await close_database()


class TestSQLAlchemyRepositories:
    """Round trips through real tables."""

    @pytest.mark.asyncio
    async def test_user_round_trip(self, database):
        async with get_session_context() as session:
            await SQLAlchemyUserRepository(session).create(
                make_user(id="u-1", username="itstaff", role=UserRole.DEPARTMENT,
                          department=Department.IT)
            )

        async with get_session_context() as session:
            repo = SQLAlchemyUserRepository(session)
            user = await repo.get_by_username("itstaff")

            assert user.id == "u-1"
            assert user.role == UserRole.DEPARTMENT
            assert user.department == Department.IT
            assert user.created_at == START
            assert [u.id for u in await repo.list_by_department(Department.IT)] == ["u-1"]
            assert await repo.get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_issue_round_trip_keeps_utc_and_comments(self, database):
        issue = make_issue()
        issue.add_comment(Comment(
            id="c-1", user_id="user-employee", user_name="Regular Employee",
            text="Any update?", timestamp=START + timedelta(minutes=3),
        ))

        async with get_session_context() as session:
            await SQLAlchemyIssueRepository(session).create(issue)

        async with get_session_context() as session:
            loaded = await SQLAlchemyIssueRepository(session).get_by_id("issue-1")

        assert loaded.created_at == START
        assert loaded.created_at.tzinfo is not None
        assert loaded.due_by == START + timedelta(hours=8)
        assert loaded.priority == issue.priority
        assert loaded.status == IssueStatus.OPEN
        assert loaded.comments == issue.comments

    @pytest.mark.asyncio
    async def test_update_and_cache_refresh(self, database):
        async with get_session_context() as session:
            repo = SQLAlchemyIssueRepository(session)
            issue = await repo.create(make_issue())

            issue.change_status(IssueStatus.IN_PROGRESS, START + timedelta(hours=1))
            await repo.update(issue)
            await repo.set_sla_status(issue.id, SLAStatus.AT_RISK)

            with pytest.raises(RepositoryException):
                await repo.update(make_issue(id="missing"))

        async with get_session_context() as session:
            loaded = await SQLAlchemyIssueRepository(session).get_for_update("issue-1")

        assert loaded.status == IssueStatus.IN_PROGRESS
        assert loaded.sla_status == SLAStatus.AT_RISK
        assert loaded.updated_at == START + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_list_filters(self, database):
        async with get_session_context() as session:
            repo = SQLAlchemyIssueRepository(session)
            await repo.create(make_issue(id="a"))
            await repo.create(make_issue(id="b", department=Department.HR,
                                         created_at=START + timedelta(minutes=1),
                                         updated_at=START + timedelta(minutes=1)))
            await repo.create(make_issue(id="c", status=IssueStatus.CLOSED,
                                         created_at=START + timedelta(minutes=2),
                                         updated_at=START + timedelta(minutes=2)))

        async with get_session_context() as session:
            repo = SQLAlchemyIssueRepository(session)

            assert [i.id for i in await repo.list()] == ["a", "b", "c"]
            assert [i.id for i in await repo.list({"department": Department.HR})] == ["b"]
            assert [i.id for i in await repo.list({"status": [IssueStatus.OPEN]})] == ["a", "b"]
            assert [i.id for i in await repo.list({"status": IssueStatus.CLOSED})] == ["c"]

    @pytest.mark.asyncio
    async def test_activity_ordering(self, database):
        def activity(issue_id, minutes):
            return Activity(
                id=str(uuid4()), issue_id=issue_id, user_id="u", action=ActivityAction.COMMENTED,
                details={"commentId": "x"}, created_at=START + timedelta(minutes=minutes),
            )

        async with get_session_context() as session:
            repo = SQLAlchemyActivityRepository(session)
            first = await repo.append(activity("a", 0))
            tie = await repo.append(activity("a", 0))
            other = await repo.append(activity("b", 5))

        assert tie.sequence > first.sequence

        async with get_session_context() as session:
            repo = SQLAlchemyActivityRepository(session)
            by_issue = await repo.list_by_issue("a")
            recent = await repo.list_recent(2)
            scoped = await repo.list_recent(5, issue_ids={"a"})

        assert [a.id for a in by_issue] == [tie.id, first.id]
        assert by_issue[0].details == {"commentId": "x"}
        assert [a.id for a in recent] == [other.id, tie.id]
        assert [a.id for a in scoped] == [tie.id, first.id]


class TestLifecycleOverDatabase:
    """The lifecycle service against the SQL store."""

    @pytest.mark.asyncio
    async def test_issue_flow(self, database, clock):
        async with get_session_context() as session:
            users = SQLAlchemyUserRepository(session)
            await UserDirectoryService(users, clock).seed_demo_users()

            employee = await users.get_by_username("employee")
            staff = await users.get_by_username("itstaff")

            service = IssueLifecycleService(
                users,
                SQLAlchemyIssueRepository(session),
                SQLAlchemyActivityRepository(session),
                clock=clock,
            )
            issue = await service.create_issue(
                employee.id, title="Monitor flickers", description="Flickers all day.",
                department="IT", priority="medium",
            )
            clock.advance(hours=1)
            await service.assign(staff.id, issue.id, staff.id)
            clock.advance(hours=1)
            await service.add_comment(staff.id, issue.id, "Replacing the cable")
            await service.update_status(staff.id, issue.id, "completed")

        async with get_session_context() as session:
            service = IssueLifecycleService(
                SQLAlchemyUserRepository(session),
                SQLAlchemyIssueRepository(session),
                SQLAlchemyActivityRepository(session),
                clock=clock,
            )
            loaded = await service.get_issue(employee.id, issue.id)
            activities = await service.list_activities_for_issue(employee.id, issue.id)

        assert loaded.status == IssueStatus.COMPLETED
        assert loaded.assignee_id == staff.id
        assert loaded.resolved_at == START + timedelta(hours=2)
        assert [c.user_name for c in loaded.comments] == ["IT Staff"]
        assert [a.action for a in activities] == [
            ActivityAction.UPDATED_STATUS,
            ActivityAction.COMMENTED,
            ActivityAction.ASSIGNED,
            ActivityAction.CREATED,
        ]

    @pytest.mark.asyncio
    async def test_seeding_is_idempotent(self, database, clock):
        async with get_session_context() as session:
            created = await UserDirectoryService(SQLAlchemyUserRepository(session), clock).seed_demo_users()
        async with get_session_context() as session:
            again = await UserDirectoryService(SQLAlchemyUserRepository(session), clock).seed_demo_users()

        assert [u.username for u in created] == ["admin", "itstaff", "employee"]
        assert again == []


def test_sessions_require_an_initialized_database():
    with pytest.raises(ConfigurationException):
        get_session_maker()
