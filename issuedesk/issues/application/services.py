"""
Issue Application Services
==========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories, clock), not
  concrete implementations
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple, Type
from uuid import uuid4

from issuedesk.config import (
    ActivityAction, Department, IssueStatus, Priority, SLAStatus, UserRole,
    TERMINAL_STATUSES,
)
from issuedesk.core import (
    AlreadyEscalatedException,
    ForbiddenException,
    InvalidTransitionException,
    NoOpChangeException,
    ResourceNotFoundException,
    ValidationException,
)
from issuedesk.issues.domain import (
    AccessPolicy, Activity, Comment, Denial, Issue, PolicyDecision,
    SLACalculator, User,
)
from issuedesk.shared.infrastructure.clock import Clock, SystemClock
from issuedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

COMMENT_MAX_LENGTH = 500
DEFAULT_ESCALATION_REASON = "Manual escalation"

OPEN_STATUSES = [s for s in IssueStatus if s not in TERMINAL_STATUSES]


# ========== Repository Interfaces (Dependency Inversion) ==========

class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create new user."""

    @abstractmethod
    async def list_by_department(self, department: Department) -> List[User]:
        """List users belonging to a department."""


class IIssueRepository(ABC):
    """
    Interface for issue data access.

    ``list`` filters: ``reporter_id``, ``department``, ``assignee_id``,
    ``is_escalated`` and ``status`` (a single value or a list).
    """

    @abstractmethod
    async def create(self, issue: Issue) -> Issue:
        """Create new issue."""

    @abstractmethod
    async def get_by_id(self, issue_id: str) -> Optional[Issue]:
        """Get issue by ID."""

    async def get_for_update(self, issue_id: str) -> Optional[Issue]:
        """Get issue by ID on a mutation path (stores may lock the record)."""
        return await self.get_by_id(issue_id)

    @abstractmethod
    async def update(self, issue: Issue) -> Issue:
        """Replace the stored issue with ``issue``."""

    @abstractmethod
    async def set_sla_status(self, issue_id: str, sla_status: SLAStatus) -> None:
        """Refresh only the cached SLA status of an issue."""

    @abstractmethod
    async def list(self, filters: Optional[dict] = None) -> List[Issue]:
        """List issues matching the filters, oldest first."""


class IActivityRepository(ABC):
    """Interface for the append-only activity log."""

    @abstractmethod
    async def append(self, activity: Activity) -> Activity:
        """Append an activity; the store assigns its sequence number."""

    @abstractmethod
    async def list_by_issue(self, issue_id: str) -> List[Activity]:
        """Activities of one issue, newest first."""

    @abstractmethod
    async def list_recent(
        self,
        limit: int,
        issue_ids: Optional[Set[str]] = None
    ) -> List[Activity]:
        """Newest activities, optionally restricted to some issues."""


# ========== Concurrency ==========

class IssueLockRegistry:
    """
    One asyncio lock per issue id.

    Mutations of the same issue are serialized; different issues never wait
    on each other. Share a single registry between all service instances of
    a process.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @property
    def active_count(self) -> int:
        """Issue ids with a lock currently held or awaited."""
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, issue_id: str) -> AsyncIterator[None]:
        """
        Serialize the block against other holders of the same issue id.

        The lock lives only while someone holds or waits for it, so ids that
        fail to load leave nothing behind.
        """
        lock = self._locks.setdefault(issue_id, asyncio.Lock())
        self._users[issue_id] = self._users.get(issue_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[issue_id] -= 1
            if not self._users[issue_id]:
                del self._users[issue_id]
                del self._locks[issue_id]


# ========== Helpers ==========

def _coerce(enum_type: Type, value: Any, field_name: str):
    """Convert raw input into ``enum_type`` or fail validation."""
    if value is None or value == "":
        raise ValidationException(f"{field_name} is required", {"field": field_name})
    try:
        return enum_type(value)
    except ValueError:
        allowed = [member.value for member in enum_type]
        raise ValidationException(
            f"Invalid {field_name}: {value!r}",
            {"field": field_name, "allowed": allowed}
        )


def _required_text(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationException(f"{field_name} is required", {"field": field_name})
    return str(value).strip()


_DENIAL_EXCEPTIONS = {
    Denial.FORBIDDEN: ForbiddenException,
    Denial.INVALID_TRANSITION: InvalidTransitionException,
    Denial.NO_OP: NoOpChangeException,
}


# ========== Application Services ==========

class IssueLifecycleService:
    """
    The lifecycle engine.

    Every operation loads the acting user from the store (role and department
    claims are never taken from the caller), re-evaluates the issue's SLA
    against the clock, asks the access policy, applies the change and appends
    exactly one activity.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        issue_repository: IIssueRepository,
        activity_repository: IActivityRepository,
        clock: Optional[Clock] = None,
        locks: Optional[IssueLockRegistry] = None
    ):
        self._users = user_repository
        self._issues = issue_repository
        self._activities = activity_repository
        self._clock = clock or SystemClock()
        self._locks = locks or IssueLockRegistry()

    @property
    def clock(self) -> Clock:
        return self._clock

    # ---------- loading & enforcement ----------

    async def resolve_actor(self, actor_id: str) -> User:
        """Load the acting user or fail with not found."""
        actor = await self._users.get_by_id(actor_id) if actor_id else None
        if actor is None:
            raise ResourceNotFoundException("User", actor_id)
        return actor

    async def _load_issue(self, issue_id: str, for_update: bool = False) -> Issue:
        if for_update:
            issue = await self._issues.get_for_update(issue_id)
        else:
            issue = await self._issues.get_by_id(issue_id)
        if issue is None:
            raise ResourceNotFoundException("Issue", issue_id)
        return issue

    def _refresh_sla(self, issue: Issue) -> Tuple[SLAStatus, bool]:
        """Recompute the SLA status onto the issue; report whether it changed."""
        fresh = SLACalculator.calculate_status(
            issue.status, issue.created_at, issue.due_by, self._clock.now()
        )
        changed = fresh != issue.sla_status
        issue.sla_status = fresh
        return fresh, changed

    async def _read_fresh(self, issues: Iterable[Issue]) -> List[Issue]:
        """Refresh SLA status on a batch of issues and update stale caches."""
        result = []
        for issue in issues:
            fresh, changed = self._refresh_sla(issue)
            if changed:
                await self._issues.set_sla_status(issue.id, fresh)
            result.append(issue)
        return result

    def _enforce(self, decision: PolicyDecision, actor: User, issue_id: Optional[str], action: str) -> None:
        if decision.allowed:
            return

        logger.info(
            "Action denied",
            extra={
                "action": action,
                "issue_id": issue_id,
                "actor_id": actor.id,
                "actor_role": actor.role.value,
                "denial": decision.denial.value,
                "reason": decision.reason
            }
        )

        if decision.denial == Denial.ALREADY_ESCALATED:
            raise AlreadyEscalatedException(issue_id)
        exc_type = _DENIAL_EXCEPTIONS.get(decision.denial, ForbiddenException)
        raise exc_type(decision.reason)

    async def _record(
        self,
        issue: Issue,
        actor: User,
        action: ActivityAction,
        details: Dict[str, Any]
    ) -> Activity:
        activity = await self._activities.append(Activity(
            id=str(uuid4()),
            issue_id=issue.id,
            user_id=actor.id,
            action=action,
            details=details,
            created_at=issue.updated_at
        ))
        logger.info(
            "Issue updated",
            extra={
                "issue_id": issue.id,
                "actor_id": actor.id,
                "activity": action.value,
                "status": issue.status.value,
                "sla_status": issue.sla_status.value
            }
        )
        return activity

    # ---------- commands ----------

    async def create_issue(
        self,
        actor_id: str,
        title: str,
        description: str,
        department: Any,
        priority: Any
    ) -> Issue:
        """
        Report a new issue on behalf of ``actor_id``.

        Raises:
            ValidationException: blank title/description, unknown priority or
                department
            ResourceNotFoundException: unknown actor
        """
        title = _required_text(title, "title")
        description = _required_text(description, "description")
        department = _coerce(Department, department, "department")
        priority = _coerce(Priority, priority, "priority")

        actor = await self.resolve_actor(actor_id)
        self._enforce(AccessPolicy.can_create(actor), actor, None, "create")

        now = self._clock.now()
        issue = Issue(
            id=str(uuid4()),
            title=title,
            description=description,
            department=department,
            priority=priority,
            reporter_id=actor.id,
            created_at=now,
            updated_at=now,
            due_by=SLACalculator.calculate_due_by(priority, now),
            status=IssueStatus.OPEN,
            sla_status=SLAStatus.ON_TRACK,
            is_escalated=False,
        )
        issue = await self._issues.create(issue)
        await self._record(issue, actor, ActivityAction.CREATED, {"title": issue.title})
        return issue

    async def update_status(self, actor_id: str, issue_id: str, target_status: Any) -> Issue:
        """
        Move an issue along the status graph.

        Raises:
            ResourceNotFoundException: unknown issue or actor
            ForbiddenException: out of scope, or the role may not take the edge
            InvalidTransitionException: the edge does not exist
        """
        target = _coerce(IssueStatus, target_status, "status")
        actor = await self.resolve_actor(actor_id)

        async with self._locks.hold(issue_id):
            issue = await self._load_issue(issue_id, for_update=True)
            self._refresh_sla(issue)

            decision = AccessPolicy.can_transition(actor, issue, target)
            if decision.denial == Denial.INVALID_TRANSITION:
                logger.info(
                    "Action denied",
                    extra={"action": "update_status", "issue_id": issue_id,
                           "actor_id": actor.id, "denial": decision.denial.value}
                )
                raise InvalidTransitionException(
                    decision.reason, issue.status.value, target.value
                )
            self._enforce(decision, actor, issue_id, "update_status")

            previous = issue.change_status(target, self._clock.now())
            self._refresh_sla(issue)

            issue = await self._issues.update(issue)
            await self._record(issue, actor, ActivityAction.UPDATED_STATUS, {
                "fromStatus": previous.value,
                "toStatus": target.value
            })
            return issue

    async def assign(self, actor_id: str, issue_id: str, assignee_id: str) -> Issue:
        """
        Give an issue to a member of its department's staff.

        Open issues advance to in_progress as part of the assignment.
        """
        actor = await self.resolve_actor(actor_id)

        async with self._locks.hold(issue_id):
            issue = await self._load_issue(issue_id, for_update=True)
            self._refresh_sla(issue)
            self._enforce(AccessPolicy.can_assign(actor, issue), actor, issue_id, "assign")

            assignee = await self._users.get_by_id(assignee_id) if assignee_id else None
            if assignee is None:
                raise ResourceNotFoundException("User", assignee_id)
            if not assignee.is_department_staff or assignee.department != issue.department:
                raise ValidationException(
                    f"Assignee must be {issue.department.value} department staff",
                    {"assignee_id": assignee_id}
                )

            previous = issue.assign_to(assignee.id, self._clock.now())
            self._refresh_sla(issue)

            details: Dict[str, Any] = {"assigneeId": assignee.id}
            if previous is not None:
                details.update({"fromStatus": previous.value, "toStatus": issue.status.value})

            issue = await self._issues.update(issue)
            await self._record(issue, actor, ActivityAction.ASSIGNED, details)
            return issue

    async def escalate(self, actor_id: str, issue_id: str, reason: Optional[str] = None) -> Issue:
        """
        Flag an issue as escalated and overlay the escalated status.

        Raises:
            AlreadyEscalatedException: the flag is already set
            InvalidTransitionException: the issue is verified or closed
            ForbiddenException: out of scope, or reporter conditions not met
        """
        actor = await self.resolve_actor(actor_id)
        reason = (reason or "").strip() or DEFAULT_ESCALATION_REASON

        async with self._locks.hold(issue_id):
            issue = await self._load_issue(issue_id, for_update=True)
            sla_status, _ = self._refresh_sla(issue)
            now = self._clock.now()

            self._enforce(
                AccessPolicy.can_escalate(actor, issue, sla_status, now),
                actor, issue_id, "escalate"
            )

            issue.mark_escalated(now)
            self._refresh_sla(issue)

            issue = await self._issues.update(issue)
            await self._record(issue, actor, ActivityAction.ESCALATED, {"reason": reason})
            return issue

    async def reassign_department(self, actor_id: str, issue_id: str, new_department: Any) -> Issue:
        """
        Transfer an issue to another department (admin only).

        Status and escalation flag are left untouched. Reassigning to the
        current department fails with ``NoOpChangeException`` and records
        nothing.
        """
        department = _coerce(Department, new_department, "department")
        actor = await self.resolve_actor(actor_id)

        async with self._locks.hold(issue_id):
            issue = await self._load_issue(issue_id, for_update=True)
            sla_status, _ = self._refresh_sla(issue)

            self._enforce(
                AccessPolicy.can_reassign_department(actor, issue, department),
                actor, issue_id, "reassign_department"
            )
            if not AccessPolicy.reassignment_is_advised(issue, sla_status):
                logger.warning(
                    "Reassigning an issue that is neither escalated nor at risk",
                    extra={"issue_id": issue_id, "sla_status": sla_status.value}
                )

            previous = issue.move_to_department(department, self._clock.now())

            issue = await self._issues.update(issue)
            await self._record(issue, actor, ActivityAction.DEPARTMENT_CHANGED, {
                "fromDepartment": previous.value,
                "toDepartment": department.value
            })
            return issue

    async def add_comment(self, actor_id: str, issue_id: str, text: str) -> Tuple[Issue, Comment]:
        """
        Append a comment carrying a snapshot of the author's display name.

        Surrounding whitespace is trimmed before storing, and the length limit
        applies to the trimmed text.
        """
        if text is None or not str(text).strip():
            raise ValidationException("Comment text is required", {"field": "text"})
        text = str(text).strip()
        if len(text) > COMMENT_MAX_LENGTH:
            raise ValidationException(
                f"Comment text must be at most {COMMENT_MAX_LENGTH} characters",
                {"field": "text", "length": len(text)}
            )

        actor = await self.resolve_actor(actor_id)

        async with self._locks.hold(issue_id):
            issue = await self._load_issue(issue_id, for_update=True)
            self._refresh_sla(issue)
            self._enforce(AccessPolicy.can_comment(actor, issue), actor, issue_id, "comment")

            comment = Comment(
                id=uuid4().hex,
                user_id=actor.id,
                user_name=actor.full_name,
                text=text,
                timestamp=self._clock.now()
            )
            issue.add_comment(comment)

            issue = await self._issues.update(issue)
            await self._record(issue, actor, ActivityAction.COMMENTED, {"commentId": comment.id})
            return issue, comment

    # ---------- queries ----------

    async def get_issue(self, actor_id: str, issue_id: str) -> Issue:
        actor = await self.resolve_actor(actor_id)
        issue = await self._load_issue(issue_id)
        self._enforce(AccessPolicy.can_read(actor, issue), actor, issue_id, "read")
        (issue,) = await self._read_fresh([issue])
        return issue

    async def list_issues_for_actor(self, actor_id: str, status: Any = None) -> List[Issue]:
        """
        Issues in the actor's scope: own reports for employees, the department
        for department staff, everything for admins.
        """
        actor = await self.resolve_actor(actor_id)

        filters: Dict[str, Any] = {}
        if status is not None:
            filters["status"] = _coerce(IssueStatus, status, "status")
        if actor.role == UserRole.EMPLOYEE:
            filters["reporter_id"] = actor.id
        elif actor.role == UserRole.DEPARTMENT:
            filters["department"] = actor.department

        return await self._read_fresh(await self._issues.list(filters))

    async def list_attention_queue(self, actor_id: str) -> List[Issue]:
        """Escalated, at-risk and breached issues (admin only)."""
        actor = await self.resolve_actor(actor_id)
        self._enforce(AccessPolicy.can_view_attention_queue(actor), actor, None, "attention_queue")

        issues = await self._read_fresh(await self._issues.list())
        return [
            issue for issue in issues
            if issue.is_escalated or issue.sla_status in (SLAStatus.AT_RISK, SLAStatus.BREACHED)
        ]

    async def list_activities_for_issue(self, actor_id: str, issue_id: str) -> List[Activity]:
        actor = await self.resolve_actor(actor_id)
        issue = await self._load_issue(issue_id)
        self._enforce(AccessPolicy.can_read(actor, issue), actor, issue_id, "read_activities")
        return await self._activities.list_by_issue(issue_id)

    async def list_recent_activities(self, actor_id: str, limit: int = 10) -> List[Activity]:
        """Newest activities across the issues the actor may read."""
        if limit is None or int(limit) < 1:
            raise ValidationException("limit must be at least 1", {"field": "limit"})

        actor = await self.resolve_actor(actor_id)
        if actor.is_admin:
            return await self._activities.list_recent(int(limit))

        scope = await self.list_issues_for_actor(actor_id)
        issue_ids = {issue.id for issue in scope}
        if not issue_ids:
            return []
        return await self._activities.list_recent(int(limit), issue_ids)

    async def snapshot_issues(self) -> List[Issue]:
        """All issues with SLA status evaluated now (read path for analytics)."""
        return await self._read_fresh(await self._issues.list())


class UserDirectoryService:
    """
    Registers users and seeds the demo accounts.

    Stand-in for the excluded identity provider: the engine only needs users
    to exist with a role and a department.
    """

    DEMO_USERS = [
        {"username": "admin", "full_name": "Admin User", "email": "admin@example.com",
         "role": UserRole.ADMIN, "department": Department.IT},
        {"username": "itstaff", "full_name": "IT Staff", "email": "it@example.com",
         "role": UserRole.DEPARTMENT, "department": Department.IT},
        {"username": "employee", "full_name": "Regular Employee", "email": "employee@example.com",
         "role": UserRole.EMPLOYEE, "department": Department.FINANCE},
    ]

    def __init__(self, user_repository: IUserRepository, clock: Optional[Clock] = None):
        self._users = user_repository
        self._clock = clock or SystemClock()

    async def register_user(
        self,
        username: str,
        full_name: str,
        email: str,
        role: Any,
        department: Any = None
    ) -> User:
        username = _required_text(username, "username")
        role = _coerce(UserRole, role, "role")
        department = _coerce(Department, department, "department") if department else None

        if await self._users.get_by_username(username):
            raise ValidationException(f"Username '{username}' is already taken")

        user = User(
            id=str(uuid4()),
            username=username,
            full_name=_required_text(full_name, "full_name"),
            email=_required_text(email, "email"),
            role=role,
            department=department,
            created_at=self._clock.now()
        )
        return await self._users.create(user)

    async def seed_demo_users(self) -> List[User]:
        """Create the demo accounts that do not exist yet."""
        created = []
        for entry in self.DEMO_USERS:
            if await self._users.get_by_username(entry["username"]):
                continue
            created.append(await self.register_user(**entry))
        if created:
            logger.info("Seeded demo users", extra={"usernames": [u.username for u in created]})
        return created


class SLAMonitor:
    """
    Periodic SLA sweep.

    Re-evaluates every issue that is still in play, refreshes the cached SLA
    status and reports issues that crossed into at-risk or breached since the
    last evaluation.
    """

    def __init__(self, issue_repository: IIssueRepository, clock: Optional[Clock] = None):
        self._issues = issue_repository
        self._clock = clock or SystemClock()

    async def sweep(self) -> dict:
        now = self._clock.now()
        issues = await self._issues.list({"status": OPEN_STATUSES})

        changed = 0
        counts = {status.value: 0 for status in SLAStatus}

        for issue in issues:
            evaluation = SLACalculator.evaluate(issue, now)
            counts[evaluation.status.value] += 1

            if evaluation.status == issue.sla_status:
                continue

            changed += 1
            await self._issues.set_sla_status(issue.id, evaluation.status)
            if evaluation.needs_attention:
                logger.warning(
                    "Issue SLA %s", evaluation.status.value,
                    extra={
                        "issue_id": issue.id,
                        "department": issue.department.value,
                        "priority": issue.priority.value,
                        "previous_sla_status": issue.sla_status.value,
                        "due_by": issue.due_by.isoformat() if issue.due_by else None,
                        "minutes_until_due": evaluation.minutes_until_due
                    }
                )

        return {
            "issues_evaluated": len(issues),
            "sla_changes": changed,
            "at_risk": counts[SLAStatus.AT_RISK.value],
            "breached": counts[SLAStatus.BREACHED.value],
        }
