"""
Issue Domain Entities
=====================

Pure Python domain entities for the issue lifecycle.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns. Users are referenced
from issues and activities by id, never embedded.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from issuedesk.config import (
    ActivityAction, Department, IssueStatus, Priority, SLAStatus, UserRole,
    TERMINAL_STATUSES,
)
from issuedesk.core import ValidationException


@dataclass
class User:
    """
    An authenticated person acting on issues.

    Department is required for department staff and informational otherwise.
    """

    id: str
    username: str
    full_name: str
    email: str
    role: UserRole
    created_at: datetime
    department: Optional[Department] = None

    def __post_init__(self):
        if self.role == UserRole.DEPARTMENT and self.department is None:
            raise ValidationException(
                "Department staff must belong to a department",
                {"username": self.username}
            )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_department_staff(self) -> bool:
        return self.role == UserRole.DEPARTMENT

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE


@dataclass
class Comment:
    """A comment on an issue with the author's name as it was at write time."""

    id: str
    user_id: str
    user_name: str
    text: str
    timestamp: datetime


@dataclass
class Issue:
    """
    Issue entity tracked through the lifecycle.

    ``sla_status`` is a display cache. Decisions always recompute it through
    ``SLACalculator`` against the current clock.
    """

    # Core attributes
    id: str
    title: str
    description: str
    department: Department
    priority: Priority
    reporter_id: str

    # Timestamps
    created_at: datetime
    updated_at: datetime
    due_by: Optional[datetime] = None

    # Lifecycle state
    status: IssueStatus = IssueStatus.OPEN
    sla_status: SLAStatus = SLAStatus.ON_TRACK
    is_escalated: bool = False
    assignee_id: Optional[str] = None
    resolved_at: Optional[datetime] = None

    comments: List[Comment] = field(default_factory=list)

    def __post_init__(self):
        """Validate issue on initialization."""
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be before created_at")

        if self.due_by is not None and self.due_by < self.created_at:
            raise ValueError("due_by cannot be before created_at")

    @property
    def is_terminal(self) -> bool:
        """Verified and closed issues have left the ordinary flow."""
        return self.status in TERMINAL_STATUSES

    def change_status(self, new_status: IssueStatus, at: datetime) -> IssueStatus:
        """
        Move to ``new_status`` and keep ``resolved_at`` current.

        Returns the previous status.
        """
        previous = self.status
        self.status = new_status
        self.updated_at = at

        if new_status == IssueStatus.COMPLETED:
            self.resolved_at = at
        elif new_status in TERMINAL_STATUSES and self.resolved_at is None:
            self.resolved_at = at

        return previous

    def assign_to(self, assignee_id: str, at: datetime) -> Optional[IssueStatus]:
        """
        Set the assignee; open issues start progressing immediately.

        Returns the previous status when the assignment advanced it.
        """
        self.assignee_id = assignee_id
        self.updated_at = at
        if self.status == IssueStatus.OPEN:
            return self.change_status(IssueStatus.IN_PROGRESS, at)
        return None

    def mark_escalated(self, at: datetime) -> None:
        """Raise the one-way escalation flag and overlay the escalated status."""
        self.is_escalated = True
        self.status = IssueStatus.ESCALATED
        self.updated_at = at

    def move_to_department(self, department: Department, at: datetime) -> Department:
        """Transfer ownership; returns the department it came from."""
        previous = self.department
        self.department = department
        self.updated_at = at
        return previous

    def add_comment(self, comment: Comment) -> None:
        self.comments.append(comment)
        self.updated_at = comment.timestamp


@dataclass
class Activity:
    """
    Immutable audit record of one mutation applied to an issue.

    ``sequence`` is the insertion order assigned by the activity log; it breaks
    ties between records that share a timestamp.
    """

    id: str
    issue_id: str
    user_id: str
    action: ActivityAction
    details: Dict[str, Any]
    created_at: datetime
    sequence: int = 0
