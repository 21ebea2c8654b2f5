"""
Issue Application DTOs
======================

Data Transfer Objects for the issue API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses. Rules that depend on stored state (scope,
transitions, comment length) stay in the lifecycle service.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from issuedesk.issues.domain import Activity, Comment, Issue, SLACalculator


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["low", "medium", "high", "critical"]
DepartmentStr = Literal["IT", "HR", "Admin", "Finance", "Legal"]
IssueStatusStr = Literal[
    "open", "in_progress", "pending", "completed",
    "verified", "rejected", "closed", "escalated"
]
SLAStatusStr = Literal["on_track", "at_risk", "breached", "completed"]
ActivityActionStr = Literal[
    "created", "updated_status", "assigned", "escalated", "commented", "department_changed"
]


# ========== Request DTOs ==========

class IssueCreateRequest(BaseModel):
    """Request model for reporting an issue."""
    title: str = Field(..., min_length=1, max_length=200, description="Short summary")
    description: str = Field(..., min_length=1, description="What went wrong")
    department: DepartmentStr = Field(..., description="Owning department")
    priority: PriorityStr = Field(..., description="Issue priority (sets the SLA deadline)")

    @field_validator("title", "description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class StatusUpdateRequest(BaseModel):
    """Request model for a status change."""
    status: IssueStatusStr = Field(..., description="Target status")


class AssignRequest(BaseModel):
    """Request model for assigning an issue."""
    assignee_id: str = Field(..., min_length=1, description="Department staff user ID")


class EscalateRequest(BaseModel):
    """Request model for escalating an issue."""
    reason: Optional[str] = Field(None, max_length=500, description="Why the issue needs escalation")


class ReassignDepartmentRequest(BaseModel):
    """Request model for moving an issue to another department."""
    department: DepartmentStr = Field(..., description="New owning department")


class CommentCreateRequest(BaseModel):
    """Request model for commenting (text is checked by the service: 1-500 characters)."""
    text: str = Field(..., description="Comment text")


# ========== Response DTOs ==========

class CommentResponse(BaseModel):
    """Response model for a comment."""
    id: str
    user_id: str
    user_name: str = Field(..., description="Author's display name when the comment was written")
    text: str
    timestamp: datetime

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            user_id=comment.user_id,
            user_name=comment.user_name,
            text=comment.text,
            timestamp=comment.timestamp
        )


class IssueResponse(BaseModel):
    """Response model for an issue with its SLA position."""
    id: str
    title: str
    description: str
    department: DepartmentStr
    priority: PriorityStr
    status: IssueStatusStr
    reporter_id: str
    assignee_id: Optional[str] = None
    is_escalated: bool
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    # SLA information
    due_by: Optional[datetime] = Field(None, description="SLA deadline")
    sla_status: SLAStatusStr = Field(..., description="SLA status evaluated at read time")
    percent_remaining: Optional[float] = Field(
        None, description="Share of the SLA window left (absent once completed)"
    )

    comments: List[CommentResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, issue: Issue, now: datetime) -> "IssueResponse":
        evaluation = SLACalculator.evaluate(issue, now)
        return cls(
            id=issue.id,
            title=issue.title,
            description=issue.description,
            department=issue.department.value,
            priority=issue.priority.value,
            status=issue.status.value,
            reporter_id=issue.reporter_id,
            assignee_id=issue.assignee_id,
            is_escalated=issue.is_escalated,
            created_at=issue.created_at,
            updated_at=issue.updated_at,
            resolved_at=issue.resolved_at,
            due_by=issue.due_by,
            sla_status=evaluation.status.value,
            percent_remaining=(
                round(evaluation.percent_remaining, 2)
                if evaluation.percent_remaining is not None else None
            ),
            comments=[CommentResponse.from_domain(c) for c in issue.comments]
        )


class IssueListResponse(BaseModel):
    """Response model for a list of issues."""
    issues: List[IssueResponse]
    total_count: int


class CommentAddedResponse(BaseModel):
    """Response model after commenting: the new comment and the updated issue."""
    comment: CommentResponse
    issue: IssueResponse


class ActivityResponse(BaseModel):
    """Response model for an activity record."""
    id: str
    issue_id: str
    user_id: str
    action: ActivityActionStr
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_domain(cls, activity: Activity) -> "ActivityResponse":
        return cls(
            id=activity.id,
            issue_id=activity.issue_id,
            user_id=activity.user_id,
            action=activity.action.value,
            details=dict(activity.details),
            created_at=activity.created_at
        )


class ActivityListResponse(BaseModel):
    """Response model for a list of activities, newest first."""
    activities: List[ActivityResponse]
    total_count: int
