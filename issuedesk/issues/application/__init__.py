"""
Issue Application Layer
=======================

Application services and DTOs for the issue lifecycle.

Contains:
- Repository interfaces (dependency inversion)
- IssueLifecycleService: the lifecycle engine
- UserDirectoryService: user registration and demo seeding
- SLAMonitor: periodic SLA sweep
- DTOs: API request/response models
"""

from issuedesk.issues.application.services import (
    COMMENT_MAX_LENGTH,
    DEFAULT_ESCALATION_REASON,
    IActivityRepository,
    IIssueRepository,
    IssueLifecycleService,
    IssueLockRegistry,
    IUserRepository,
    SLAMonitor,
    UserDirectoryService,
)
from issuedesk.issues.application.dto import (
    ActivityListResponse,
    ActivityResponse,
    AssignRequest,
    CommentAddedResponse,
    CommentCreateRequest,
    CommentResponse,
    EscalateRequest,
    IssueCreateRequest,
    IssueListResponse,
    IssueResponse,
    ReassignDepartmentRequest,
    StatusUpdateRequest,
)

__all__ = [
    # Services
    "IssueLifecycleService",
    "UserDirectoryService",
    "SLAMonitor",
    "IssueLockRegistry",
    "COMMENT_MAX_LENGTH",
    "DEFAULT_ESCALATION_REASON",
    # Interfaces
    "IUserRepository",
    "IIssueRepository",
    "IActivityRepository",
    # DTOs
    "IssueCreateRequest",
    "StatusUpdateRequest",
    "AssignRequest",
    "EscalateRequest",
    "ReassignDepartmentRequest",
    "CommentCreateRequest",
    "CommentResponse",
    "IssueResponse",
    "IssueListResponse",
    "CommentAddedResponse",
    "ActivityResponse",
    "ActivityListResponse",
]
