"""
Issue Controllers (API Routes)
==============================

FastAPI routes for the issue lifecycle.

Controllers are thin - they delegate to the lifecycle service. Domain
exceptions are mapped to HTTP responses by the application exception handler.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from issuedesk.config import settings
from issuedesk.issues.application import (
    ActivityListResponse,
    ActivityResponse,
    AssignRequest,
    CommentAddedResponse,
    CommentCreateRequest,
    CommentResponse,
    EscalateRequest,
    IssueCreateRequest,
    IssueLifecycleService,
    IssueListResponse,
    IssueResponse,
    ReassignDepartmentRequest,
    StatusUpdateRequest,
)
from issuedesk.issues.application.dto import IssueStatusStr
from issuedesk.issues.interfaces.dependencies import (
    get_current_user_id,
    get_lifecycle_service,
)
from issuedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/issues", tags=["Issues"])
activity_router = APIRouter(prefix="/api/activities", tags=["Activities"])


# ========== Example payloads for Swagger ==========

ISSUE_CREATE_EXAMPLE = {
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN disconnects roughly every five minutes.",
    "department": "IT",
    "priority": "high"
}


def _issue_response(service: IssueLifecycleService, issue) -> IssueResponse:
    return IssueResponse.from_domain(issue, service.clock.now())


def _issue_list(service: IssueLifecycleService, issues) -> IssueListResponse:
    now = service.clock.now()
    return IssueListResponse(
        issues=[IssueResponse.from_domain(i, now) for i in issues],
        total_count=len(issues)
    )


# ========== Route Handlers ==========

@router.post(
    "",
    response_model=IssueResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report an issue",
    description="""
    Report a new issue. The caller becomes the reporter.

    **Priorities** set the SLA deadline: `critical` 4h, `high` 8h,
    `medium` 24h, `low` 48h.

    **Departments**: `IT`, `HR`, `Admin`, `Finance`, `Legal`
    """,
    responses={201: {"description": "Issue created"}},
    openapi_extra={"requestBody": {"content": {"application/json": {"example": ISSUE_CREATE_EXAMPLE}}}}
)
async def create_issue(
    request: IssueCreateRequest,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueResponse:
    issue = await service.create_issue(
        actor_id,
        title=request.title,
        description=request.description,
        department=request.department,
        priority=request.priority
    )
    return _issue_response(service, issue)


@router.get(
    "",
    response_model=IssueListResponse,
    summary="List issues in scope",
    description="Employees see their own reports, department staff their department, admins everything."
)
async def list_issues(
    status_filter: Optional[IssueStatusStr] = Query(None, alias="status", description="Only issues in this status"),
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueListResponse:
    issues = await service.list_issues_for_actor(actor_id, status=status_filter)
    return _issue_list(service, issues)


@router.get(
    "/attention",
    response_model=IssueListResponse,
    summary="Issues needing attention (admin)",
    description="Escalated, at-risk and breached issues across all departments."
)
async def list_attention_queue(
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueListResponse:
    issues = await service.list_attention_queue(actor_id)
    return _issue_list(service, issues)


@router.get(
    "/{issue_id}",
    response_model=IssueResponse,
    summary="Get an issue",
    responses={404: {"description": "Issue not found"}, 403: {"description": "Outside the caller's scope"}}
)
async def get_issue(
    issue_id: str,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueResponse:
    issue = await service.get_issue(actor_id, issue_id)
    return _issue_response(service, issue)


@router.patch(
    "/{issue_id}/status",
    response_model=IssueResponse,
    summary="Change an issue's status",
    description="""
    Move an issue along the status graph:

    open → in_progress → pending ⇄ in_progress → completed → verified | rejected

    Verified and rejected are the reporter's call. Only an admin may resume an
    escalated issue (→ in_progress) or close an issue.
    """,
    responses={409: {"description": "Transition not allowed from the current status"}}
)
async def update_status(
    issue_id: str,
    request: StatusUpdateRequest,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueResponse:
    issue = await service.update_status(actor_id, issue_id, request.status)
    return _issue_response(service, issue)


@router.patch(
    "/{issue_id}/assign",
    response_model=IssueResponse,
    summary="Assign an issue to department staff"
)
async def assign_issue(
    issue_id: str,
    request: AssignRequest,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueResponse:
    issue = await service.assign(actor_id, issue_id, request.assignee_id)
    return _issue_response(service, issue)


@router.patch(
    "/{issue_id}/escalate",
    response_model=IssueResponse,
    summary="Escalate an issue",
    description="""
    Escalate an issue. Escalation can happen once per issue.

    Reporters may escalate after an SLA breach, a rejected resolution, or once
    the issue is older than 48 hours.
    """,
    responses={409: {"description": "Already escalated or already verified/closed"}}
)
async def escalate_issue(
    issue_id: str,
    request: Optional[EscalateRequest] = None,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueResponse:
    reason = request.reason if request else None
    issue = await service.escalate(actor_id, issue_id, reason)
    return _issue_response(service, issue)


@router.patch(
    "/{issue_id}/reassign-department",
    response_model=IssueResponse,
    summary="Move an issue to another department (admin)"
)
async def reassign_department(
    issue_id: str,
    request: ReassignDepartmentRequest,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> IssueResponse:
    issue = await service.reassign_department(actor_id, issue_id, request.department)
    return _issue_response(service, issue)


@router.post(
    "/{issue_id}/comments",
    response_model=CommentAddedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on an issue"
)
async def add_comment(
    issue_id: str,
    request: CommentCreateRequest,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> CommentAddedResponse:
    issue, comment = await service.add_comment(actor_id, issue_id, request.text)
    return CommentAddedResponse(
        comment=CommentResponse.from_domain(comment),
        issue=_issue_response(service, issue)
    )


@router.get(
    "/{issue_id}/activities",
    response_model=ActivityListResponse,
    summary="Activity history of an issue (newest first)"
)
async def list_issue_activities(
    issue_id: str,
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> ActivityListResponse:
    activities = await service.list_activities_for_issue(actor_id, issue_id)
    return ActivityListResponse(
        activities=[ActivityResponse.from_domain(a) for a in activities],
        total_count=len(activities)
    )


@activity_router.get(
    "/recent",
    response_model=ActivityListResponse,
    summary="Recent activity across the caller's issues"
)
async def list_recent_activities(
    limit: Optional[int] = Query(None, description="Maximum number of activities"),
    actor_id: str = Depends(get_current_user_id),
    service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> ActivityListResponse:
    if limit is None:
        limit = settings.recent_activity_default_limit
    activities = await service.list_recent_activities(actor_id, limit)
    return ActivityListResponse(
        activities=[ActivityResponse.from_domain(a) for a in activities],
        total_count=len(activities)
    )
