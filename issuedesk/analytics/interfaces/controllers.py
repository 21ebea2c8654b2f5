"""
Analytics Controllers (API Routes)
==================================

FastAPI routes for the analytics dashboard.
"""

from fastapi import APIRouter, Depends

from issuedesk.analytics.application import AnalyticsResponse, AnalyticsService
from issuedesk.issues.application import IssueLifecycleService
from issuedesk.issues.interfaces.dependencies import (
    get_current_user_id,
    get_lifecycle_service,
)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


async def get_analytics_service(
    lifecycle_service: IssueLifecycleService = Depends(get_lifecycle_service)
) -> AnalyticsService:
    """Get analytics service instance."""
    return AnalyticsService(lifecycle_service)


@router.get(
    "",
    response_model=AnalyticsResponse,
    summary="SLA compliance dashboard",
    description="""
    Department SLA compliance, status distribution and escalation count.

    Available to department staff and admins.
    """,
    responses={403: {"description": "Employees cannot view analytics"}}
)
async def get_analytics(
    actor_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
) -> AnalyticsResponse:
    snapshot = await service.get_analytics(actor_id)
    return AnalyticsResponse.from_snapshot(snapshot)
