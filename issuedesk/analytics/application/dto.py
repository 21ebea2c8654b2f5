"""
Analytics Application DTOs
==========================

Response models for the analytics dashboard.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from issuedesk.analytics.application.services import AnalyticsSnapshot


class AnalyticsResponse(BaseModel):
    """Response model for the analytics dashboard."""
    sla_performance_by_department: Dict[str, int] = Field(
        ..., description="Percent of verified/closed issues whose SLA status is not breached, per department"
    )
    issue_counts_by_status: Dict[str, int] = Field(..., description="Issue count for every status")
    escalated_count: int = Field(..., description="Issues that were ever escalated")
    overall_performance: int = Field(..., description="Mean of the department percentages")
    total_issues: int
    open_issues: int = Field(..., description="open + in_progress + pending + escalated")
    resolved_issues: int = Field(..., description="verified + closed")
    at_risk_count: int
    breached_count: int
    on_time_resolution_by_department: Dict[str, int] = Field(
        default_factory=dict,
        description="Percent of verified/closed issues resolved before their deadline, per department"
    )
    departments: List[str] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: AnalyticsSnapshot) -> "AnalyticsResponse":
        return cls(
            sla_performance_by_department=dict(snapshot.sla_performance_by_department),
            issue_counts_by_status=dict(snapshot.issue_counts_by_status),
            escalated_count=snapshot.escalated_count,
            overall_performance=snapshot.overall_performance,
            total_issues=snapshot.total_issues,
            open_issues=snapshot.open_issues,
            resolved_issues=snapshot.resolved_issues,
            at_risk_count=snapshot.at_risk_count,
            breached_count=snapshot.breached_count,
            on_time_resolution_by_department=dict(snapshot.on_time_resolution_by_department),
            departments=list(snapshot.departments),
        )
