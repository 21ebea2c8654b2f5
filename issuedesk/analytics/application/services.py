"""
Analytics Application Services
==============================

Read-only aggregations over the issue store.

Issues are read through the lifecycle service so every figure is based on SLA
status evaluated against the clock, never on the cached value.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from issuedesk.config import Department, IssueStatus, SLAStatus, TERMINAL_STATUSES
from issuedesk.core import ForbiddenException
from issuedesk.issues.application import IssueLifecycleService
from issuedesk.issues.domain import AccessPolicy, Issue, SLACalculator
from issuedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Departments without resolved work count as fully compliant
NO_DATA_PERFORMANCE = 100

ACTIVE_STATUSES = [
    IssueStatus.OPEN, IssueStatus.IN_PROGRESS, IssueStatus.PENDING, IssueStatus.ESCALATED
]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """All dashboard figures computed from one read of the store."""
    sla_performance_by_department: Dict[str, int]
    issue_counts_by_status: Dict[str, int]
    escalated_count: int
    overall_performance: int
    total_issues: int
    open_issues: int
    resolved_issues: int
    at_risk_count: int = 0
    breached_count: int = 0
    on_time_resolution_by_department: Dict[str, int] = field(default_factory=dict)
    departments: List[str] = field(default_factory=list)


class AnalyticsService:
    """
    Aggregator for SLA compliance and workload figures.

    The ``*_for`` helpers are pure functions over a list of issues; the async
    methods read the store first.
    """

    def __init__(self, lifecycle_service: IssueLifecycleService):
        self._lifecycle = lifecycle_service

    # ---------- pure aggregations ----------

    @staticmethod
    def resolved_within_sla(issue: Issue) -> bool:
        """
        Judge a verified/closed issue at the moment it was resolved.

        Issues without a deadline are always compliant. Only feeds the
        on-time resolution figure; the SLA performance figure reads the
        evaluated SLA status.
        """
        resolved_at = issue.resolved_at or issue.updated_at
        return SLACalculator.status_at(issue.created_at, issue.due_by, resolved_at) != SLAStatus.BREACHED

    @staticmethod
    def _percent_by_department(issues: List[Issue], compliant: Callable[[Issue], bool]) -> Dict[str, int]:
        performance = {}
        for department in Department:
            resolved = [
                i for i in issues
                if i.department == department and i.status in TERMINAL_STATUSES
            ]
            if not resolved:
                performance[department.value] = NO_DATA_PERFORMANCE
                continue
            met = sum(1 for i in resolved if compliant(i))
            performance[department.value] = round_half_up(met / len(resolved) * 100)
        return performance

    @classmethod
    def sla_performance_for(cls, issues: List[Issue]) -> Dict[str, int]:
        """
        Percentage of verified/closed issues whose SLA status is not breached,
        per department.

        Expects issues as returned by ``snapshot_issues``, with SLA status
        evaluated against the clock.
        """
        return cls._percent_by_department(issues, lambda i: i.sla_status != SLAStatus.BREACHED)

    @classmethod
    def on_time_resolution_for(cls, issues: List[Issue]) -> Dict[str, int]:
        """Percentage of verified/closed issues resolved before their deadline, per department."""
        return cls._percent_by_department(issues, cls.resolved_within_sla)

    @staticmethod
    def status_counts_for(issues: List[Issue]) -> Dict[str, int]:
        counts = {status.value: 0 for status in IssueStatus}
        for issue in issues:
            counts[issue.status.value] += 1
        return counts

    @staticmethod
    def overall_from(performance: Dict[str, int]) -> int:
        """Unweighted mean over departments (no-data departments included)."""
        if not performance:
            return NO_DATA_PERFORMANCE
        return round_half_up(sum(performance.values()) / len(performance))

    # ---------- store-backed queries ----------

    async def sla_performance_by_department(self) -> Dict[str, int]:
        return self.sla_performance_for(await self._lifecycle.snapshot_issues())

    async def issue_counts_by_status(self) -> Dict[str, int]:
        return self.status_counts_for(await self._lifecycle.snapshot_issues())

    async def escalated_count(self) -> int:
        issues = await self._lifecycle.snapshot_issues()
        return sum(1 for i in issues if i.is_escalated)

    async def overall_performance(self) -> int:
        return self.overall_from(await self.sla_performance_by_department())

    async def get_analytics(self, actor_id: str) -> AnalyticsSnapshot:
        """
        Dashboard bundle for department staff and admins.

        Raises:
            ResourceNotFoundException: unknown actor
            ForbiddenException: actor is an employee
        """
        actor = await self._lifecycle.resolve_actor(actor_id)
        decision = AccessPolicy.can_view_analytics(actor)
        if not decision:
            logger.info(
                "Action denied",
                extra={"action": "analytics", "actor_id": actor.id, "actor_role": actor.role.value}
            )
            raise ForbiddenException(decision.reason)

        issues = await self._lifecycle.snapshot_issues()
        performance = self.sla_performance_for(issues)
        counts = self.status_counts_for(issues)

        snapshot = AnalyticsSnapshot(
            sla_performance_by_department=performance,
            issue_counts_by_status=counts,
            escalated_count=sum(1 for i in issues if i.is_escalated),
            overall_performance=self.overall_from(performance),
            total_issues=len(issues),
            open_issues=sum(counts[s.value] for s in ACTIVE_STATUSES),
            resolved_issues=sum(counts[s.value] for s in TERMINAL_STATUSES),
            at_risk_count=sum(1 for i in issues if i.sla_status == SLAStatus.AT_RISK),
            breached_count=sum(1 for i in issues if i.sla_status == SLAStatus.BREACHED),
            on_time_resolution_by_department=self.on_time_resolution_for(issues),
            departments=[d.value for d in Department],
        )

        logger.debug(
            "Analytics computed",
            extra={"actor_id": actor.id, "total_issues": snapshot.total_issues}
        )
        return snapshot
