"""
SLA Value Objects
==================

Immutable value objects and pure calculations for the SLA domain.

The SLA formula is a fixed business rule: a deadline offset per priority and a
25% remaining-time threshold for "at risk".
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from issuedesk.config import IssueStatus, Priority, SLAStatus, TERMINAL_STATUSES


SLA_TARGET_HOURS = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 8,
    Priority.MEDIUM: 24,
    Priority.LOW: 48,
}

AT_RISK_THRESHOLD_PERCENT = 25


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all SLA calculation logic in one place.
    """

    @staticmethod
    def calculate_due_by(priority: Optional[Priority], created_at: datetime) -> Optional[datetime]:
        """
        Derive the SLA deadline for an issue.

        Args:
            priority: Issue priority (no priority, no deadline)
            created_at: When the issue was created

        Returns:
            The due-by timestamp, or None without a priority
        """
        if priority is None:
            return None
        return created_at + timedelta(hours=SLA_TARGET_HOURS[Priority(priority)])

    @staticmethod
    def percent_remaining(
        created_at: datetime,
        due_by: datetime,
        current_time: datetime
    ) -> float:
        """Share of the SLA window still left, unclamped."""
        total = (due_by - created_at).total_seconds()
        if total <= 0:
            return 0.0
        remaining = (due_by - current_time).total_seconds()
        return (remaining / total) * 100

    @staticmethod
    def status_at(
        created_at: datetime,
        due_by: Optional[datetime],
        moment: datetime
    ) -> SLAStatus:
        """
        Evaluate the deadline rule at ``moment``, ignoring lifecycle status.

        Used both for live reads and for judging resolved issues at the time
        they were resolved.
        """
        if due_by is None:
            return SLAStatus.ON_TRACK

        if moment > due_by:
            return SLAStatus.BREACHED

        percentage = SLACalculator.percent_remaining(created_at, due_by, moment)
        if percentage <= AT_RISK_THRESHOLD_PERCENT:
            return SLAStatus.AT_RISK
        return SLAStatus.ON_TRACK

    @staticmethod
    def calculate_status(
        status: IssueStatus,
        created_at: datetime,
        due_by: Optional[datetime],
        current_time: datetime
    ) -> SLAStatus:
        """
        Calculate current SLA status.

        Args:
            status: Current lifecycle status of the issue
            created_at: When the issue was created
            due_by: The SLA deadline (may be absent)
            current_time: Current time for evaluation

        Returns:
            SLAStatus: completed for verified/closed issues, otherwise the
            deadline rule evaluated at ``current_time``
        """
        if status in TERMINAL_STATUSES:
            return SLAStatus.COMPLETED
        return SLACalculator.status_at(created_at, due_by, current_time)

    @classmethod
    def evaluate(cls, issue, current_time: datetime) -> "SLAEvaluation":
        """Snapshot of an issue's SLA position at ``current_time``."""
        sla_status = cls.calculate_status(
            issue.status, issue.created_at, issue.due_by, current_time
        )
        if issue.due_by is None or sla_status == SLAStatus.COMPLETED:
            percentage = None
        else:
            percentage = max(0.0, min(100.0, cls.percent_remaining(
                issue.created_at, issue.due_by, current_time
            )))
        return SLAEvaluation(
            issue_id=issue.id,
            due_by=issue.due_by,
            status=sla_status,
            percent_remaining=percentage,
            evaluated_at=current_time,
        )


@dataclass(frozen=True)
class SLAEvaluation:
    """
    Immutable value object describing an issue's SLA position at one instant.
    """
    issue_id: str
    due_by: Optional[datetime]
    status: SLAStatus
    percent_remaining: Optional[float]
    evaluated_at: datetime

    @property
    def needs_attention(self) -> bool:
        return self.status in (SLAStatus.AT_RISK, SLAStatus.BREACHED)

    @property
    def minutes_until_due(self) -> Optional[float]:
        """Minutes until the deadline (negative if past)."""
        if self.due_by is None:
            return None
        return (self.due_by - self.evaluated_at).total_seconds() / 60
