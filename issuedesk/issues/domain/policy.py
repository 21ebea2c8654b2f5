"""
Access Policy
=============

Every role rule of the system lives here. Each decision function is pure: it
receives the actor, the issue and whatever context the rule needs (current SLA
status, current time) and returns a ``PolicyDecision``. Nothing here touches a
store or raises; the lifecycle service turns denials into exceptions.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from issuedesk.config import Department, IssueStatus, SLAStatus
from issuedesk.issues.domain.entities import Issue, User
from issuedesk.issues.domain.state_machine import (
    REPORTER_TARGETS,
    WORK_TARGETS,
    edge_exists,
    is_admin_edge,
)


REPORTER_ESCALATION_AGE = timedelta(hours=48)


class Denial(str, Enum):
    """Why a decision went against the actor."""
    FORBIDDEN = "forbidden"
    INVALID_TRANSITION = "invalid_transition"
    ALREADY_ESCALATED = "already_escalated"
    NO_OP = "no_op"


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a policy check: allowed, or denied with a kind and a reason."""
    allowed: bool
    reason: str = ""
    denial: Optional[Denial] = None

    @classmethod
    def allow(cls, reason: str = "") -> "PolicyDecision":
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(cls, denial: Denial, reason: str) -> "PolicyDecision":
        return cls(allowed=False, reason=reason, denial=denial)

    def __bool__(self) -> bool:
        return self.allowed


_OUT_OF_SCOPE = PolicyDecision.deny(Denial.FORBIDDEN, "Access forbidden")


class AccessPolicy:
    """
    Role-conditioned rules for reading and mutating issues.

    Scope rule shared by read and comment: employees see what they reported,
    department staff see their department, admins see everything.
    """

    @staticmethod
    def can_read(actor: User, issue: Issue) -> PolicyDecision:
        if actor.is_admin:
            return PolicyDecision.allow("admin")
        if actor.is_department_staff:
            if issue.department == actor.department:
                return PolicyDecision.allow("department scope")
            return _OUT_OF_SCOPE
        if issue.reporter_id == actor.id:
            return PolicyDecision.allow("reporter")
        return _OUT_OF_SCOPE

    @staticmethod
    def can_create(actor: User) -> PolicyDecision:
        # Any known user may report; the reporter is always the actor.
        return PolicyDecision.allow()

    @staticmethod
    def can_comment(actor: User, issue: Issue) -> PolicyDecision:
        return AccessPolicy.can_read(actor, issue)

    @staticmethod
    def can_transition(actor: User, issue: Issue, target: IssueStatus) -> PolicyDecision:
        """
        Decide a status change.

        Order of checks: read scope (forbidden), edge existence (invalid
        transition), then whether this role may take the edge (forbidden).
        """
        scope = AccessPolicy.can_read(actor, issue)
        if not scope:
            return scope

        if not edge_exists(issue.status, target):
            return PolicyDecision.deny(
                Denial.INVALID_TRANSITION,
                f"Cannot move issue from {issue.status.value} to {target.value}"
            )

        if is_admin_edge(issue.status, target):
            if actor.is_admin:
                return PolicyDecision.allow("administrative intervention")
            return PolicyDecision.deny(
                Denial.FORBIDDEN,
                f"Only an admin may move an issue from {issue.status.value} to {target.value}"
            )

        if target in REPORTER_TARGETS:
            if actor.is_employee and actor.id == issue.reporter_id:
                return PolicyDecision.allow("reporter verification")
            return PolicyDecision.deny(
                Denial.FORBIDDEN,
                "Only the reporter may verify or reject a completed issue"
            )

        if target in WORK_TARGETS and (actor.is_department_staff or actor.is_admin):
            return PolicyDecision.allow("department workflow")

        return PolicyDecision.deny(
            Denial.FORBIDDEN,
            "Only department staff or an admin may progress an issue"
        )

    @staticmethod
    def can_assign(actor: User, issue: Issue) -> PolicyDecision:
        scope = AccessPolicy.can_read(actor, issue)
        if not scope:
            return scope
        if not (actor.is_department_staff or actor.is_admin):
            return PolicyDecision.deny(
                Denial.FORBIDDEN, "Only department staff or an admin may assign issues"
            )
        if issue.is_terminal:
            return PolicyDecision.deny(
                Denial.INVALID_TRANSITION,
                f"Cannot assign a {issue.status.value} issue"
            )
        return PolicyDecision.allow()

    @staticmethod
    def can_escalate(
        actor: User,
        issue: Issue,
        sla_status: SLAStatus,
        now: datetime
    ) -> PolicyDecision:
        """
        Decide an escalation.

        Staff and admins escalate as a process action. The reporter escalates
        as a remedy, so they need a breached SLA, a rejected resolution, or an
        issue older than 48 hours.
        """
        scope = AccessPolicy.can_read(actor, issue)
        if not scope:
            return scope

        if issue.is_escalated:
            return PolicyDecision.deny(
                Denial.ALREADY_ESCALATED, f"Issue {issue.id} is already escalated"
            )

        if issue.is_terminal:
            return PolicyDecision.deny(
                Denial.INVALID_TRANSITION,
                f"Cannot escalate a {issue.status.value} issue"
            )

        if actor.is_admin or actor.is_department_staff:
            return PolicyDecision.allow("operational escalation")

        if sla_status == SLAStatus.BREACHED:
            return PolicyDecision.allow("SLA breached")
        if issue.status == IssueStatus.REJECTED:
            return PolicyDecision.allow("resolution rejected")
        if now - issue.created_at > REPORTER_ESCALATION_AGE:
            return PolicyDecision.allow("open for more than 48 hours")

        return PolicyDecision.deny(
            Denial.FORBIDDEN,
            "Reporters may escalate only after an SLA breach or a rejected "
            "resolution, or once the issue is older than 48 hours"
        )

    @staticmethod
    def can_reassign_department(
        actor: User,
        issue: Issue,
        new_department: Department
    ) -> PolicyDecision:
        if not actor.is_admin:
            return PolicyDecision.deny(
                Denial.FORBIDDEN, "Only an admin may reassign an issue's department"
            )
        if issue.department == new_department:
            return PolicyDecision.deny(
                Denial.NO_OP,
                f"Issue is already assigned to the {new_department.value} department"
            )
        return PolicyDecision.allow()

    @staticmethod
    def reassignment_is_advised(issue: Issue, sla_status: SLAStatus) -> bool:
        """Reassignment is meant for escalated or at-risk work; advisory only."""
        return issue.is_escalated or sla_status in (SLAStatus.AT_RISK, SLAStatus.BREACHED)

    @staticmethod
    def can_view_analytics(actor: User) -> PolicyDecision:
        if actor.is_admin or actor.is_department_staff:
            return PolicyDecision.allow()
        return PolicyDecision.deny(
            Denial.FORBIDDEN, "Analytics are available to department staff and admins"
        )

    @staticmethod
    def can_view_attention_queue(actor: User) -> PolicyDecision:
        if actor.is_admin:
            return PolicyDecision.allow()
        return PolicyDecision.deny(
            Denial.FORBIDDEN, "The attention queue is available to admins"
        )
