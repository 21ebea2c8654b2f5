"""Unit tests for the access policy and the status graph."""

from datetime import timedelta

import pytest

from issuedesk.config import Department, IssueStatus, SLAStatus, UserRole
from issuedesk.core import ValidationException
from issuedesk.issues.domain import AccessPolicy, Denial, edge_exists

from conftest import START, make_issue, make_user


EMPLOYEE = make_user()
OTHER_EMPLOYEE = make_user(id="user-other", username="other", department=Department.LEGAL)
IT_STAFF = make_user(
    id="user-it", username="itstaff", full_name="IT Staff",
    role=UserRole.DEPARTMENT, department=Department.IT,
)
HR_STAFF = make_user(
    id="user-hr", username="hrstaff", full_name="HR Staff",
    role=UserRole.DEPARTMENT, department=Department.HR,
)
ADMIN = make_user(
    id="user-admin", username="admin", full_name="Admin User",
    role=UserRole.ADMIN, department=Department.IT,
)


class TestUserInvariants:
    """Tests for user construction rules."""

    def test_department_staff_requires_department(self):
        with pytest.raises(ValidationException):
            make_user(role=UserRole.DEPARTMENT, department=None)

    def test_employee_department_is_optional(self):
        assert make_user(department=None).is_employee


class TestStatusGraph:
    """Tests for edge existence."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (IssueStatus.OPEN, IssueStatus.IN_PROGRESS),
            (IssueStatus.IN_PROGRESS, IssueStatus.PENDING),
            (IssueStatus.IN_PROGRESS, IssueStatus.COMPLETED),
            (IssueStatus.PENDING, IssueStatus.IN_PROGRESS),
            (IssueStatus.PENDING, IssueStatus.COMPLETED),
            (IssueStatus.COMPLETED, IssueStatus.VERIFIED),
            (IssueStatus.COMPLETED, IssueStatus.REJECTED),
            (IssueStatus.ESCALATED, IssueStatus.IN_PROGRESS),
            (IssueStatus.REJECTED, IssueStatus.CLOSED),
        ],
    )
    def test_existing_edges(self, current, target):
        assert edge_exists(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (IssueStatus.OPEN, IssueStatus.COMPLETED),
            (IssueStatus.OPEN, IssueStatus.ESCALATED),
            (IssueStatus.VERIFIED, IssueStatus.IN_PROGRESS),
            (IssueStatus.CLOSED, IssueStatus.OPEN),
            (IssueStatus.CLOSED, IssueStatus.CLOSED),
            (IssueStatus.REJECTED, IssueStatus.IN_PROGRESS),
            (IssueStatus.ESCALATED, IssueStatus.COMPLETED),
        ],
    )
    def test_missing_edges(self, current, target):
        assert not edge_exists(current, target)


class TestCanRead:
    """Tests for the shared read scope."""

    def test_reporter_reads_own_issue(self):
        assert AccessPolicy.can_read(EMPLOYEE, make_issue())

    def test_other_employee_cannot_read(self):
        decision = AccessPolicy.can_read(OTHER_EMPLOYEE, make_issue())
        assert not decision
        assert decision.denial == Denial.FORBIDDEN

    def test_department_staff_read_their_department(self):
        assert AccessPolicy.can_read(IT_STAFF, make_issue())

    def test_other_department_staff_cannot_read(self):
        assert not AccessPolicy.can_read(HR_STAFF, make_issue())

    def test_admin_reads_everything(self):
        assert AccessPolicy.can_read(ADMIN, make_issue(department=Department.LEGAL))


class TestCanTransition:
    """Tests for role rules on status changes."""

    def test_staff_start_work(self):
        assert AccessPolicy.can_transition(IT_STAFF, make_issue(), IssueStatus.IN_PROGRESS)

    def test_reporter_cannot_start_work(self):
        decision = AccessPolicy.can_transition(EMPLOYEE, make_issue(), IssueStatus.IN_PROGRESS)
        assert decision.denial == Denial.FORBIDDEN

    def test_missing_edge_is_invalid_transition(self):
        decision = AccessPolicy.can_transition(IT_STAFF, make_issue(), IssueStatus.COMPLETED)
        assert decision.denial == Denial.INVALID_TRANSITION

    def test_scope_is_checked_before_edge(self):
        decision = AccessPolicy.can_transition(HR_STAFF, make_issue(), IssueStatus.COMPLETED)
        assert decision.denial == Denial.FORBIDDEN

    def test_reporter_verifies_completed_issue(self):
        issue = make_issue(status=IssueStatus.COMPLETED)
        assert AccessPolicy.can_transition(EMPLOYEE, issue, IssueStatus.VERIFIED)
        assert AccessPolicy.can_transition(EMPLOYEE, issue, IssueStatus.REJECTED)

    @pytest.mark.parametrize("actor", [IT_STAFF, ADMIN])
    def test_only_reporter_verifies(self, actor):
        issue = make_issue(status=IssueStatus.COMPLETED)
        decision = AccessPolicy.can_transition(actor, issue, IssueStatus.VERIFIED)
        assert decision.denial == Denial.FORBIDDEN

    def test_staff_cannot_resume_escalated_issue(self):
        issue = make_issue(status=IssueStatus.ESCALATED, is_escalated=True)
        decision = AccessPolicy.can_transition(IT_STAFF, issue, IssueStatus.IN_PROGRESS)
        assert decision.denial == Denial.FORBIDDEN

    def test_admin_resumes_escalated_issue(self):
        issue = make_issue(status=IssueStatus.ESCALATED, is_escalated=True)
        assert AccessPolicy.can_transition(ADMIN, issue, IssueStatus.IN_PROGRESS)

    @pytest.mark.parametrize(
        "status",
        [IssueStatus.OPEN, IssueStatus.PENDING, IssueStatus.REJECTED, IssueStatus.VERIFIED],
    )
    def test_admin_closes_any_unclosed_issue(self, status):
        assert AccessPolicy.can_transition(ADMIN, make_issue(status=status), IssueStatus.CLOSED)

    def test_staff_cannot_close(self):
        decision = AccessPolicy.can_transition(IT_STAFF, make_issue(), IssueStatus.CLOSED)
        assert decision.denial == Denial.FORBIDDEN

    def test_closed_is_final(self):
        decision = AccessPolicy.can_transition(
            ADMIN, make_issue(status=IssueStatus.CLOSED), IssueStatus.IN_PROGRESS
        )
        assert decision.denial == Denial.INVALID_TRANSITION


class TestCanEscalate:
    """Tests for escalation rules."""

    def test_reporter_cannot_escalate_fresh_issue(self):
        decision = AccessPolicy.can_escalate(EMPLOYEE, make_issue(), SLAStatus.ON_TRACK, START)
        assert decision.denial == Denial.FORBIDDEN

    def test_reporter_escalates_breached_issue(self):
        assert AccessPolicy.can_escalate(
            EMPLOYEE, make_issue(), SLAStatus.BREACHED, START + timedelta(hours=9)
        )

    def test_reporter_escalates_rejected_issue(self):
        issue = make_issue(status=IssueStatus.REJECTED)
        assert AccessPolicy.can_escalate(EMPLOYEE, issue, SLAStatus.ON_TRACK, START)

    def test_reporter_age_rule_is_strictly_after_48_hours(self):
        issue = make_issue(due_by=None)
        at_48h = START + timedelta(hours=48)

        assert not AccessPolicy.can_escalate(EMPLOYEE, issue, SLAStatus.ON_TRACK, at_48h)
        assert AccessPolicy.can_escalate(
            EMPLOYEE, issue, SLAStatus.ON_TRACK, at_48h + timedelta(seconds=1)
        )

    def test_staff_escalate_without_conditions(self):
        assert AccessPolicy.can_escalate(IT_STAFF, make_issue(), SLAStatus.ON_TRACK, START)

    def test_already_escalated(self):
        issue = make_issue(status=IssueStatus.ESCALATED, is_escalated=True)
        decision = AccessPolicy.can_escalate(ADMIN, issue, SLAStatus.ON_TRACK, START)
        assert decision.denial == Denial.ALREADY_ESCALATED

    def test_flag_survives_resume(self):
        issue = make_issue(status=IssueStatus.IN_PROGRESS, is_escalated=True)
        decision = AccessPolicy.can_escalate(ADMIN, issue, SLAStatus.ON_TRACK, START)
        assert decision.denial == Denial.ALREADY_ESCALATED

    @pytest.mark.parametrize("status", [IssueStatus.VERIFIED, IssueStatus.CLOSED])
    def test_terminal_issue_cannot_be_escalated(self, status):
        decision = AccessPolicy.can_escalate(
            ADMIN, make_issue(status=status), SLAStatus.COMPLETED, START
        )
        assert decision.denial == Denial.INVALID_TRANSITION


class TestOtherDecisions:
    """Tests for assign, reassign and dashboard rules."""

    def test_reporter_cannot_assign(self):
        assert AccessPolicy.can_assign(EMPLOYEE, make_issue()).denial == Denial.FORBIDDEN

    def test_assign_on_closed_issue(self):
        decision = AccessPolicy.can_assign(IT_STAFF, make_issue(status=IssueStatus.CLOSED))
        assert decision.denial == Denial.INVALID_TRANSITION

    def test_only_admin_reassigns(self):
        decision = AccessPolicy.can_reassign_department(IT_STAFF, make_issue(), Department.HR)
        assert decision.denial == Denial.FORBIDDEN

    def test_reassign_to_same_department_is_no_op(self):
        decision = AccessPolicy.can_reassign_department(ADMIN, make_issue(), Department.IT)
        assert decision.denial == Denial.NO_OP

    def test_reassignment_advice(self):
        assert AccessPolicy.reassignment_is_advised(make_issue(), SLAStatus.AT_RISK)
        assert AccessPolicy.reassignment_is_advised(make_issue(is_escalated=True), SLAStatus.ON_TRACK)
        assert not AccessPolicy.reassignment_is_advised(make_issue(), SLAStatus.ON_TRACK)

    def test_analytics_visibility(self):
        assert AccessPolicy.can_view_analytics(ADMIN)
        assert AccessPolicy.can_view_analytics(IT_STAFF)
        assert not AccessPolicy.can_view_analytics(EMPLOYEE)

    def test_attention_queue_is_admin_only(self):
        assert AccessPolicy.can_view_attention_queue(ADMIN)
        assert not AccessPolicy.can_view_attention_queue(IT_STAFF)
