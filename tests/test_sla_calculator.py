"""Unit tests for SLA deadline and status calculation."""

from datetime import timedelta

import pytest

from issuedesk.config import IssueStatus, Priority, SLAStatus
from issuedesk.issues.domain import SLACalculator

from conftest import START, make_issue


class TestCalculateDueBy:
    """Tests for deriving the deadline from priority."""

    @pytest.mark.parametrize(
        "priority,hours",
        [
            (Priority.CRITICAL, 4),
            (Priority.HIGH, 8),
            (Priority.MEDIUM, 24),
            (Priority.LOW, 48),
        ],
    )
    def test_offset_per_priority(self, priority, hours):
        assert SLACalculator.calculate_due_by(priority, START) == START + timedelta(hours=hours)

    def test_accepts_raw_priority_value(self):
        assert SLACalculator.calculate_due_by("critical", START) == START + timedelta(hours=4)

    def test_no_priority_means_no_deadline(self):
        assert SLACalculator.calculate_due_by(None, START) is None


class TestStatusAt:
    """Tests for the deadline rule (8 hour window)."""

    due_by = START + timedelta(hours=8)

    def test_fresh_issue_is_on_track(self):
        assert SLACalculator.status_at(START, self.due_by, START) == SLAStatus.ON_TRACK

    def test_just_before_threshold_is_on_track(self):
        moment = START + timedelta(hours=6) - timedelta(seconds=1)
        assert SLACalculator.status_at(START, self.due_by, moment) == SLAStatus.ON_TRACK

    def test_exactly_quarter_remaining_is_at_risk(self):
        moment = START + timedelta(hours=6)
        assert SLACalculator.status_at(START, self.due_by, moment) == SLAStatus.AT_RISK

    def test_at_deadline_is_at_risk_not_breached(self):
        assert SLACalculator.status_at(START, self.due_by, self.due_by) == SLAStatus.AT_RISK

    def test_after_deadline_is_breached(self):
        moment = self.due_by + timedelta(seconds=1)
        assert SLACalculator.status_at(START, self.due_by, moment) == SLAStatus.BREACHED

    def test_no_deadline_is_on_track(self):
        later = START + timedelta(days=30)
        assert SLACalculator.status_at(START, None, later) == SLAStatus.ON_TRACK


class TestCalculateStatus:
    """Tests for the lifecycle-aware SLA status."""

    @pytest.mark.parametrize("status", [IssueStatus.VERIFIED, IssueStatus.CLOSED])
    def test_terminal_issues_are_completed(self, status):
        long_after = START + timedelta(days=10)
        result = SLACalculator.calculate_status(status, START, START + timedelta(hours=8), long_after)
        assert result == SLAStatus.COMPLETED

    @pytest.mark.parametrize(
        "status",
        [IssueStatus.COMPLETED, IssueStatus.REJECTED, IssueStatus.ESCALATED, IssueStatus.PENDING],
    )
    def test_non_terminal_issues_keep_the_clock_running(self, status):
        long_after = START + timedelta(days=10)
        result = SLACalculator.calculate_status(status, START, START + timedelta(hours=8), long_after)
        assert result == SLAStatus.BREACHED


class TestEvaluate:
    """Tests for the SLA evaluation snapshot."""

    def test_reports_percent_remaining(self):
        issue = make_issue(priority=Priority.HIGH)
        evaluation = SLACalculator.evaluate(issue, START + timedelta(hours=2))

        assert evaluation.status == SLAStatus.ON_TRACK
        assert evaluation.percent_remaining == pytest.approx(75.0)
        assert evaluation.minutes_until_due == pytest.approx(360)
        assert not evaluation.needs_attention

    def test_percent_is_clamped_after_breach(self):
        issue = make_issue(priority=Priority.CRITICAL)
        evaluation = SLACalculator.evaluate(issue, START + timedelta(hours=5))

        assert evaluation.status == SLAStatus.BREACHED
        assert evaluation.percent_remaining == 0.0
        assert evaluation.minutes_until_due == pytest.approx(-60)
        assert evaluation.needs_attention

    def test_completed_issue_has_no_percentage(self):
        issue = make_issue(status=IssueStatus.CLOSED)
        evaluation = SLACalculator.evaluate(issue, START + timedelta(hours=1))

        assert evaluation.status == SLAStatus.COMPLETED
        assert evaluation.percent_remaining is None
