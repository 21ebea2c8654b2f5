"""
Issue Domain Layer
==================

Domain layer for the issue lifecycle module.

Contains:
- Entities: Core business objects with identity (User, Issue, Comment, Activity)
- Value Objects & Services: SLACalculator, SLAEvaluation
- State machine: the fixed status graph
- Policy: AccessPolicy and PolicyDecision

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from issuedesk.issues.domain.entities import Activity, Comment, Issue, User
from issuedesk.issues.domain.policy import AccessPolicy, Denial, PolicyDecision
from issuedesk.issues.domain.state_machine import (
    ADMIN_TRANSITIONS,
    STATUS_TRANSITIONS,
    edge_exists,
)
from issuedesk.issues.domain.value_objects import (
    AT_RISK_THRESHOLD_PERCENT,
    SLA_TARGET_HOURS,
    SLACalculator,
    SLAEvaluation,
)

__all__ = [
    # Entities
    "User",
    "Issue",
    "Comment",
    "Activity",
    # Value Objects & Services
    "SLACalculator",
    "SLAEvaluation",
    "SLA_TARGET_HOURS",
    "AT_RISK_THRESHOLD_PERCENT",
    # State machine
    "STATUS_TRANSITIONS",
    "ADMIN_TRANSITIONS",
    "edge_exists",
    # Policy
    "AccessPolicy",
    "PolicyDecision",
    "Denial",
]
