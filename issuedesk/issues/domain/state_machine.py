"""
Issue State Machine
===================

The fixed status graph. Edges here say which moves exist at all; who may take
them is decided by the access policy.
"""

from typing import Dict, FrozenSet

from issuedesk.config import IssueStatus


# Map of current status -> statuses reachable through the ordinary flow
STATUS_TRANSITIONS: Dict[IssueStatus, FrozenSet[IssueStatus]] = {
    IssueStatus.OPEN: frozenset({IssueStatus.IN_PROGRESS}),
    IssueStatus.IN_PROGRESS: frozenset({IssueStatus.PENDING, IssueStatus.COMPLETED}),
    IssueStatus.PENDING: frozenset({IssueStatus.IN_PROGRESS, IssueStatus.COMPLETED}),
    IssueStatus.COMPLETED: frozenset({IssueStatus.VERIFIED, IssueStatus.REJECTED}),
    IssueStatus.VERIFIED: frozenset(),
    IssueStatus.REJECTED: frozenset(),
    IssueStatus.CLOSED: frozenset(),
    # Escalation freezes ordinary progress
    IssueStatus.ESCALATED: frozenset(),
}

# Administrative interventions: resume an escalated issue, close anything open
ADMIN_TRANSITIONS: Dict[IssueStatus, FrozenSet[IssueStatus]] = {
    status: frozenset({IssueStatus.CLOSED})
    for status in IssueStatus
    if status != IssueStatus.CLOSED
}
ADMIN_TRANSITIONS[IssueStatus.ESCALATED] = frozenset({
    IssueStatus.IN_PROGRESS, IssueStatus.CLOSED
})

# Targets that belong to the reporter's verification step
REPORTER_TARGETS = frozenset({IssueStatus.VERIFIED, IssueStatus.REJECTED})

# Targets department staff (and admins) drive
WORK_TARGETS = frozenset({
    IssueStatus.IN_PROGRESS, IssueStatus.PENDING, IssueStatus.COMPLETED
})


def is_status_edge(current: IssueStatus, target: IssueStatus) -> bool:
    """True when ``current -> target`` is part of the ordinary flow."""
    return target in STATUS_TRANSITIONS.get(current, frozenset())


def is_admin_edge(current: IssueStatus, target: IssueStatus) -> bool:
    """True when ``current -> target`` is an administrative intervention."""
    return target in ADMIN_TRANSITIONS.get(current, frozenset())


def edge_exists(current: IssueStatus, target: IssueStatus) -> bool:
    return is_status_edge(current, target) or is_admin_edge(current, target)
