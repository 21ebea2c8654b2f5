"""
Issue Lifecycle Module
======================

Bounded Context for internal issue tracking.

Responsibilities:
- Report issues and derive their SLA deadline from priority
- Move issues through the status graph under role rules
- Assign, escalate, reassign departments and comment
- Keep an append-only activity log of every mutation
- Re-evaluate SLA status on every read and in a background sweep
"""

__version__ = "1.0.0"
