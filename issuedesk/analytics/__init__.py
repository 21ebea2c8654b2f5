"""
Analytics Module
================

Bounded Context for SLA compliance reporting.

Responsibilities:
- Per-department SLA compliance over resolved issues
- Status distribution and escalation count
- Overall performance figure for the dashboard
"""

__version__ = "1.0.0"
