"""
IssueDesk
=========

Internal issue tracking: role-based lifecycle, append-only activity log and
SLA monitoring, served as a FastAPI modular monolith.
"""

__version__ = "1.0.0"
