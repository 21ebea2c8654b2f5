"""
Analytics Interfaces Layer
==========================

FastAPI route handlers for the analytics dashboard.
"""

from issuedesk.analytics.interfaces.controllers import router as analytics_router

__all__ = ["analytics_router"]
