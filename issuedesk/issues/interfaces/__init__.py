"""
Issue Interfaces Layer
======================

Interface adapters (controllers) for the issue lifecycle.

Contains:
- Controllers: FastAPI route handlers
- Dependencies: repository, service and actor providers

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from issuedesk.issues.interfaces.controllers import activity_router, router as issues_router

__all__ = ["issues_router", "activity_router"]
