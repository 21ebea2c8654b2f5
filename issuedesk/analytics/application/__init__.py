"""
Analytics Application Layer
===========================

Contains:
- AnalyticsService: SLA compliance and workload aggregations
- DTOs: API response models
"""

from issuedesk.analytics.application.services import (
    AnalyticsService,
    AnalyticsSnapshot,
    round_half_up,
)
from issuedesk.analytics.application.dto import AnalyticsResponse

__all__ = [
    "AnalyticsService",
    "AnalyticsSnapshot",
    "AnalyticsResponse",
    "round_half_up",
]
