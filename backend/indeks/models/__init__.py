"""Database models."""
from indeks.models.models import (
    Project,
    RawEvent,
    AnalyticsDaily,
    AnalyticsTopPage,
    AnalyticsReferrer,
    AnalyticsDevice,
    AnalyticsEventType,
    AnalyticsClickedElement,
    AnalyticsScrollDepth,
    AnalyticsError,
    AnalyticsEngagement,
    AnalyticsTrafficSource,
    AnalyticsFormEvent,
    AnalyticsPerformance,
    AnalyticsMedia,
    AnalyticsOutbound,
    AnalyticsSearch,
    AnalyticsCustomEvent,
    AnalyticsSessionPath,
    AnalyticsVisitors,
    AnalyticsSyncLog,
    ROLLUP_MODELS,
)

__all__ = [
    "Project",
    "RawEvent",
    "AnalyticsDaily",
    "AnalyticsTopPage",
    "AnalyticsReferrer",
    "AnalyticsDevice",
    "AnalyticsEventType",
    "AnalyticsClickedElement",
    "AnalyticsScrollDepth",
    "AnalyticsError",
    "AnalyticsEngagement",
    "AnalyticsTrafficSource",
    "AnalyticsFormEvent",
    "AnalyticsPerformance",
    "AnalyticsMedia",
    "AnalyticsOutbound",
    "AnalyticsSearch",
    "AnalyticsCustomEvent",
    "AnalyticsSessionPath",
    "AnalyticsVisitors",
    "AnalyticsSyncLog",
    "ROLLUP_MODELS",
]
