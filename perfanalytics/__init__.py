"""
perfanalytics: host performance sampling merged into analytics events.
"""

from perfanalytics.core.analytics import AnalyticsService, EnrichedAnalyticsService, ProgressTracker
from perfanalytics.core.metrics import MetricsPoller, SystemPerformanceService, get_performance_service

__all__ = [
    "AnalyticsService",
    "EnrichedAnalyticsService",
    "MetricsPoller",
    "ProgressTracker",
    "SystemPerformanceService",
    "get_performance_service",
]
