"""
Analytics event pipeline: every tracked event is enriched with a host
performance snapshot, filtered to backend-supported value types and handed to
a sink (in-memory, local JSONL, or a Mixpanel-compatible HTTP endpoint).
"""

from perfanalytics.core.analytics.enriched import EnrichedAnalyticsService
from perfanalytics.core.analytics.models import AnalyticsEvent, ProfileUpdate
from perfanalytics.core.analytics.progress import ProgressTracker
from perfanalytics.core.analytics.service import AnalyticsService
from perfanalytics.core.analytics.sinks import AnalyticsSink, HttpSink, JsonlSink, MemorySink, build_sink

__all__ = [
    "AnalyticsEvent",
    "AnalyticsService",
    "AnalyticsSink",
    "EnrichedAnalyticsService",
    "HttpSink",
    "JsonlSink",
    "MemorySink",
    "ProfileUpdate",
    "ProgressTracker",
    "build_sink",
]
