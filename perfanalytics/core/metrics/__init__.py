"""
Host performance metrics: point-in-time sampling, periodic polling and a
bounded rolling history. Everything is local; nothing here talks to the network.
"""

from perfanalytics.core.metrics.history import MetricsHistory
from perfanalytics.core.metrics.models import BatteryInfo, BatteryState, MemoryUsage, MetricsSnapshot, StorageInfo, ThermalState
from perfanalytics.core.metrics.poller import MetricsPoller
from perfanalytics.core.metrics.sampler import SystemPerformanceService, get_performance_service

__all__ = [
    "BatteryInfo",
    "BatteryState",
    "MemoryUsage",
    "MetricsHistory",
    "MetricsPoller",
    "MetricsSnapshot",
    "StorageInfo",
    "SystemPerformanceService",
    "ThermalState",
    "get_performance_service",
]
