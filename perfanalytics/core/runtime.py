from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from perfanalytics.core.analytics.enriched import EnrichedAnalyticsService
from perfanalytics.core.analytics.progress import ProgressTracker
from perfanalytics.core.analytics.sinks import AnalyticsSink, build_sink
from perfanalytics.core.config.models import AppConfig, SamplerConfig
from perfanalytics.core.config.paths import ConfigFsPaths
from perfanalytics.core.metrics.poller import MetricsPoller
from perfanalytics.core.metrics.sampler import SystemPerformanceService


@dataclass
class PerfAnalyticsRuntime:
    cfg: AppConfig
    performance: SystemPerformanceService
    poller: MetricsPoller
    sink: AnalyticsSink
    analytics: EnrichedAnalyticsService

    def progress(self, event: str, *, properties=None, interval_seconds: Optional[float] = None) -> ProgressTracker:
        interval = interval_seconds if interval_seconds is not None else self.cfg.progress.interval_seconds
        return ProgressTracker(self.analytics, event, interval_seconds=float(interval), properties=properties, logger=self.analytics.logger)

    def shutdown(self) -> None:
        self.poller.stop()
        self.analytics.close()


def build_runtime(cfg: AppConfig, *, root: str = ".", logger=None, sink: Optional[AnalyticsSink] = None, performance: Optional[SystemPerformanceService] = None) -> PerfAnalyticsRuntime:
    sampler_cfg = cfg.sampler
    storage_path = ConfigFsPaths(root).resolve(sampler_cfg.storage_path)
    if storage_path != sampler_cfg.storage_path:
        sampler_cfg = SamplerConfig.model_validate({**sampler_cfg.model_dump(), "storage_path": storage_path})
    perf = performance or SystemPerformanceService(cfg=sampler_cfg, app_version=cfg.app_version, logger=logger)
    poller = MetricsPoller(perf, cfg=cfg.poller, logger=logger)
    out_sink = sink or build_sink(cfg.analytics, http_cfg=cfg.http, root=root, logger=logger)
    analytics = EnrichedAnalyticsService(sink=out_sink, performance=perf, cfg=cfg.analytics, poller=poller, logger=logger)
    if cfg.poller.enabled:
        poller.start()
    return PerfAnalyticsRuntime(cfg=cfg, performance=perf, poller=poller, sink=out_sink, analytics=analytics)
