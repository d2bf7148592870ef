from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional

from perfanalytics.core.config.models import PollerConfig
from perfanalytics.core.logger import get_logger
from perfanalytics.core.metrics.history import MetricsHistory

_log = get_logger("poller")

# keeps a tiny floor to avoid tight loops
MIN_INTERVAL_SECONDS = 0.2


class MetricsPoller:
    """
    Samples the performance service on a fixed cadence in a daemon thread.
    Keeps the most recent flat record plus a rolling history of numeric fields.
    """

    def __init__(self, service: Any, *, cfg: Optional[PollerConfig] = None, logger=None, clock=time.monotonic):
        self.service = service
        self.cfg = cfg or PollerConfig()
        self.logger = logger or _log
        self._clock = clock
        self.history = MetricsHistory(max_samples=int(self.cfg.history_size))

        self._lock = threading.Lock()
        self._latest: Optional[Dict[str, Any]] = None
        self._latest_at: Optional[float] = None
        self._samples_total = 0
        self._errors_total = 0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_seconds(self) -> float:
        return max(MIN_INTERVAL_SECONDS, float(self.cfg.interval_seconds))

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop = threading.Event()
            self._thread = threading.Thread(target=self._loop, args=(self._stop,), name="metrics-poller", daemon=True)
            self._thread.start()
        self.logger.info(f"Metrics poller started (every {self.interval_seconds:.1f}s)")

    def stop(self, timeout: float = 2.0) -> None:
        with self._lock:
            self._stop.set()
            t = self._thread
            self._thread = None
        if t is not None and t.is_alive():
            t.join(timeout=timeout)

    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def sample_now(self) -> Dict[str, Any]:
        t0 = time.perf_counter()
        record = dict(self.service.get_all_metrics())
        latency_ms = (time.perf_counter() - t0) * 1000.0
        with self._lock:
            self._latest = record
            self._latest_at = self._clock()
            self._samples_total += 1
        self.history.observe_record(record)
        self.history.observe("sample_latency_ms", latency_ms)
        return dict(record)

    def latest(self, max_age_seconds: Optional[float] = None) -> Optional[Dict[str, Any]]:
        with self._lock:
            if self._latest is None or self._latest_at is None:
                return None
            if max_age_seconds is not None and (self._clock() - self._latest_at) > float(max_age_seconds):
                return None
            return dict(self._latest)

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            samples, errors = self._samples_total, self._errors_total
        return {"samples_total": samples, "errors_total": errors, "history": self.history.summary()}

    def _loop(self, stop: threading.Event) -> None:
        # per-run event: a later start() never revives this loop
        while not stop.is_set():
            try:
                self.sample_now()
            except Exception as e:  # noqa: BLE001
                with self._lock:
                    self._errors_total += 1
                self.logger.warning(f"Metrics sample failed: {e}")
            stop.wait(self.interval_seconds)
