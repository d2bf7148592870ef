from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Optional, Union

from perfanalytics.core.logger import get_logger

_log = get_logger("progress")

PropsSource = Union[Dict[str, Any], Callable[[], Optional[Dict[str, Any]]], None]


class ProgressTracker:
    """
    Re-tracks an "in progress" event on a fixed interval while a screen or
    workload is active. The first event fires after one full interval.
    """

    def __init__(self, analytics: Any, event: str, *, interval_seconds: float = 5.0, properties: PropsSource = None, logger=None):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.analytics = analytics
        self.event = event
        self.interval_seconds = float(interval_seconds)
        self.properties = properties
        self.logger = logger or _log
        self.ticks = 0

        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop = threading.Event()
            self._thread = threading.Thread(target=self._loop, args=(self._stop,), name=f"progress-{self.event}", daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        with self._lock:
            self._stop.set()
            t = self._thread
            self._thread = None
        if t is not None and t.is_alive() and t is not threading.current_thread():
            t.join(timeout=timeout)

    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> "ProgressTracker":
        self.start()
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.stop()

    def _resolve_properties(self) -> Optional[Dict[str, Any]]:
        src = self.properties
        if callable(src):
            return src()
        return dict(src) if src else None

    def _loop(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval_seconds):
            try:
                self.analytics.track(self.event, self._resolve_properties())
                self.ticks += 1
            except Exception as e:  # noqa: BLE001
                self.logger.warning(f"Progress event '{self.event}' failed: {e}")
