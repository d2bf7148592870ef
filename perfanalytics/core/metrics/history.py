from __future__ import annotations

import math
import threading
from collections import deque
from typing import Any, Deque, Dict, Iterable, Tuple


class MetricsHistory:
    """
    Thread-safe rolling window of numeric samples per metric name.
    Memory is bounded by `max_samples` per metric.
    """

    def __init__(self, *, max_samples: int = 120):
        self.max_samples = max(10, int(max_samples))
        self._lock = threading.Lock()
        self._series: Dict[str, Deque[float]] = {}

    def reset(self) -> None:
        with self._lock:
            self._series.clear()

    def observe(self, name: str, value: float) -> None:
        v = float(value)
        with self._lock:
            if name not in self._series:
                self._series[name] = deque(maxlen=self.max_samples)
            self._series[name].append(v)

    def observe_record(self, record: Dict[str, Any]) -> None:
        for k, v in numeric_fields(record):
            self.observe(k, v)

    def values(self, name: str) -> list[float]:
        with self._lock:
            return list(self._series.get(name, ()))

    def summary(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            series = {k: list(v) for k, v in self._series.items()}
        return {k: _stats(v) for k, v in series.items()}


def numeric_fields(record: Dict[str, Any]) -> Iterable[Tuple[str, float]]:
    for k, v in record.items():
        # bools are ints in Python; they are flags, not measurements
        if isinstance(v, bool):
            continue
        if isinstance(v, (int, float)):
            yield k, float(v)


def _percentile(sorted_vals: list[float], p: float) -> float:
    if not sorted_vals:
        return float("nan")
    if p <= 0:
        return sorted_vals[0]
    if p >= 100:
        return sorted_vals[-1]
    k = (len(sorted_vals) - 1) * (p / 100.0)
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return sorted_vals[int(k)]
    return sorted_vals[int(f)] * (c - k) + sorted_vals[int(c)] * (k - f)


def _stats(samples: Iterable[float]) -> Dict[str, float]:
    xs = sorted(float(x) for x in samples)
    if not xs:
        return {"count": 0.0}
    count = float(len(xs))
    return {
        "count": count,
        "min": xs[0],
        "max": xs[-1],
        "avg": sum(xs) / count,
        "p50": _percentile(xs, 50),
        "p95": _percentile(xs, 95),
    }
