from __future__ import annotations

from collections import namedtuple
from typing import Any, Dict, List, Optional

import requests

shwtemp = namedtuple("shwtemp", ["label", "current", "high", "critical"])
sbattery = namedtuple("sbattery", ["percent", "secsleft", "power_plugged"])
svmem = namedtuple("svmem", ["total", "available", "percent"])
pmem = namedtuple("pmem", ["rss", "vms"])

MB = 1024 * 1024


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._t = float(start)

    def time(self) -> float:
        return self._t

    __call__ = time

    def advance(self, seconds: float) -> None:
        self._t += float(seconds)


class FakeProcess:
    def __init__(self, owner: "FakePsutil"):
        self.owner = owner

    def cpu_percent(self, interval=None):  # noqa: ANN001
        if self.owner.fail_cpu:
            raise RuntimeError("cpu query failed")
        return self.owner.cpu

    def memory_info(self):
        if self.owner.fail_memory:
            raise RuntimeError("memory query failed")
        return pmem(rss=self.owner.rss, vms=self.owner.rss * 2)


class FakePsutil:
    """Duck-typed stand-in for the psutil module, injected via `ps=`."""

    def __init__(self):
        self.cpu = 12.346
        self.rss = 256 * MB
        self.total = 8192 * MB
        self.temps: Dict[str, List[shwtemp]] = {}
        self.battery: Optional[sbattery] = None
        self.fail_cpu = False
        self.fail_memory = False
        self.fail_sensors = False
        self.fail_process = False

    def Process(self, pid=None):  # noqa: N802, ANN001
        if self.fail_process:
            raise RuntimeError("no such process")
        return FakeProcess(self)

    def virtual_memory(self):
        if self.fail_memory:
            raise RuntimeError("memory query failed")
        return svmem(total=self.total, available=self.total - self.rss, percent=10.0)

    def sensors_temperatures(self):
        if self.fail_sensors:
            raise RuntimeError("sensors unavailable")
        return self.temps

    def sensors_battery(self):
        if self.fail_sensors:
            raise RuntimeError("sensors unavailable")
        return self.battery


class FakePerformance:
    """Minimal performance service returning a fixed record."""

    def __init__(self, record: Optional[Dict[str, Any]] = None, storage: Optional[Dict[str, Any]] = None):
        self.record = dict(record or {"thermal_state": 0, "cpu_usage_percent": 1.5, "battery_state": "unknown", "app_version": "1.0"})
        self.storage = dict(storage or {"storage_free_gb": 10.0, "storage_total_gb": 64.0})
        self.calls = 0

    def get_all_metrics(self) -> Dict[str, Any]:
        self.calls += 1
        return dict(self.record)

    def get_storage_user_properties(self) -> Dict[str, Any]:
        return dict(self.storage)


class FakeResponse:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code


class FakeSession:
    def __init__(self, status_code: int = 200, raise_exc: Optional[Exception] = None):
        self.status_code = status_code
        self.raise_exc = raise_exc
        self.posts: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, json=None, timeout=None):  # noqa: A002, ANN001
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        if self.raise_exc is not None:
            raise self.raise_exc
        return FakeResponse(self.status_code)

    def close(self) -> None:
        self.closed = True


def connection_error() -> Exception:
    return requests.ConnectionError("connection refused")
