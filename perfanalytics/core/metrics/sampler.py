"""
Host performance sampling.

Every query is best effort: a failing OS call yields the zero default for that
metric and never raises out of the service.
"""

from __future__ import annotations

import os
import shutil
import threading
import time
from importlib import metadata
from typing import Any, Dict, Optional

import psutil

from perfanalytics.core.config.models import SamplerConfig
from perfanalytics.core.logger import get_logger
from perfanalytics.core.metrics.models import BatteryInfo, BatteryState, MemoryUsage, MetricsSnapshot, StorageInfo, ThermalState

_MB = 1024 * 1024
_GB = 1024 * 1024 * 1024

PLATFORM_PROFILE_PATH = "/sys/firmware/acpi/platform_profile"

_log = get_logger("metrics")


class SystemPerformanceService:
    def __init__(
        self,
        *,
        cfg: Optional[SamplerConfig] = None,
        app_version: Optional[str] = None,
        logger=None,
        ps: Any = psutil,
        clock=time.time,
        platform_profile_path: str = PLATFORM_PROFILE_PATH,
    ):
        self.cfg = cfg or SamplerConfig()
        self.app_version = app_version or _installed_version()
        self.logger = logger or _log
        self._ps = ps
        self._clock = clock
        self._platform_profile_path = platform_profile_path
        self._proc = None
        try:
            self._proc = ps.Process(os.getpid())
            # prime cpu_percent
            self._proc.cpu_percent(interval=None)
        except Exception:
            self._proc = None

    # ---- individual metrics ----
    def get_thermal_state(self) -> ThermalState:
        if not self.cfg.enable_sensors:
            return ThermalState.nominal
        try:
            temps = self._ps.sensors_temperatures()
        except Exception:
            return ThermalState.nominal
        if not temps:
            return ThermalState.nominal
        worst = ThermalState.nominal
        for readings in temps.values():
            for r in readings:
                worst = max(worst, _rate_reading(r, self.cfg.fair_margin_celsius))
        return worst

    def get_cpu_usage(self) -> float:
        """CPU percent of this process across all of its threads; can exceed 100 on multi-core hosts."""
        if self._proc is None:
            return 0.0
        try:
            pct = float(self._proc.cpu_percent(interval=None))
        except Exception:
            return 0.0
        self.logger.debug("cpu usage: %.2f%%", pct)
        return pct

    def get_memory_usage(self) -> MemoryUsage:
        if self._proc is None:
            return MemoryUsage.zero()
        try:
            used = int(self._proc.memory_info().rss)
            total = int(self._ps.virtual_memory().total)
        except Exception:
            return MemoryUsage.zero()
        used_mb = used / _MB
        self.logger.debug("memory usage: %.2f MB", used_mb)
        return MemoryUsage(used=used, total=total, used_mb=used_mb)

    def get_storage_info(self) -> StorageInfo:
        try:
            usage = shutil.disk_usage(self.cfg.storage_path)
        except (OSError, ValueError, TypeError):
            return StorageInfo.zero()
        return StorageInfo(free=int(usage.free), total=int(usage.total))

    def get_battery_info(self) -> BatteryInfo:
        if not self.cfg.enable_sensors:
            return BatteryInfo.zero()
        try:
            batt = self._ps.sensors_battery()
        except Exception:
            return BatteryInfo.zero()
        if batt is None:
            return BatteryInfo.zero()
        try:
            percent = float(batt.percent)
        except (TypeError, ValueError):
            return BatteryInfo.zero()
        plugged = batt.power_plugged
        if plugged is None:
            state = BatteryState.unknown
        elif plugged and percent >= 100.0:
            state = BatteryState.full
        elif plugged:
            state = BatteryState.charging
        else:
            state = BatteryState.unplugged
        return BatteryInfo(level=max(0.0, min(1.0, percent / 100.0)), state=state)

    def is_low_power_mode(self) -> bool:
        if self.cfg.low_power_override is not None:
            return bool(self.cfg.low_power_override)
        try:
            with open(self._platform_profile_path, "r", encoding="utf-8") as f:
                profile = f.read().strip().lower()
        except (OSError, UnicodeDecodeError):
            return False
        return profile in {p.lower() for p in self.cfg.low_power_profiles}

    # ---- aggregates ----
    def get_storage_user_properties(self) -> Dict[str, Any]:
        info = self.get_storage_info()
        return {
            "storage_free_gb": round(info.free / _GB, 2),
            "storage_total_gb": round(info.total / _GB, 2),
        }

    def snapshot(self) -> MetricsSnapshot:
        thermal = self.get_thermal_state()
        cpu = self.get_cpu_usage()
        mem = self.get_memory_usage()
        batt = self.get_battery_info()
        return MetricsSnapshot(
            thermal_state=int(thermal),
            cpu_usage_percent=round(cpu, 2),
            memory_usage_mb=round(mem.used_mb, 2),
            memory_total_mb=int(mem.total // _MB),
            battery_level=round(batt.level, 2),
            battery_state=batt.state.value,
            is_low_power_mode=self.is_low_power_mode(),
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self._clock())),
            app_version=self.app_version,
        )

    def get_all_metrics(self) -> Dict[str, Any]:
        return self.snapshot().as_properties()


def _rate_reading(r: Any, fair_margin: float) -> ThermalState:
    current = getattr(r, "current", None)
    if current is None:
        return ThermalState.nominal
    high = getattr(r, "high", None)
    critical = getattr(r, "critical", None)
    if critical and current >= critical:
        return ThermalState.critical
    if high and current >= high:
        return ThermalState.serious
    if high and current >= high - fair_margin:
        return ThermalState.fair
    return ThermalState.nominal


def _installed_version() -> str:
    try:
        return metadata.version("perfanalytics")
    except metadata.PackageNotFoundError:
        return "unknown"


_shared: Optional[SystemPerformanceService] = None
_shared_lock = threading.Lock()


def get_performance_service(**kwargs: Any) -> SystemPerformanceService:
    """Process-wide sampler; kwargs only apply on first construction."""
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = SystemPerformanceService(**kwargs)
        return _shared


def reset_performance_service() -> None:
    global _shared
    with _shared_lock:
        _shared = None
