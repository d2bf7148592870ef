from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ThermalState(IntEnum):
    nominal = 0
    fair = 1
    serious = 2
    critical = 3


class BatteryState(str, Enum):
    unknown = "unknown"
    unplugged = "unplugged"
    charging = "charging"
    full = "full"


@dataclass(frozen=True)
class MemoryUsage:
    used: int
    total: int
    used_mb: float

    @classmethod
    def zero(cls) -> "MemoryUsage":
        return cls(used=0, total=0, used_mb=0.0)


@dataclass(frozen=True)
class StorageInfo:
    free: int
    total: int

    @classmethod
    def zero(cls) -> "StorageInfo":
        return cls(free=0, total=0)


@dataclass(frozen=True)
class BatteryInfo:
    level: float  # 0.0-1.0, -1.0 when unknown
    state: BatteryState

    @classmethod
    def zero(cls) -> "BatteryInfo":
        return cls(level=-1.0, state=BatteryState.unknown)


class MetricsSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    thermal_state: int = Field(default=0, ge=0, le=3)
    cpu_usage_percent: float = 0.0
    memory_usage_mb: float = 0.0
    memory_total_mb: int = 0
    battery_level: float = -1.0
    battery_state: str = BatteryState.unknown.value
    is_low_power_mode: bool = False
    timestamp: str
    app_version: str = "unknown"

    def as_properties(self) -> Dict[str, Any]:
        return self.model_dump()
