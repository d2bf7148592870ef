from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SinkKind(str, Enum):
    memory = "memory"
    jsonl = "jsonl"
    http = "http"


class SamplerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    storage_path: str = "."
    enable_sensors: bool = True
    fair_margin_celsius: float = Field(default=10.0, ge=0.0, le=100.0)
    low_power_profiles: List[str] = Field(default_factory=lambda: ["low-power", "quiet", "power-saver"])
    low_power_override: Optional[bool] = None


class PollerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    interval_seconds: float = Field(default=5.0, gt=0.0)
    history_size: int = Field(default=120, ge=10, le=100_000)


class HttpSinkConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    endpoint: str = "https://api.mixpanel.com"
    token: str = ""
    timeout_seconds: float = Field(default=5.0, gt=0.0, le=120.0)
    batch_size: int = Field(default=50, ge=1, le=2000)

    @field_validator("endpoint")
    @classmethod
    def _http_url(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("endpoint must be an http(s) URL")
        return v.rstrip("/")


class AnalyticsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    sink: SinkKind = SinkKind.memory
    jsonl_path: str = "logs/analytics/events.jsonl"
    keep_recent: int = Field(default=200, ge=1)
    cache_max_age_seconds: float = Field(default=0.0, ge=0.0)


class ProgressConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    interval_seconds: float = Field(default=5.0, gt=0.0)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    log_dir: str = "logs"
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = str(v or "").strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return v


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config_version: int = Field(default=1, ge=1)
    app_version: Optional[str] = None
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
    poller: PollerConfig = Field(default_factory=PollerConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    http: HttpSinkConfig = Field(default_factory=HttpSinkConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
