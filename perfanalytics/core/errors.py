from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class PerfAnalyticsError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return f"{self.code}: {self.user_message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


class ConfigError(PerfAnalyticsError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ValidationError(PerfAnalyticsError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class SinkError(PerfAnalyticsError):
    def __init__(self, user_message: str = "Analytics delivery failed.", **ctx: Any):
        super().__init__("sink_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class SinkClosedError(PerfAnalyticsError):
    def __init__(self, user_message: str = "Analytics sink is closed.", **ctx: Any):
        super().__init__("sink_closed", user_message, severity=Severity.WARN, recoverable=False, context=ctx)
