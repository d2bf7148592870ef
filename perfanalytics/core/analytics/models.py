from __future__ import annotations

import time
import uuid
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalyticsEvent(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    event: str
    distinct_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    time: float = Field(default_factory=lambda: time.time())
    insert_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    @field_validator("event")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("event name required")
        return v


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    distinct_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    time: float = Field(default_factory=lambda: time.time())
