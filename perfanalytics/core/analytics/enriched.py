from __future__ import annotations

import threading
import uuid
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from perfanalytics.core.analytics.models import AnalyticsEvent, ProfileUpdate
from perfanalytics.core.analytics.service import AnalyticsService
from perfanalytics.core.analytics.sinks import AnalyticsSink
from perfanalytics.core.analytics.values import merge_properties, supported_properties
from perfanalytics.core.config.models import AnalyticsConfig
from perfanalytics.core.errors import SinkError, ValidationError
from perfanalytics.core.logger import get_logger

_log = get_logger("analytics")


class EnrichedAnalyticsService(AnalyticsService):
    """
    AnalyticsService that attaches a fresh performance snapshot to every event.

    Caller-supplied properties win over sampled metrics on key collisions.
    When a poller is given and `cache_max_age_seconds` > 0, a recent polled
    record is reused instead of sampling on the calling thread.
    """

    def __init__(self, *, sink: AnalyticsSink, performance: Any, cfg: Optional[AnalyticsConfig] = None, poller: Any = None, logger=None):
        self.sink = sink
        self.performance = performance
        self.cfg = cfg or AnalyticsConfig()
        self.poller = poller
        self.logger = logger or _log
        self._lock = threading.Lock()
        self._anon_id = uuid.uuid4().hex
        self._distinct_id = self._anon_id

    @property
    def distinct_id(self) -> str:
        with self._lock:
            return self._distinct_id

    # ---- AnalyticsService ----
    def track(self, event: str, properties: Optional[Dict[str, Any]] = None) -> None:
        if not self.cfg.enabled:
            return
        enriched = merge_properties(self._current_metrics(), properties)
        try:
            ev = AnalyticsEvent(event=event, distinct_id=self.distinct_id, properties=supported_properties(enriched))
        except PydanticValidationError as e:
            raise ValidationError("Event name is required.", event=event) from e
        self._deliver("track", lambda: self.sink.track(ev), event=ev.event)

    def identify(self, user_id: str) -> None:
        if not self.cfg.enabled:
            return
        user_id = _require_user_id(user_id)
        with self._lock:
            anon = self._anon_id
            self._distinct_id = user_id
        self._deliver("identify", lambda: self.sink.identify(user_id, anon))

    def identify_user(self, user_id: str, properties: Dict[str, Any]) -> None:
        if not self.cfg.enabled:
            return
        self.identify(user_id)
        props = merge_properties(self.performance.get_storage_user_properties(), properties)
        self._people_set(props)

    def set_user_properties(self, properties: Dict[str, Any]) -> None:
        if not self.cfg.enabled:
            return
        props = merge_properties(self._current_metrics(), properties)
        self._people_set(props)

    # ---- extras ----
    def reset(self) -> None:
        """Forget the identified user and start a new anonymous id."""
        with self._lock:
            self._anon_id = uuid.uuid4().hex
            self._distinct_id = self._anon_id

    def flush(self) -> None:
        self._deliver("flush", self.sink.flush)

    def close(self) -> None:
        self._deliver("close", self.sink.close)

    # ---- internals ----
    def _current_metrics(self) -> Dict[str, Any]:
        max_age = float(self.cfg.cache_max_age_seconds)
        if self.poller is not None and max_age > 0:
            cached = self.poller.latest(max_age_seconds=max_age)
            if cached is not None:
                return cached
        return dict(self.performance.get_all_metrics())

    def _people_set(self, props: Dict[str, Any]) -> None:
        update = ProfileUpdate(distinct_id=self.distinct_id, properties=supported_properties(props))
        self._deliver("people_set", lambda: self.sink.people_set(update))

    def _deliver(self, op: str, fn, **ctx: Any) -> None:
        try:
            fn()
        except SinkError as e:
            self.logger.error(f"Analytics {op} failed via {self.sink.name}: {e.user_message}")
            e.context.update(ctx)
            raise


def _require_user_id(user_id: str) -> str:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValidationError("User id is required.")
    return uid
