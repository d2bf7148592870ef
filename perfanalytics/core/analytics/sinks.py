from __future__ import annotations

import json
import os
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import requests

from perfanalytics.core.analytics.models import AnalyticsEvent, ProfileUpdate
from perfanalytics.core.config.models import AnalyticsConfig, HttpSinkConfig, SinkKind
from perfanalytics.core.config.paths import ConfigFsPaths
from perfanalytics.core.errors import ConfigError, SinkClosedError, SinkError
from perfanalytics.core.logger import get_logger

_log = get_logger("sinks")


class AnalyticsSink:
    """Destination for enriched events and profile updates."""

    name = "base"

    def __init__(self) -> None:
        self._closed = False

    def track(self, event: AnalyticsEvent) -> None:
        raise NotImplementedError

    def people_set(self, update: ProfileUpdate) -> None:
        raise NotImplementedError

    def identify(self, distinct_id: str, anon_id: Optional[str] = None) -> None:
        return

    def flush(self) -> None:
        return

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.flush()
        finally:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SinkClosedError(sink=self.name)


class MemorySink(AnalyticsSink):
    name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self.events: List[AnalyticsEvent] = []
        self.profiles: List[ProfileUpdate] = []
        self.identities: List[Dict[str, Optional[str]]] = []

    def track(self, event: AnalyticsEvent) -> None:
        self._ensure_open()
        with self._lock:
            self.events.append(event)

    def people_set(self, update: ProfileUpdate) -> None:
        self._ensure_open()
        with self._lock:
            self.profiles.append(update)

    def identify(self, distinct_id: str, anon_id: Optional[str] = None) -> None:
        self._ensure_open()
        with self._lock:
            self.identities.append({"distinct_id": distinct_id, "anon_id": anon_id})


class JsonlSink(AnalyticsSink):
    """Appends one JSON line per record to a local file."""

    name = "jsonl"

    def __init__(self, path: str, *, keep_last: int = 200):
        super().__init__()
        self.path = path
        self._lock = threading.Lock()
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=max(1, int(keep_last)))

    def track(self, event: AnalyticsEvent) -> None:
        self._write({"kind": "event", **event.model_dump()})

    def people_set(self, update: ProfileUpdate) -> None:
        self._write({"kind": "profile", **update.model_dump()})

    def identify(self, distinct_id: str, anon_id: Optional[str] = None) -> None:
        self._write({"kind": "identify", "distinct_id": distinct_id, "anon_id": anon_id})

    def recent(self, n: int = 20) -> List[Dict[str, Any]]:
        with self._lock:
            if int(n) <= 0:
                return []
            return list(self._recent)[: int(n)]

    def _write(self, rec: Dict[str, Any]) -> None:
        self._ensure_open()
        line = json.dumps(rec, ensure_ascii=False)
        with self._lock:
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                raise SinkError("Unable to write analytics log.", path=self.path, error=str(e)) from e
            self._recent.appendleft(rec)


class HttpSink(AnalyticsSink):
    """
    Batches records and POSTs them as JSON arrays to a Mixpanel-compatible
    ingestion API (`/track` for events, `/engage` for profile updates).

    A failed batch is dropped and reported as SinkError; there is no retry.
    """

    name = "http"

    def __init__(self, cfg: HttpSinkConfig, *, session: Optional[requests.Session] = None, logger=None):
        super().__init__()
        if not cfg.token:
            raise ConfigError("HTTP analytics sink requires a project token.", sink=self.name)
        self.cfg = cfg
        self.logger = logger or _log
        self._session = session or requests.Session()
        self._lock = threading.Lock()
        self._events: List[Dict[str, Any]] = []
        self._profiles: List[Dict[str, Any]] = []

    def track(self, event: AnalyticsEvent) -> None:
        self._ensure_open()
        props = dict(event.properties)
        props.update({
            "token": self.cfg.token,
            "distinct_id": event.distinct_id,
            "time": int(event.time * 1000),
            "$insert_id": event.insert_id,
        })
        self._enqueue(self._events, {"event": event.event, "properties": props}, "/track")

    def people_set(self, update: ProfileUpdate) -> None:
        self._ensure_open()
        body = {"$token": self.cfg.token, "$distinct_id": update.distinct_id, "$set": dict(update.properties)}
        self._enqueue(self._profiles, body, "/engage")

    def identify(self, distinct_id: str, anon_id: Optional[str] = None) -> None:
        self._ensure_open()
        if not anon_id or anon_id == distinct_id:
            return
        # link the anonymous history to the identified user
        ev = {"event": "$identify", "properties": {"token": self.cfg.token, "distinct_id": distinct_id, "$identified_id": distinct_id, "$anon_id": anon_id}}
        self._enqueue(self._events, ev, "/track")

    def flush(self) -> None:
        with self._lock:
            events, self._events = self._events, []
            profiles, self._profiles = self._profiles, []
        errors: List[SinkError] = []
        for path, batch in (("/track", events), ("/engage", profiles)):
            if not batch:
                continue
            try:
                self._post(path, batch)
            except SinkError as e:
                errors.append(e)
        if errors:
            raise errors[0]

    def close(self) -> None:
        try:
            super().close()
        finally:
            self._session.close()

    def _enqueue(self, queue: List[Dict[str, Any]], rec: Dict[str, Any], path: str) -> None:
        with self._lock:
            queue.append(rec)
            if len(queue) < int(self.cfg.batch_size):
                return
            batch = list(queue)
            queue.clear()
        self._post(path, batch)

    def _post(self, path: str, batch: List[Dict[str, Any]]) -> None:
        url = f"{self.cfg.endpoint}{path}"
        try:
            r = self._session.post(url, json=batch, timeout=float(self.cfg.timeout_seconds))
        except requests.RequestException as e:
            self.logger.warning(f"Analytics POST {path} failed: {e}")
            raise SinkError("Analytics endpoint unreachable.", path=path, dropped=len(batch), error=str(e)) from e
        if not (200 <= r.status_code < 300):
            self.logger.warning(f"Analytics POST {path} rejected: HTTP {r.status_code}")
            raise SinkError("Analytics endpoint rejected the batch.", path=path, dropped=len(batch), status=r.status_code)
        self.logger.debug(f"Analytics POST {path}: {len(batch)} record(s)")


def build_sink(cfg: AnalyticsConfig, *, http_cfg: Optional[HttpSinkConfig] = None, root: str = ".", logger=None) -> AnalyticsSink:
    if cfg.sink == SinkKind.memory:
        return MemorySink()
    if cfg.sink == SinkKind.jsonl:
        return JsonlSink(ConfigFsPaths(root).resolve(cfg.jsonl_path), keep_last=int(cfg.keep_recent))
    if cfg.sink == SinkKind.http:
        return HttpSink(http_cfg or HttpSinkConfig(), logger=logger)
    raise ConfigError(f"Unknown analytics sink: {cfg.sink}")
