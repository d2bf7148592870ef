"""
Property value filtering.

Analytics backends accept a narrow set of JSON-ish types. Values outside that
set are dropped from the payload rather than failing the whole event.
"""

from __future__ import annotations

import datetime as _dt
import math
from typing import Any, Dict, Mapping, Optional

_DROP = object()


def _clean(v: Any) -> Any:
    if v is None or isinstance(v, (str, bool, int)):
        return v
    if isinstance(v, float):
        return v if math.isfinite(v) else _DROP
    if isinstance(v, (_dt.datetime, _dt.date)):
        return v.isoformat()
    if isinstance(v, (list, tuple)):
        return [x for x in (_clean(i) for i in v) if x is not _DROP]
    if isinstance(v, Mapping):
        return supported_properties(v)
    return _DROP


def supported_properties(props: Mapping[Any, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in props.items():
        if not isinstance(k, str):
            continue
        cleaned = _clean(v)
        if cleaned is _DROP:
            continue
        out[k] = cleaned
    return out


def merge_properties(base: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Shallow merge; keys in `overrides` win."""
    out = dict(base)
    if overrides:
        out.update(overrides)
    return out
