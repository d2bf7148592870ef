from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S", time.gmtime())


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        if d:
            os.makedirs(d, exist_ok=True)


def read_json_file(path: str) -> ReadResult:
    """Read a JSON object; `error` is "missing", "not_object", "corrupt_json:..." or the OS error."""
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        return ReadResult(ok=False, data={}, error="missing")
    except OSError as e:
        return ReadResult(ok=False, data={}, error=str(e))
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    if not isinstance(obj, dict):
        return ReadResult(ok=False, data={}, error="not_object")
    return ReadResult(ok=True, data=obj)


def backup_file(path: str, backups_dir: str, *, reason: str, max_backups: int = 10) -> Optional[str]:
    """Copy `path` aside as `<name>.<ts>.<reason>.json`, keeping the newest `max_backups` of that reason."""
    if not os.path.isfile(path):
        return None
    ensure_dirs(backups_dir)
    name = os.path.basename(path)
    dst = os.path.join(backups_dir, f"{name}.{_ts()}.{reason}.json")
    try:
        shutil.copy2(path, dst)
    except OSError:
        return None
    suffix = f".{reason}.json"
    # timestamps sort lexically
    older = sorted(f for f in os.listdir(backups_dir) if f.startswith(name + ".") and f.endswith(suffix))
    for stale in older[: max(0, len(older) - int(max_backups))]:
        try:
            os.remove(os.path.join(backups_dir, stale))
        except FileNotFoundError:
            continue
    return dst


def atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    ensure_dirs(os.path.dirname(path))
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    finally:
        try:
            if os.path.exists(tmp):
                os.remove(tmp)
        except OSError:
            pass


def quarantine_corrupt(path: str, backups_dir: str) -> Optional[str]:
    """Move an unreadable config file aside so defaults can take its place."""
    if not os.path.exists(path):
        return None
    ensure_dirs(backups_dir)
    dst = os.path.join(backups_dir, f"{os.path.basename(path)}.{_ts()}.corrupt.json")
    try:
        shutil.move(path, dst)
    except OSError:
        return None
    return dst
