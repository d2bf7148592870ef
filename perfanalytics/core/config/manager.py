from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from perfanalytics.core.config.io import atomic_write_json, backup_file, quarantine_corrupt, read_json_file
from perfanalytics.core.config.models import AppConfig
from perfanalytics.core.config.paths import ConfigFsPaths
from perfanalytics.core.errors import ConfigError


# env var -> (section, key); None section means top level
ENV_OVERRIDES: Dict[str, tuple] = {
    "PERFANALYTICS_TOKEN": ("http", "token"),
    "PERFANALYTICS_ENDPOINT": ("http", "endpoint"),
    "PERFANALYTICS_SINK": ("analytics", "sink"),
    "PERFANALYTICS_APP_VERSION": (None, "app_version"),
}


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False, environ: Optional[Dict[str, str]] = None):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._environ = environ if environ is not None else os.environ
        self._cfg: Optional[AppConfig] = None
        self._raw_last: Dict[str, Any] = {}

    # ---------- public API ----------
    def load(self) -> AppConfig:
        raw = self._load_raw()
        merged = self._apply_env(raw)
        try:
            cfg = AppConfig.model_validate(merged)
        except PydanticValidationError as e:
            raise ConfigError("Invalid perfanalytics.json.", path=self.fs.app, errors=_summarize(e)) from e
        self._cfg = cfg
        self._raw_last = dict(raw)
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, data: Dict[str, Any]) -> AppConfig:
        """Validate, back up the previous file, write atomically, reload."""
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        try:
            AppConfig.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError("Refusing to save invalid config.", errors=_summarize(e)) from e
        backup_file(self.fs.app, self.fs.backups_dir, reason="prewrite")
        atomic_write_json(self.fs.app, data)
        return self.load()

    def reload_if_changed(self) -> bool:
        """Reload when the file changed on disk; an invalid file keeps the previous config."""
        if self._cfg is None:
            return False
        rr = read_json_file(self.fs.app)
        if not rr.ok or rr.data == self._raw_last:
            return False
        try:
            cfg = AppConfig.model_validate(self._apply_env(rr.data))
        except PydanticValidationError as e:
            if self.logger:
                self.logger.warning(f"Config reload rejected (keeping previous): {e.error_count()} error(s)")
            return False
        self._cfg = cfg
        self._raw_last = dict(rr.data)
        if self.logger:
            self.logger.info("Config reloaded.")
        return True

    # ---------- internals ----------
    def _load_raw(self) -> Dict[str, Any]:
        rr = read_json_file(self.fs.app)
        if rr.ok:
            return rr.data
        if rr.error == "missing":
            defaults = AppConfig().model_dump(mode="json")
            if not self.read_only:
                atomic_write_json(self.fs.app, defaults)
                if self.logger:
                    self.logger.info(f"Wrote default config to {self.fs.app}")
            return defaults
        # corrupt or not an object: move aside and continue on defaults
        moved = None if self.read_only else quarantine_corrupt(self.fs.app, self.fs.backups_dir)
        if self.logger:
            self.logger.warning(f"Config unreadable ({rr.error}); using defaults. Moved to: {moved}")
        defaults = AppConfig().model_dump(mode="json")
        if not self.read_only:
            atomic_write_json(self.fs.app, defaults)
        return defaults

    def _apply_env(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {k: (dict(v) if isinstance(v, dict) else v) for k, v in raw.items()}
        for var, (section, key) in ENV_OVERRIDES.items():
            val = self._environ.get(var)
            if val is None or val == "":
                continue
            if section is None:
                out[key] = val
                continue
            sec = out.get(section)
            if not isinstance(sec, dict):
                sec = {}
            sec[key] = val
            out[section] = sec
        return out


def _summarize(e: PydanticValidationError) -> list:
    return [{"loc": ".".join(str(p) for p in err.get("loc", ())), "msg": err.get("msg", "")} for err in e.errors()]


def get_config(root: str = ".", *, logger=None, read_only: bool = False) -> ConfigManager:
    cm = ConfigManager(fs=ConfigFsPaths(root=root), logger=logger, read_only=read_only)
    cm.load()
    return cm
