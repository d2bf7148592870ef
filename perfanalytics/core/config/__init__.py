from perfanalytics.core.config.manager import ConfigManager, get_config
from perfanalytics.core.config.models import AppConfig
from perfanalytics.core.config.paths import ConfigFsPaths

__all__ = ["AppConfig", "ConfigFsPaths", "ConfigManager", "get_config"]
