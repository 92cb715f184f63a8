from .config import AppConfig, ConfigError, load_config
from .staging import StagingError, staged_upload

__all__ = ["AppConfig", "ConfigError", "load_config", "StagingError", "staged_upload"]
