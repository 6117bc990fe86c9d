from .loader import load_settings
from .schema import EngineConfig, LoggingConfig, PathsConfig, Settings

__all__ = ["EngineConfig", "LoggingConfig", "PathsConfig", "Settings", "load_settings"]
