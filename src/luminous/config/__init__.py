from .config import AppSettings, LoggingSettings
from .loader import load_settings

__all__ = ["AppSettings", "LoggingSettings", "load_settings"]
