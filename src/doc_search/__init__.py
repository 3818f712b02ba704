"""Document search package."""

from .config import LoggingConfig, SearchConfig, Settings, StoreConfig

__all__ = ["LoggingConfig", "SearchConfig", "Settings", "StoreConfig"]
