"""Configuration package for nabha."""

from nabha.config.app_config import (
    AppConfig,
    ServerConfig,
    SyncConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "ServerConfig",
    "SyncConfig",
    "clear_config_cache",
    "load_app_config",
]
