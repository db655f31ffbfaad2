"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
(or the file named by the NABHA_CONFIG environment variable), falling
back to built-in defaults.

Usage:
    from nabha.config.app_config import load_app_config

    config = load_app_config()
    print(config.sync.api_base_url)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")
CONFIG_ENV_VAR = "NABHA_CONFIG"


@dataclass
class SyncConfig:
    """Client-side offline sync settings."""

    api_base_url: str = "http://localhost:5000/api"
    offline_db_path: str = "data/state/offline.db"
    request_timeout: float = 30.0
    session_cookie_name: str = "connect.sid"
    session_cookie_env: str | None = "NABHA_SESSION_COOKIE"
    start_online: bool = True

    def get_session_cookie(self) -> str | None:
        """Get session cookie value from environment variable."""
        if self.session_cookie_env:
            return os.environ.get(self.session_cookie_env)
        return None


@dataclass
class ServerConfig:
    """Remote API settings."""

    db_path: str = "data/state/server.db"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    sync: SyncConfig = field(default_factory=SyncConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "sync": {
            "api_base_url": "http://localhost:5000/api",
            "offline_db_path": "data/state/offline.db",
            "request_timeout": 30.0,
            "session_cookie_name": "connect.sid",
            "session_cookie_env": "NABHA_SESSION_COOKIE",
            "start_online": True,
        },
        "server": {
            "db_path": "data/state/server.db",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    sync_data = {**defaults["sync"], **(data.get("sync") or {})}
    sync = SyncConfig(
        api_base_url=str(sync_data["api_base_url"]).rstrip("/"),
        offline_db_path=str(sync_data["offline_db_path"]),
        request_timeout=float(sync_data["request_timeout"]),
        session_cookie_name=str(sync_data["session_cookie_name"]),
        session_cookie_env=sync_data.get("session_cookie_env"),
        start_online=bool(sync_data["start_online"]),
    )

    server_data = {**defaults["server"], **(data.get("server") or {})}
    server = ServerConfig(db_path=str(server_data["db_path"]))

    return AppConfig(sync=sync, server=server)


def get_config_path() -> Path:
    """Resolve the config file path, honoring NABHA_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return CONFIG_FILE


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    config_path = get_config_path()
    data: dict[str, Any]

    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config", missing=str(config_path))
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
