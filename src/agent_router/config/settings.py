"""
Project Settings - Configuration Manager

Architecture (two-layer config):
- System: agent_router/config/settings.yaml (packaged defaults)
- User:   $PRJ_CONFIG_HOME/agent-router/settings.yaml (overrides)
- CLI flag `--conf` can set PRJ_CONFIG_HOME for a run.

get_setting() returns merged effective values. User layer overrides system layer.
"""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path
from typing import Any

import yaml

from .dirs import PRJ_CONFIG, PRJ_DIRS

APP_CONFIG_DIR = "agent-router"
SYSTEM_SETTINGS_PATH = Path(__file__).with_name("settings.yaml")


class Settings:
    """
    Unified Settings Manager.

    Logic:
    1. Parse `--conf` flag -> updates PRJ_CONFIG_HOME.
    2. Load system defaults from the packaged settings.yaml.
    3. Load user overrides from `$PRJ_CONFIG_HOME/agent-router/settings.yaml`.
    4. Merge User > Defaults.
    """

    _instance: Settings | None = None
    _instance_lock = threading.Lock()
    _loaded: bool = False

    def __new__(cls) -> Settings:
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        # Python calls __init__ on every Settings(); keep loaded data.
        if not hasattr(self, "_data"):
            self._data: dict[str, Any] = {}

    def _ensure_loaded(self) -> None:
        """Ensure settings are loaded (Thread-Safe)."""
        if not self._loaded:
            with self._instance_lock:
                if not self._loaded:
                    self._load()
                    self._loaded = True

    def _parse_cli_conf(self) -> str | None:
        """Extract --conf argument from sys.argv without consuming it."""
        args = sys.argv
        for i, arg in enumerate(args):
            if arg == "--conf" and i + 1 < len(args):
                return args[i + 1]
            if arg.startswith("--conf="):
                return arg.split("=", 1)[1]
        return None

    def _load(self) -> None:
        """Execute the Dual-Layer Loading Strategy."""
        PRJ_DIRS.clear_cache()

        cli_conf_dir = self._parse_cli_conf()
        if cli_conf_dir:
            os.environ["PRJ_CONFIG_HOME"] = cli_conf_dir
            PRJ_DIRS.clear_cache()

        defaults: dict[str, Any] = {}
        if SYSTEM_SETTINGS_PATH.exists():
            defaults = self._read_yaml(SYSTEM_SETTINGS_PATH)

        user_config: dict[str, Any] = {}
        user_settings_path = PRJ_CONFIG(APP_CONFIG_DIR, "settings.yaml")
        if user_settings_path.exists():
            user_config = self._read_yaml(user_settings_path)

        self._data = self._deep_merge(defaults, user_config)

    def _read_yaml(self, path: os.PathLike) -> dict[str, Any]:
        """Read a YAML mapping; unreadable or non-mapping files count as empty."""
        try:
            content = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(content) or {}
        except (OSError, yaml.YAMLError):
            return {}
        return data if isinstance(data, dict) else {}

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """
        Recursive deep merge of two dictionaries.
        Override values replace base values.
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value using dot notation (e.g., 'router.model_id')."""
        self._ensure_loaded()
        value: Any = self._data
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def reload(self) -> None:
        """Force reload settings."""
        with self._instance_lock:
            self._loaded = False
            self._load()
            self._loaded = True

    def get_section(self, section: str) -> dict[str, Any]:
        """Get an entire settings section."""
        self._ensure_loaded()
        return self._data.get(section, {})

    @property
    def conf_dir(self) -> str:
        """Get the active application configuration directory path."""
        return str(PRJ_CONFIG(APP_CONFIG_DIR))


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value directly."""
    return Settings().get(key, default)


def get_settings() -> Settings:
    """Get the Settings singleton (Useful for DI)."""
    return Settings()


__all__ = [
    "Settings",
    "get_setting",
    "get_settings",
]
