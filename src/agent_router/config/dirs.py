"""
Project Directory Utilities - Centralized project directory handling.

Provides access to the PRJ_SPEC directories:
- PRJ_CONFIG_HOME: .config
- PRJ_CACHE_HOME: .cache
- PRJ_DATA_HOME: .data

Usage:
    from agent_router.config.dirs import PRJ_DIRS, PRJ_CONFIG, PRJ_CACHE

    PRJ_DIRS.config_home / "settings.yaml"     # -> /project/.config/settings.yaml
    PRJ_CONFIG("agent-router", "settings.yaml")  # -> /project/.config/agent-router/settings.yaml
    PRJ_CACHE("embeddings")                    # -> /project/.cache/embeddings

Environment Variables:
    PRJ_ROOT=/path/to/project   (default: current working directory)
    PRJ_CONFIG_HOME=.config
    PRJ_CACHE_HOME=.cache
    PRJ_DATA_HOME=.data
"""

import os
from pathlib import Path
from typing import Literal

_PRJ_SPECS: dict[str, tuple[str, str]] = {
    "config_home": ("PRJ_CONFIG_HOME", ".config"),
    "cache_home": ("PRJ_CACHE_HOME", ".cache"),
    "data_home": ("PRJ_DATA_HOME", ".data"),
}


def get_project_root() -> Path:
    """Return $PRJ_ROOT, falling back to the current working directory."""
    root = os.environ.get("PRJ_ROOT")
    return Path(root) if root else Path.cwd()


class _PrjDirsCallable:
    """Callable that returns project directory paths based on PRJ_SPEC env vars."""

    _cached_dirs: dict[str, Path] = {}

    def _get_dir(self, name: str) -> Path:
        if name in self._cached_dirs:
            return self._cached_dirs[name]

        env_key, default = _PRJ_SPECS[name]
        dir_path = Path(os.environ.get(env_key, default))
        if not dir_path.is_absolute():
            dir_path = get_project_root() / dir_path
        self._cached_dirs[name] = dir_path
        return dir_path

    def __getattr__(self, name: str) -> Path:
        if name in _PRJ_SPECS:
            return self._get_dir(name)
        raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __call__(
        self,
        subdir: str,
        *more_parts: str,
        category: Literal["config", "cache", "data"] = "data",
    ) -> Path:
        """Get path for a subdirectory in a specific category."""
        path = self._get_dir(f"{category}_home") / subdir
        for part in more_parts:
            path = path / part
        return path

    def clear_cache(self) -> None:
        """Forget resolved directories (env vars may have changed)."""
        self._cached_dirs.clear()


class _CategoryDir:
    """Shortcut bound to one PRJ_SPEC category."""

    def __init__(self, category: Literal["config", "cache", "data"]):
        self._category = category

    def __call__(self, subdir: str, *more_parts: str) -> Path:
        return PRJ_DIRS(subdir, *more_parts, category=self._category)


PRJ_DIRS = _PrjDirsCallable()
PRJ_CONFIG = _CategoryDir("config")
PRJ_CACHE = _CategoryDir("cache")
PRJ_DATA = _CategoryDir("data")

__all__ = [
    "PRJ_CACHE",
    "PRJ_CONFIG",
    "PRJ_DATA",
    "PRJ_DIRS",
    "get_project_root",
]
