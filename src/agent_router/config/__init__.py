"""
agent_router.config - Settings, directories and logging.

Usage:
    from agent_router.config import get_setting, configure_logging, get_logger
"""

from .dirs import PRJ_CACHE, PRJ_CONFIG, PRJ_DIRS, get_project_root
from .logging import configure_logging, get_logger
from .settings import Settings, get_setting, get_settings

__all__ = [
    "PRJ_CACHE",
    "PRJ_CONFIG",
    "PRJ_DIRS",
    "Settings",
    "configure_logging",
    "get_logger",
    "get_project_root",
    "get_setting",
    "get_settings",
]
