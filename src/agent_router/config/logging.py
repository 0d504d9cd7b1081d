"""
logging.py - Global logging configuration

Structured logging for the agent router with ANSI colors:
- Color-coded log levels (DEBUG=gray, INFO=green, WARNING=yellow, ERROR=red)
- Logger name visible
- Structured key=value pairs rendered after the message

Example output:
    2026-01-21 10:30:45 [INFO    ] agent_router.router: Router ready agents=12 cache_hit=True
    2026-01-21 10:30:45 [WARNING ] agent_router.cache.client: Cache write failed build_id=3f9a...

Usage:
    from agent_router.config.logging import configure_logging, get_logger
    configure_logging(level="INFO")
    logger = get_logger("agent_router.my_module")
    logger.info("Index built", agents=12)
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Any

import structlog


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BRIGHT_BLACK = "\033[90m"


LOG_COLORS = {
    "DEBUG": f"{Colors.BRIGHT_BLACK}{Colors.DIM}",
    "INFO": Colors.GREEN,
    "WARNING": Colors.YELLOW,
    "ERROR": f"{Colors.RED}{Colors.BOLD}",
    "CRITICAL": f"{Colors.RED}{Colors.BOLD}",
}

_RESERVED_KEYS = ("logger", "logger_name", "event", "level", "timestamp", "_colors")


def format_log(
    _logger: Any,
    _method_name: str,
    event_dict: dict[str, Any],
) -> str:
    """Render a structlog event dict as a single line.

    Args:
        _logger: The logger instance (unused)
        _method_name: The log method name (info, error, etc.)
        event_dict: The event dictionary containing event and other data

    Returns:
        Formatted log string, colored when colors are enabled
    """
    colors = event_dict.pop("_colors", None)
    if colors is None:
        colors = _force_colors

    msg = str(event_dict.get("event", ""))
    if not colors:
        return _format_plain(_method_name, msg, event_dict)
    return _format_rich(_method_name, msg, event_dict)


def _extra_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in _RESERVED_KEYS}


def _format_rich(level: str, msg: str, data: dict[str, Any]) -> str:
    level_upper = level.upper()
    color = LOG_COLORS.get(level_upper, "")
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    parts = [
        f"{Colors.BRIGHT_BLACK}{timestamp}{Colors.RESET}",
        f"{color}[{level_upper:<8}]{Colors.RESET}",
    ]
    logger_name = data.get("logger", "") or data.get("logger_name", "")
    if logger_name:
        parts.append(f"{Colors.CYAN}{logger_name}:{Colors.RESET}")
    parts.append(msg)

    for key, value in _extra_fields(data).items():
        parts.append(f"{Colors.MAGENTA}{key}={Colors.RESET}{Colors.GREEN}{value}{Colors.RESET}")

    return " ".join(parts)


def _format_plain(level: str, msg: str, data: dict[str, Any]) -> str:
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    parts = [f"{timestamp} [{level.upper():<8}]"]

    logger_name = data.get("logger", "") or data.get("logger_name", "")
    if logger_name:
        parts.append(f"{logger_name}:")
    parts.append(msg)

    extra = _extra_fields(data)
    if extra:
        parts.append(" ".join(f"{k}={v}" for k, v in extra.items()))

    return " ".join(parts)


def _setup_log_filters(level: int) -> None:
    """Keep aiohttp internals quiet unless debugging."""
    noisy_loggers = [
        ("aiohttp.access", logging.WARNING),
        ("aiohttp.client", logging.WARNING if level > logging.DEBUG else logging.INFO),
        ("aiohttp.server", logging.WARNING),
    ]
    for logger_name, log_lvl in noisy_loggers:
        logging.getLogger(logger_name).setLevel(log_lvl)


_configured = False
_force_colors = False
_level = logging.INFO


def configure_logging(
    level: str = "INFO",
    colors: bool | None = None,
    verbose: bool = False,
    force: bool = False,
) -> None:
    """Configure global logging with structured output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        colors: Enable ANSI colors. If None, auto-detect from TTY.
        verbose: Enable verbose mode (DEBUG level)
        force: Force reconfiguration even if already configured
    """
    global _configured, _force_colors, _level

    if _configured and not force:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    if verbose:
        log_level = logging.DEBUG
    _level = log_level

    if colors is None:
        colors = sys.stderr.isatty()
    _force_colors = colors

    root_logger = logging.getLogger()
    root_logger.handlers = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            format_log,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True
    _setup_log_filters(log_level)


def get_logger(name: str = "agent_router") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (usually the dotted module path)

    Returns:
        BoundLogger instance for structured logging
    """
    return structlog.get_logger(name)


def is_verbose() -> bool:
    """Check if DEBUG level logging is enabled."""
    return _level <= logging.DEBUG


__all__ = [
    "Colors",
    "configure_logging",
    "format_log",
    "get_logger",
    "is_verbose",
]
