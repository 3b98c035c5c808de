"""structlog configuration for the command line and services."""

import logging
import sys
from typing import Optional, TextIO

import structlog

from livro_core.exceptions import ConfigurationError

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render one JSON object per line instead of console output
        stream: Where log lines are written (default: stderr, keeping stdout
            free for command output)

    Raises:
        ConfigurationError: If the level name is unknown
    """
    level_name = level.upper().strip()
    if level_name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level: {level}",
            config_key="log_level",
            expected=", ".join(LOG_LEVELS),
            actual=level,
        )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVELS[level_name]),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )
