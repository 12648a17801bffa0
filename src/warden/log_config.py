"""
Logging setup - structlog configuration for the CLI and API entry points.

Library modules only call structlog.get_logger(); configuring output is left
to whichever process embeds them.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "info", json_output: bool = False) -> None:
    """
    Configure structlog for the current process.

    Args:
        level: Minimum level name ("debug", "info", ...)
        json_output: Render JSON lines instead of the console format
    """
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        level_no = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
