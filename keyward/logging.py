"""Logging configuration using structlog.

Console output for development, JSON lines for log shipping. Every module
logs through ``structlog.get_logger()`` with dotted event names and
key-value context. Raw API keys must never be passed as log fields; use
``key_prefix`` or ``key_id`` instead.
"""

from __future__ import annotations

import logging

import structlog

from keyward.config import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog processors from settings."""
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )

    structlog.get_logger().debug(
        "logging.configured",
        level=logging.getLevelName(level),
        format=config.format,
    )
