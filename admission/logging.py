"""Structured logging setup.

Outputs structured logs to stdout using structlog.
- Development: human-readable console renderer with colors
- Testing/CI: JSON renderer for machine parsing

Modules log through ``structlog.get_logger(__name__)`` with key-value
context; call ``configure_logging`` once at application startup.

Usage:
    from admission.logging import configure_logging

    configure_logging(level="INFO", use_json=True)
"""

from __future__ import annotations

import logging
import sys

import structlog

from admission.settings import get_settings


def configure_logging(*, level: str | None = None, use_json: bool | None = None) -> None:
    """Configure structlog processors and output.

    Args:
        level: Minimum level name. Defaults to settings.log_level.
        use_json: JSON output when True, console output when False.
            Defaults to settings.log_json.
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    json_output = settings.log_json if use_json is None else use_json

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[level_name]
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
