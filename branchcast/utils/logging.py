"""
Structured logging configuration using structlog.
Provides consistent, keyword-rich log events across the forecasting engine.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from branchcast import __version__
from branchcast.config import Settings, get_settings

ENGINE_NAME = "branchcast"


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add severity level for structured logging."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def add_engine_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the engine name and version; values bound by the caller win."""
    event_dict.setdefault("engine", ENGINE_NAME)
    event_dict.setdefault("engine_version", __version__)
    return event_dict


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the engine.

    JSON lines in production, console output in development. Logs go to
    stderr so the CLI report on stdout stays machine-readable.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        add_engine_context,
        add_severity,
    ]
    if settings.log_format == "json" and not settings.dev_mode:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
