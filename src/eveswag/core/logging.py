"""
eveswag logging - structured logging plus the client's log/report sinks.

The client never writes to a logger directly. Every component receives a
``log(level, *parts)`` callback and, where calls are counted, a
``report(event, operation_id)`` callback. The defaults defined here forward
log events to structlog and drop reports.

Architecture:
    ::

        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="INFO", json_format=None,          │
        │                   service="eveswag")                       │
        │     ↓                                                       │
        │ structlog processor chain:                                  │
        │   1. TimeStamper(iso)                                       │
        │   2. merge_contextvars / add_log_level                      │
        │   3. add_service_metadata                                   │
        │   4. JSONRenderer (or ConsoleRenderer when on a tty)        │
        └────────────────────────────────────────────────────────────┘

        log("info", "unexpected_method", "get_foo", "patch")
            → structlog_sink
            → logger.info("unexpected_method", details=["get_foo", "patch"])

Examples:
    >>> from eveswag.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", service="my-esi-tool")
    >>> logger = get_logger(__name__)
    >>> logger.info("spec_loaded", operations=195)

Tags:
    logging, structlog, observability, eveswag

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# (level, *parts) -> None
LogCallback = Callable[..., None]
# (event, operation_id) -> None, event is "direct" or "error"
ReportCallback = Callable[[str, str], None]

# Store service name for metadata
_SERVICE_NAME = "eveswag"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "eveswag",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


_sink_logger = get_logger("eveswag")


def structlog_sink(level: str, *parts: Any) -> None:
    """Default ``log`` callback.

    The first part becomes the structlog event, anything after it is kept
    under ``details``. Unknown levels are logged as info.
    """
    if not parts:
        return
    event, *details = parts
    method = getattr(_sink_logger, level, _sink_logger.info)
    if details:
        method(str(event), details=details)
    else:
        method(str(event))


def null_report(event: str, operation_id: str) -> None:
    """Default ``report`` callback: drops the event."""


__all__ = [
    "LogCallback",
    "ReportCallback",
    "configure_logging",
    "get_logger",
    "structlog_sink",
    "null_report",
]
