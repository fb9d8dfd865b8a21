"""eveswag core -- errors, logging, settings and clock primitives.

Layer 1 of the client. Nothing here knows about Swagger documents or HTTP;
the Swagger and execution layers build on top of it.

    errors.py      EsiError taxonomy (error, server, esi_status, scope_missing)
    logging.py     structlog setup plus default log/report sinks
    settings.py    EveswagSettings (pydantic-settings, EVESWAG_* env vars)
    timestamps.py  Epoch-second clock helpers
"""

from eveswag.core.errors import (
    ConfigError,
    ErrorKind,
    EsiError,
    EsiStatusError,
    LockoutError,
    ParameterError,
    ScopeMissingError,
    ServerError,
    SpecNotLoadedError,
    SpecParseError,
)
from eveswag.core.logging import configure_logging, get_logger, null_report, structlog_sink
from eveswag.core.settings import EveswagSettings
from eveswag.core.timestamps import ManualClock, epoch

__all__ = [
    "ConfigError",
    "ErrorKind",
    "EsiError",
    "EsiStatusError",
    "LockoutError",
    "ParameterError",
    "ScopeMissingError",
    "ServerError",
    "SpecNotLoadedError",
    "SpecParseError",
    "configure_logging",
    "get_logger",
    "null_report",
    "structlog_sink",
    "EveswagSettings",
    "ManualClock",
    "epoch",
]
