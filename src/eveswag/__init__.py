"""
eveswag - EVE Swagger Interface client compiled from the live spec.

Layers:
    core       errors, logging, settings, clock
    spec       Swagger document → normalized operations → category registry
    execution  health gate, parameter binding, retries, error-limit lockout
    client     EsiClient facade wiring it all together
"""

__version__ = "0.3.0"

from eveswag.client import EsiClient
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
from eveswag.core.logging import configure_logging
from eveswag.core.settings import EveswagSettings
from eveswag.execution.health import HealthStatus
from eveswag.execution.models import EsiResponse, RequestDescriptor
from eveswag.execution.transport import HttpxTransport

__all__ = [
    "__version__",
    "EsiClient",
    "EveswagSettings",
    "configure_logging",
    "HealthStatus",
    "EsiResponse",
    "RequestDescriptor",
    "HttpxTransport",
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
]
