"""
Structured error types for the eveswag client.

Every failure that crosses the public API is an ``EsiError``. Callers only
ever need to look at two things: ``kind`` (one of the four short names the
client has always reported) and ``message`` (a human-readable description).

Manifesto:
    - **Small, closed taxonomy:** ``error``, ``server``, ``esi_status``,
      ``scope_missing``. Nothing else leaks out of a call.
    - **Typed subclasses:** ``except ScopeMissingError`` reads better than
      comparing strings, but ``kind`` stays available for logging.
    - **Error chaining:** wrapped exceptions are kept as ``cause`` and
      ``__cause__`` so tracebacks stay useful.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          EsiError                             │
        │                    (kind, message, cause)                     │
        ├──────────────────────────────────────────────────────────────┤
        │  kind=error          kind=server     kind=esi_status          │
        │  ─────────────       ───────────     ───────────────          │
        │  ConfigError         ServerError     EsiStatusError           │
        │  SpecParseError                                               │
        │  SpecNotLoadedError                  kind=scope_missing       │
        │  ParameterError                      ─────────────────        │
        │  LockoutError                        ScopeMissingError        │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = ScopeMissingError("Scope esi-assets.read_assets.v1 is missing from token")
    >>> err.kind
    <ErrorKind.SCOPE_MISSING: 'scope_missing'>
    >>> err.to_dict()
    {'kind': 'scope_missing', 'message': 'Scope esi-assets.read_assets.v1 is missing from token'}

Tags:
    error-handling, exception-hierarchy, eveswag

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

# Header carrying the remaining ESI error budget.
ERROR_LIMIT_REMAIN_HEADER = "x-esi-error-limit-remain"
# Header carrying the error budget reset window.
ERROR_LIMIT_RESET_HEADER = "x-esi-error-limit-reset"


class ErrorKind(str, Enum):
    """Short error names surfaced to callers."""

    ERROR = "error"                  # Generic/internal, lockout, validation
    SERVER = "server"                # Transport-level failure
    ESI_STATUS = "esi_status"        # Health gate rejected the call
    SCOPE_MISSING = "scope_missing"  # Authorization gate rejected the call


class EsiError(Exception):
    """
    Base exception for every error raised by eveswag.

    Subclasses set ``default_kind``; an explicit ``kind=`` overrides it.

    Attributes:
        message: Human-readable description
        kind: ErrorKind used for classification
        cause: Underlying exception, also chained as ``__cause__``
    """

    default_kind: ErrorKind = ErrorKind.ERROR

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the ``{kind, message}`` shape callers expect."""
        return {"kind": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, kind={self.kind.value})"


# =============================================================================
# GENERIC ERRORS (kind=error)
# =============================================================================


class ConfigError(EsiError):
    """Client was constructed with invalid settings."""


class SpecParseError(EsiError):
    """The Swagger document could not be parsed or lacks required fields."""


class SpecNotLoadedError(EsiError):
    """No spec is loaded, or the requested operation is not part of it."""


class ParameterError(EsiError):
    """A required operation parameter was not supplied."""

    def __init__(self, message: str, *, parameter: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.parameter = parameter


class LockoutError(EsiError):
    """ESI error limit lockout is active; the network was not touched."""

    def __init__(self, message: str, *, locked_until: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.locked_until = locked_until


# =============================================================================
# SERVER ERRORS (kind=server)
# =============================================================================


class ServerError(EsiError):
    """
    Transport-level failure.

    Carries whatever the failing exchange exposed, so the retry loop can do
    its error-limit bookkeeping and the star_id workaround can reach into the
    payload.
    """

    default_kind = ErrorKind.SERVER

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        # lower-cased like EsiResponse headers
        self.headers: Mapping[str, str] = {
            str(k).lower(): str(v) for k, v in (headers or {}).items()
        }
        self.body = body

    @property
    def error_limit_remain(self) -> str | None:
        """Remaining error budget reported by the failing response, if any."""
        return self.headers.get(ERROR_LIMIT_REMAIN_HEADER)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


# =============================================================================
# GATE ERRORS
# =============================================================================


class EsiStatusError(EsiError):
    """The operation's ESI status is above the configured tolerance."""

    default_kind = ErrorKind.ESI_STATUS


class ScopeMissingError(EsiError):
    """The caller's token scopes do not include the operation's scope."""

    default_kind = ErrorKind.SCOPE_MISSING

    def __init__(self, message: str, *, scope: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.scope = scope


def error_kind(error: BaseException) -> ErrorKind:
    """Return the ErrorKind for any exception (``error`` for foreign ones)."""
    if isinstance(error, EsiError):
        return error.kind
    return ErrorKind.ERROR


__all__ = [
    "ERROR_LIMIT_REMAIN_HEADER",
    "ERROR_LIMIT_RESET_HEADER",
    "ErrorKind",
    "EsiError",
    "ConfigError",
    "SpecParseError",
    "SpecNotLoadedError",
    "ParameterError",
    "LockoutError",
    "ServerError",
    "EsiStatusError",
    "ScopeMissingError",
    "error_kind",
]
