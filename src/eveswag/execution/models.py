"""Request/response value types shared by the executor and transports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


def _freeze(headers: Mapping[str, str], lower: bool = False) -> Mapping[str, str]:
    if lower:
        return MappingProxyType({str(k).lower(): str(v) for k, v in headers.items()})
    return MappingProxyType(dict(headers))


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully bound request, ready for a transport.

    Attributes:
        operation_id: Operation the request belongs to (for reporting)
        method: Upper-case HTTP method
        url: Absolute URL including the query string
        headers: Request headers
        body: JSON body, or None
    """

    operation_id: str
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers))


@dataclass(frozen=True)
class EsiResponse:
    """A successful response. Header names are lower-cased."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers, lower=True))
