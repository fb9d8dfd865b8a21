"""Parameter binding -- caller values to a RequestDescriptor.

Each declared parameter is placed according to its location:

    header → request header
    path   → every ``{name}`` in the template (only where present)
    query  → ``name=value`` pairs, encoded like ``encodeURIComponent``
    body   → the single JSON body (a second body parameter is logged)

Implicit parameters (``datasource``, ``Accept-Language``) are merged ahead of
the caller's values, so callers can override them. Parameters the operation
does not declare are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import quote

from eveswag.core.errors import ParameterError
from eveswag.core.logging import LogCallback, structlog_sink
from eveswag.execution.models import RequestDescriptor
from eveswag.spec.models import OperationDescriptor, ParameterLocation

# Characters encodeURIComponent leaves alone besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"

USER_AGENT_SUFFIX = " (eveswag)"


def encode_value(value: Any) -> str:
    """Render a parameter value the way ESI expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(encode_value(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def bind_request(
    descriptor: OperationDescriptor,
    *,
    base_url: str,
    parameters: Mapping[str, Any] | None = None,
    implicit: Mapping[str, Any] | None = None,
    token: str | None = None,
    user_agent: str = "",
    log: LogCallback = structlog_sink,
) -> RequestDescriptor:
    """Bind ``parameters`` into a request for ``descriptor``.

    Args:
        descriptor: Operation being called
        base_url: Scheme and host from the loaded spec
        parameters: Caller-supplied values (None values count as missing)
        implicit: Defaults merged ahead of ``parameters``
        token: Bearer token, attached only when the operation has a scope
        user_agent: Application user agent
        log: ``(level, *parts)`` callback

    Returns:
        RequestDescriptor ready for a transport

    Raises:
        ParameterError: If a required parameter is missing or None
    """
    values = {**(implicit or {}), **(parameters or {})}
    headers: dict[str, str] = {}
    if user_agent:
        headers["User-Agent"] = user_agent + USER_AGENT_SUFFIX
    if token and descriptor.scope:
        headers["Authorization"] = f"Bearer {token}"

    path = descriptor.path
    query: list[str] = []
    body: Any = None
    body_set = False

    for name, spec in descriptor.parameters.items():
        value = values.get(name)
        if value is None:
            if spec.required:
                raise ParameterError(f"Parameter {name} must be specified.", parameter=name)
            continue

        if spec.location == ParameterLocation.HEADER:
            headers[name] = encode_value(value)
        elif spec.location == ParameterLocation.PATH:
            placeholder = "{" + name + "}"
            if placeholder in path:
                path = path.replace(placeholder, encode_value(value))
        elif spec.location == ParameterLocation.QUERY:
            query.append(f"{name}={quote(encode_value(value), safe=_URI_COMPONENT_SAFE)}")
        elif spec.location == ParameterLocation.BODY:
            if body_set:
                log("info", "body_set_twice", descriptor.operation_id, name)
            body = value
            body_set = True

    url = base_url + path
    if query:
        url += "?" + "&".join(query)

    return RequestDescriptor(
        operation_id=descriptor.operation_id,
        method=descriptor.method,
        url=url,
        headers=headers,
        body=body,
    )


def normalize_scopes(scopes: str | Iterable[str]) -> frozenset[str]:
    """Turn a delimited scope string or an iterable of scopes into a set."""
    if isinstance(scopes, str):
        return frozenset(scopes.replace(",", " ").split())
    return frozenset(str(s) for s in scopes)


__all__ = ["bind_request", "encode_value", "normalize_scopes", "USER_AGENT_SUFFIX"]
