"""Call executor -- the single entry point every operation call goes through.

``CallExecutor.invoke(descriptor, parameters, token, scopes)``:

1. Health gate   ─ refresh if stale, reject above tolerance (``esi_status``)
2. Scope gate    ─ reject when the token lacks the scope (``scope_missing``)
3. Binding       ─ implicit + caller parameters into a RequestDescriptor
4. Delegation    ─ ResilientTransport.send()
5. Deprecations  ─ log the ``warning`` response header, return unchanged
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from eveswag.core.errors import EsiStatusError, ScopeMissingError
from eveswag.core.logging import LogCallback, structlog_sink
from eveswag.execution.binding import bind_request, normalize_scopes
from eveswag.execution.health import HealthMonitor, HealthStatus
from eveswag.execution.models import EsiResponse
from eveswag.execution.transport import ResilientTransport
from eveswag.spec.models import OperationDescriptor

CHANGELOG_URL = "https://github.com/esi/esi-issues/blob/master/changelog.md"


@dataclass(frozen=True)
class StatusTolerance:
    """Which degraded statuses still allow a call."""

    allow_yellow: bool = True
    allow_red: bool = False

    def allows(self, status: HealthStatus) -> bool:
        """Each degraded level is gated by its own flag."""
        if status is HealthStatus.RED:
            return self.allow_red
        if status is HealthStatus.YELLOW:
            return self.allow_yellow
        return True


class CallExecutor:
    """Validates, binds and sends operation calls.

    Args:
        transport: Resilient transport shared by every operation
        monitor: Health monitor for the gate
        base_url: Callable returning the loaded spec's base URL
        user_agent: Application user agent
        implicit: Callable returning the implicit parameters
        tolerance: Callable returning the current StatusTolerance
        log: ``(level, *parts)`` callback

    The callables let the owning client change settings or reload the spec
    without rebuilding the executor.
    """

    def __init__(
        self,
        transport: ResilientTransport,
        monitor: HealthMonitor,
        *,
        base_url: Callable[[], str],
        user_agent: str,
        implicit: Callable[[], Mapping[str, Any]],
        tolerance: Callable[[], StatusTolerance],
        log: LogCallback = structlog_sink,
    ):
        self.transport = transport
        self.monitor = monitor
        self._base_url = base_url
        self.user_agent = user_agent
        self._implicit = implicit
        self._tolerance = tolerance
        self.log = log

    async def invoke(
        self,
        descriptor: OperationDescriptor,
        parameters: Mapping[str, Any] | None = None,
        token: str | None = None,
        scopes: str | Iterable[str] | None = None,
    ) -> EsiResponse:
        """Call one operation.

        Args:
            descriptor: Operation to call
            parameters: Parameter values by name
            token: SSO access token
            scopes: Token scopes, delimited string or iterable; None skips
                the scope check, an empty collection means no scopes

        Returns:
            EsiResponse from the transport

        Raises:
            EsiStatusError: Status above tolerance
            ScopeMissingError: Token lacks the operation's scope
            ParameterError: Required parameter missing
            LockoutError: Error-limit lockout active
            ServerError: Transport failure after retries
        """
        op = descriptor.operation_id

        await self.monitor.refresh()
        status = self.monitor.status(op)
        if not self._tolerance().allows(status):
            raise EsiStatusError(f"Status {status.label}")

        if descriptor.scope and scopes is not None and scopes != "":
            if descriptor.scope not in normalize_scopes(scopes):
                raise ScopeMissingError(
                    f"Scope {descriptor.scope} is missing from token",
                    scope=descriptor.scope,
                )

        params = dict(parameters or {})
        if not token and "token" in params:
            # legacy: token passed among the parameters
            token = params.pop("token")

        request = bind_request(
            descriptor,
            base_url=self._base_url(),
            parameters=params,
            implicit=self._implicit(),
            token=token,
            user_agent=self.user_agent,
            log=self.log,
        )

        response = await self.transport.send(request)
        warning = response.headers.get("warning")
        if warning:
            self.log("warning", f"(note) {op}:", warning, f"See {CHANGELOG_URL} for details")
        return response


__all__ = ["CallExecutor", "StatusTolerance", "CHANGELOG_URL"]
