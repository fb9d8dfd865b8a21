"""
EsiClient -- EVE Swagger Interface client built from the live spec.

After creating an instance, load a spec with ``load_file()``,
``await load_remote()`` or ``load_scheme()``, then call endpoints through
``apis["Category"]["operation_id"](...)``. ``listing`` shows every endpoint
with its required scope and live status, ``info`` the Swagger info block.

Manifesto:
    ESI changes under its clients: routes appear, get deprecated, go red
    for an hour. A client generated once at build time goes stale; this one
    is compiled from the live Swagger document at runtime and checks the status feed before
    each call. One instance owns all of its state (registry, health map,
    lockout), so two instances pointed at different datasources never
    interfere.

Architecture:
    ::

        EsiClient
          ├── settings      EveswagSettings
          ├── monitor       HealthMonitor  ← GET {base}/status.json
          ├── transport     ResilientTransport(HttpxTransport)
          ├── executor      CallExecutor
          └── compiled      CompiledSpec (replaced wholesale on load)
                ├── apis      Category → op → OperationInvoker
                ├── listing   Category → op → ListingEntry
                └── info

Examples:
    >>> async with EsiClient(user_agent="My awesome EVE project (by EveName)") as esi:
    ...     await esi.load_remote()
    ...     resp = await esi.apis["Status"]["get_status"]()
    ...     print("Pilots online:", resp.body["players"])

Useful links:
    https://esi.evetech.net/ https://docs.esi.evetech.net/

Tags:
    eveswag, esi, swagger, client, facade

Doc-Types:
    - API Reference
    - Getting Started
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from eveswag.core.errors import ConfigError, SpecNotLoadedError
from eveswag.core.logging import LogCallback, ReportCallback, null_report, structlog_sink
from eveswag.core.settings import EveswagSettings
from eveswag.core.timestamps import Clock, epoch
from eveswag.execution.binding import USER_AGENT_SUFFIX
from eveswag.execution.executor import CallExecutor, StatusTolerance
from eveswag.execution.health import HealthMonitor
from eveswag.execution.lockout import ErrorLimitLockout
from eveswag.execution.models import EsiResponse, RequestDescriptor
from eveswag.execution.retry import LinearBackoff
from eveswag.execution.transport import HttpxTransport, RawTransport, ResilientTransport, Sleep
from eveswag.spec.compiler import (
    EMPTY_SPEC,
    CategoryListing,
    CategoryRegistry,
    CompiledSpec,
    compile_operations,
)
from eveswag.spec.models import OperationDescriptor
from eveswag.spec.normalizer import normalize_spec


class EsiClient:
    """EVE Swagger Interface client.

    Args:
        settings: Prebuilt settings; keyword overrides are applied on top
        log: ``(level, *parts)`` callback, structlog by default
        report: ``(event, operation_id)`` callback; ``"direct"`` per attempt,
            ``"error"`` per failed attempt
        transport: Raw single-attempt transport, HttpxTransport by default
        sleep: Awaitable sleep used between retries
        clock: Epoch-second clock
        **overrides: Any EveswagSettings field (``user_agent=...``)

    Raises:
        ConfigError: If the settings are invalid (e.g. no user agent)
    """

    def __init__(
        self,
        settings: EveswagSettings | None = None,
        *,
        log: LogCallback = structlog_sink,
        report: ReportCallback = null_report,
        transport: RawTransport | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = epoch,
        **overrides: Any,
    ):
        self.settings = _build_settings(settings, overrides)
        self.log = log
        self.report = report

        self._http: HttpxTransport | None = None
        if transport is None:
            self._http = HttpxTransport(
                timeout=self.settings.request_timeout,
                proxy=self.settings.proxy,
            )
            transport = self._http
        self._raw_transport = transport

        self.host = self.settings.host
        self.tolerance = StatusTolerance(
            allow_yellow=self.settings.allow_yellow,
            allow_red=self.settings.allow_red,
        )
        self.lockout = ErrorLimitLockout(clock)
        self.monitor = HealthMonitor(
            self._fetch_status_feed,
            ttl=self.settings.status_refresh,
            log=log,
            clock=clock,
        )
        self.transport = ResilientTransport(
            transport,
            lockout=self.lockout,
            policy=LinearBackoff(
                max_attempts=self.settings.max_attempts,
                step=self.settings.retry_step,
            ),
            report=report,
            log=log,
            sleep=sleep,
            clock=clock,
        )
        self.executor = CallExecutor(
            self.transport,
            self.monitor,
            base_url=lambda: self.host,
            user_agent=self.settings.user_agent,
            implicit=self._implicit_parameters,
            tolerance=lambda: self.tolerance,
            log=log,
        )
        self.compiled: CompiledSpec = EMPTY_SPEC

    # ── Views ────────────────────────────────────────────────────

    @property
    def apis(self) -> CategoryRegistry:
        """Category → operation id → callable invoker."""
        return self.compiled.apis

    @property
    def listing(self) -> CategoryListing:
        """Category → operation id → ListingEntry(scope, status)."""
        return self.compiled.listing

    @property
    def info(self) -> Mapping[str, Any]:
        return self.compiled.info

    @property
    def health_score(self) -> int:
        """Aggregate ESI health, 0..100."""
        return self.monitor.health_score

    @property
    def locked_until(self) -> int | None:
        """Epoch seconds until which ESI calls are refused, or None."""
        return self.lockout.locked_until

    @locked_until.setter
    def locked_until(self, value: int | None) -> None:
        self.lockout.locked_until = value

    def operation(self, operation_id: str) -> OperationDescriptor:
        """Descriptor for an operation id, tagged or not.

        Raises:
            SpecNotLoadedError: If no spec is loaded or the id is unknown
        """
        try:
            return self.compiled.operations[operation_id]
        except KeyError:
            raise SpecNotLoadedError(f"Unknown operation {operation_id}") from None

    # ── Loading ──────────────────────────────────────────────────

    def load_scheme(self, scheme: Mapping[str, Any] | str | bytes) -> CompiledSpec:
        """Compile a spec and replace the current registry.

        Clears any lockout, resets the health map and schedules a status
        refresh in the background.

        Raises:
            SpecParseError: If the document is malformed
        """
        normalized = normalize_spec(
            scheme, log=self.log, scope_scheme=self.settings.scope_scheme
        )
        compiled = compile_operations(
            normalized, self.executor, self.monitor.label, log=self.log
        )

        self.host = compiled.base_url
        self.compiled = compiled
        self.lockout.clear()
        self.monitor.reset()
        self.monitor.schedule_refresh()
        self.log("info", "spec_loaded", f"{len(compiled.operations)} operations")
        return compiled

    def load_file(self, path: str | Path) -> CompiledSpec:
        """Load a spec from a JSON file."""
        return self.load_scheme(Path(path).read_text(encoding="utf-8"))

    async def load_remote(self) -> CompiledSpec:
        """Download ``{host}/{version}/swagger.json`` and load it."""
        self.log("info", "Loading ESI specs from a remote resource...")
        request = RequestDescriptor(
            operation_id="swagger",
            method="GET",
            url=f"{self.host}/{self.settings.version}/swagger.json"
            f"?datasource={self.settings.datasource}",
            headers=self._base_headers(),
        )
        response = await self._raw_transport(request)
        return self.load_scheme(response.body)

    # ── Calls ────────────────────────────────────────────────────

    async def invoke(
        self,
        operation_id: str,
        parameters: Mapping[str, Any] | None = None,
        token: str | None = None,
        scopes: str | Iterable[str] | None = None,
    ) -> EsiResponse:
        """Call an operation by id; same as ``apis[category][operation_id](...)``."""
        return await self.executor.invoke(
            self.operation(operation_id), parameters, token, scopes
        )

    async def health(self, operation_id: str | None = None) -> int:
        """Refresh if due, then return -1 (unknown), 0 (green), 1 (yellow) or 2 (red)."""
        await self.monitor.refresh()
        if not operation_id:
            return -1
        return int(self.monitor.status(operation_id))

    async def aclose(self) -> None:
        """Close the default HTTP transport."""
        if self._http is not None:
            await self._http.aclose()

    async def __aenter__(self) -> EsiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # ── Internals ────────────────────────────────────────────────

    def _implicit_parameters(self) -> dict[str, Any]:
        return {
            "datasource": self.settings.datasource,
            "Accept-Language": self.settings.language,
        }

    def _base_headers(self) -> dict[str, str]:
        return {"User-Agent": self.settings.user_agent + USER_AGENT_SUFFIX}

    async def _fetch_status_feed(self) -> Any:
        version = self.settings.version.lstrip("_")
        request = RequestDescriptor(
            operation_id="status",
            method="GET",
            url=f"{self.host}/status.json?version={version}",
            headers=self._base_headers(),
        )
        response = await self._raw_transport(request)
        return response.body


def _build_settings(
    settings: EveswagSettings | None, overrides: Mapping[str, Any]
) -> EveswagSettings:
    try:
        if settings is None:
            return EveswagSettings(**overrides)
        if overrides:
            return settings.model_copy(update=dict(overrides))
        return settings
    except ValidationError as e:
        raise ConfigError(f"Invalid client settings: {e}", cause=e) from e


__all__ = ["EsiClient"]
