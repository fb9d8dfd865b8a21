"""Transports -- the raw httpx sender and the resilient retry loop around it.

Manifesto:
    ESI is a shared, rate-limited service with a public error budget. A
    client that hammers it through an outage gets banned; a client that
    gives up on the first 502 is useless. ``ResilientTransport`` sits
    between the two: it retries transient failures with a short linear
    backoff, stops everything the moment the error budget runs low, and
    reports every attempt so callers can see what retries cost.

ARCHITECTURE
────────────
::

    ResilientTransport.send(request)
      loop attempt = 1..max_attempts
        ├── lockout.check()           ─ LockoutError, network untouched
        ├── report("direct", op)
        ├── raw transport(request)    ─ HttpxTransport by default
        │     success → lockout.observe_headers() → return
        │     failure → report("error", op)
        ├── lockout bookkeeping       ─ headers + error-limit signature
        └── classify_failure()
              TERMINAL / UNRECOGNIZED → raise
              STAR_ID                 → synthetic response
              RETRYABLE / SINGLE_RETRY→ sleep((attempt-1)*step), next

Known limitation: a caller that stops waiting for a call (without
cancelling its task) does not stop the retries already scheduled.

Related modules:
    retry.py    — LinearBackoff, classify_failure
    lockout.py  — ErrorLimitLockout

Tags:
    eveswag, execution, retry, transport, httpx, resilience

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from eveswag.core.errors import EsiError, ServerError
from eveswag.core.logging import LogCallback, ReportCallback, null_report, structlog_sink
from eveswag.core.timestamps import Clock, epoch
from eveswag.execution.lockout import ErrorLimitLockout
from eveswag.execution.models import EsiResponse, RequestDescriptor
from eveswag.execution.retry import FailureClass, LinearBackoff, classify_failure

# (request) -> response, raises ServerError on failure
RawTransport = Callable[[RequestDescriptor], Awaitable[EsiResponse]]
Sleep = Callable[[float], Awaitable[Any]]

STAR_ID_EXPIRY_SECONDS = 60 * 60


class ResilientTransport:
    """Executes one logical call with retries and the error-limit lockout.

    Args:
        transport: Raw transport performing a single attempt
        lockout: Shared lockout (one per client instance)
        policy: Retry policy
        report: ``(event, operation_id)`` callback
        log: ``(level, *parts)`` callback
        sleep: Awaitable sleep, ``asyncio.sleep`` by default
        clock: Epoch-second clock
    """

    def __init__(
        self,
        transport: RawTransport,
        *,
        lockout: ErrorLimitLockout | None = None,
        policy: LinearBackoff | None = None,
        report: ReportCallback = null_report,
        log: LogCallback = structlog_sink,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = epoch,
    ):
        self.transport = transport
        self.lockout = lockout or ErrorLimitLockout(clock)
        self.policy = policy or LinearBackoff()
        self.report = report
        self.log = log
        self._sleep = sleep
        self._clock = clock

    async def send(self, request: RequestDescriptor) -> EsiResponse:
        """Send ``request``, retrying transient failures.

        Raises:
            LockoutError: Lockout active before an attempt, or armed by a failure
            EsiError: Terminal, unrecognized or last retryable failure, verbatim
        """
        op = request.operation_id
        attempt = 1
        while True:
            self.lockout.check()
            self.report("direct", op)
            try:
                response = await self.transport(request)
            except Exception as exc:
                self.report("error", op)
                error = _as_esi_error(exc)
                failure = classify_failure(error.message)
                recovered = self._handle_failure(op, error, failure)
                if recovered is not None:
                    return recovered
                if not self.policy.should_retry(attempt, failure):
                    raise error
                await self._sleep(self.policy.next_delay(attempt))
                attempt += 1
                continue

            self.lockout.observe_headers(response.headers)
            return response

    def _handle_failure(
        self, op: str, error: EsiError, failure: FailureClass
    ) -> EsiResponse | None:
        """Lockout bookkeeping, terminal errors and the star_id workaround.

        Returns a synthetic response for the star_id bug, None to continue
        with the retry decision.
        """
        if isinstance(error, ServerError):
            self.lockout.observe_headers(error.headers)
        self.lockout.observe_error(error.message)
        if self.lockout.active:
            raise self.lockout.rejection(cause=error)

        if failure is FailureClass.TERMINAL:
            raise error
        if failure is FailureClass.STAR_ID:
            # https://github.com/esi/esi-issues/issues/532, closed upstream but seen again since
            self.log("warning", "star_id_bug", op, error.message)
            payload = error.body if isinstance(error, ServerError) else None
            body = payload.get("response") if isinstance(payload, Mapping) else None
            return EsiResponse(
                status_code=200,
                headers={"expires": str(self._clock() + STAR_ID_EXPIRY_SECONDS)},
                body=body,
            )
        return None


def _as_esi_error(exc: Exception) -> EsiError:
    """Wrap foreign exceptions and tag server errors with the error budget."""
    if not isinstance(exc, EsiError):
        return EsiError(str(exc) or type(exc).__name__, cause=exc)
    if isinstance(exc, ServerError):
        remain = exc.error_limit_remain
        note = f" [Error limit left: {remain}]"
        if remain is not None and not exc.message.endswith(note):
            exc.message += note
            exc.args = (exc.message,)
    return exc


# =============================================================================
# HTTPX TRANSPORT
# =============================================================================


_NOT_FOUND_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "no address associated",
    "getaddrinfo failed",
)
_DNS_AGAIN_HINTS = ("temporary failure in name resolution",)
_REFUSED_HINTS = ("connection refused",)


class HttpxTransport:
    """Single-attempt transport on a shared ``httpx.AsyncClient``.

    Failures are raised as ``ServerError`` with messages the retry
    classifier understands (``Timeout``, ``ENOTFOUND``, ``ECONNRESET`` ...).

    Args:
        timeout: httpx timeout in seconds
        proxy: Proxy URL, True to honour environment proxies, False for none
        client: Pre-built client (the transport will not close it)
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        proxy: bool | str = False,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        if client is None:
            kwargs: dict[str, Any] = {"timeout": timeout, "trust_env": proxy is True}
            if isinstance(proxy, str):
                kwargs["proxy"] = proxy
            client = httpx.AsyncClient(**kwargs)
        self._client = client

    async def __call__(self, request: RequestDescriptor) -> EsiResponse:
        try:
            resp = await self._client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                json=request.body,
            )
        except httpx.TimeoutException as e:
            raise ServerError(f"Timeout: {e}", cause=e) from e
        except httpx.ConnectError as e:
            raise ServerError(f"{_connect_error_code(e)}: {e}", cause=e) from e
        except httpx.TransportError as e:
            raise ServerError(f"ECONNRESET: {e}", cause=e) from e

        body = _decode_body(resp)
        message = _error_message(resp, body)
        if message is not None:
            raise ServerError(
                message,
                status_code=resp.status_code,
                headers=dict(resp.headers),
                body=body,
            )
        return EsiResponse(resp.status_code, dict(resp.headers), body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _connect_error_code(error: httpx.ConnectError) -> str:
    text = str(error).lower()
    if any(hint in text for hint in _DNS_AGAIN_HINTS):
        return "EAI_AGAIN"
    if any(hint in text for hint in _NOT_FOUND_HINTS):
        return "ENOTFOUND"
    if any(hint in text for hint in _REFUSED_HINTS):
        return "ECONNREFUSED"
    return "ECONNRESET"


def _decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    if "json" in resp.headers.get("content-type", ""):
        try:
            return resp.json()
        except ValueError:
            return resp.text
    return resp.text


def _error_message(resp: httpx.Response, body: Any) -> str | None:
    """Return the failure text for an error response, None for a success."""
    if isinstance(body, Mapping) and body.get("error"):
        return str(body["error"])
    if isinstance(body, str) and "<h1>502 Bad Gateway</h1>" in body:
        return "Bad Gateway"
    if resp.is_success:
        return None
    if resp.status_code == 502:
        return "Bad Gateway"
    if resp.status_code == 503:
        return "Service Unavailable"
    if resp.status_code == 504:
        return "Gateway Timeout"
    return f"HTTP {resp.status_code} {resp.reason_phrase}".strip()


__all__ = [
    "RawTransport",
    "ResilientTransport",
    "HttpxTransport",
    "STAR_ID_EXPIRY_SECONDS",
]
