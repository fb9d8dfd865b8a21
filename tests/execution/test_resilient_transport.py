"""Tests for ResilientTransport: retries, lockout and the star_id workaround."""

import pytest

from eveswag.core.errors import EsiError, LockoutError, ServerError
from eveswag.execution.lockout import ERROR_LIMIT_SIGNATURE, ErrorLimitLockout
from eveswag.execution.models import EsiResponse, RequestDescriptor
from eveswag.execution.retry import LinearBackoff
from eveswag.execution.transport import STAR_ID_EXPIRY_SECONDS, ResilientTransport
from esi_doubles import FakeTransport, RecordingLog, RecordingReport, RecordingSleep

REQUEST = RequestDescriptor("get_status", "GET", "https://esi.evetech.net/latest/status/")
OK = EsiResponse(200, {"content-type": "application/json"}, {"players": 31337})


@pytest.fixture
def raw():
    return FakeTransport()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def report():
    return RecordingReport()


@pytest.fixture
def transport(raw, sleep, report, clock):
    return ResilientTransport(
        raw,
        lockout=ErrorLimitLockout(clock),
        policy=LinearBackoff(max_attempts=3, step=0.5),
        report=report,
        log=RecordingLog(),
        sleep=sleep,
        clock=clock,
    )


class TestRetries:
    @pytest.mark.asyncio
    async def test_success_first_try(self, transport, raw, report, sleep):
        raw.script(OK)
        assert await transport.send(REQUEST) is OK
        assert report.events == [("direct", "get_status")]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self, transport, raw, report, sleep):
        raw.script(ServerError("Bad Gateway"), ServerError("Timeout: read"), OK)
        response = await transport.send(REQUEST)
        assert response is OK
        assert len(raw.calls) == 3
        assert sleep.delays == [0.0, 0.5]
        assert report.count("direct") == 3
        assert report.count("error") == 2

    @pytest.mark.asyncio
    async def test_budget_exhausted_raises_last_error(self, transport, raw, sleep):
        last = ServerError("Service Unavailable")
        raw.script(ServerError("Bad Gateway"), ServerError("Bad Gateway"), last, OK)
        with pytest.raises(ServerError) as exc_info:
            await transport.send(REQUEST)
        assert exc_info.value is last
        assert len(raw.calls) == 3

    @pytest.mark.asyncio
    async def test_terminal_not_retried(self, transport, raw):
        raw.script(ServerError("Invalid body: expected array"), OK)
        with pytest.raises(ServerError, match="Invalid body"):
            await transport.send(REQUEST)
        assert len(raw.calls) == 1

    @pytest.mark.asyncio
    async def test_unrecognized_not_retried(self, transport, raw):
        raw.script(ServerError("Character not found", status_code=404), OK)
        with pytest.raises(ServerError):
            await transport.send(REQUEST)
        assert len(raw.calls) == 1

    @pytest.mark.asyncio
    async def test_jwk_error_retried_once(self, transport, raw):
        jwk = "no JWK available for datasource tranquility"
        raw.script(ServerError(jwk), ServerError(jwk), OK)
        with pytest.raises(ServerError, match="no JWK"):
            await transport.send(REQUEST)
        assert len(raw.calls) == 2

    @pytest.mark.asyncio
    async def test_foreign_exception_wrapped(self, transport, raw):
        cause = ConnectionResetError("ECONNRESET: socket hang up")
        raw.script(cause, cause, cause)
        with pytest.raises(EsiError) as exc_info:
            await transport.send(REQUEST)
        assert exc_info.value.__cause__ is cause
        assert len(raw.calls) == 3


class TestLockout:
    @pytest.mark.asyncio
    async def test_active_lockout_skips_network(self, transport, raw, report):
        transport.lockout.arm(120)
        with pytest.raises(LockoutError, match="Too many errors. ESI is locked for 2 min"):
            await transport.send(REQUEST)
        assert raw.calls == []
        assert report.events == []

    @pytest.mark.asyncio
    async def test_low_budget_success_arms_lockout(self, transport, raw, clock):
        raw.script(EsiResponse(200, {"X-Esi-Error-Limit-Remain": "1", "X-Esi-Error-Limit-Reset": "5"}, {}))
        await transport.send(REQUEST)
        assert transport.lockout.locked_until == clock() + 300
        with pytest.raises(LockoutError):
            await transport.send(REQUEST)
        assert len(raw.calls) == 1

    @pytest.mark.asyncio
    async def test_low_budget_failure_stops_retries(self, transport, raw):
        error = ServerError(
            "Bad Gateway",
            status_code=502,
            headers={"x-esi-error-limit-remain": "2", "x-esi-error-limit-reset": "1"},
        )
        raw.script(error, OK)
        with pytest.raises(LockoutError) as exc_info:
            await transport.send(REQUEST)
        assert exc_info.value.__cause__ is error
        assert len(raw.calls) == 1

    @pytest.mark.asyncio
    async def test_mixed_case_failure_headers_arm_lockout(self, transport, raw, clock):
        error = ServerError(
            "Character not found",
            status_code=404,
            headers={"X-Esi-Error-Limit-Remain": "1", "X-Esi-Error-Limit-Reset": "5"},
        )
        raw.script(error, OK)
        with pytest.raises(LockoutError) as exc_info:
            await transport.send(REQUEST)
        assert exc_info.value.__cause__ is error
        assert error.message == "Character not found [Error limit left: 1]"
        assert transport.lockout.locked_until == clock() + 300
        assert len(raw.calls) == 1

    @pytest.mark.asyncio
    async def test_error_limit_signature_arms_minute(self, transport, raw, clock):
        raw.script(ServerError(ERROR_LIMIT_SIGNATURE), OK)
        with pytest.raises(LockoutError, match="locked for 1 min"):
            await transport.send(REQUEST)
        assert transport.lockout.locked_until == clock() + 60

    @pytest.mark.asyncio
    async def test_lock_expires(self, transport, raw, clock):
        transport.lockout.arm(60)
        clock.advance(61)
        raw.script(OK)
        assert await transport.send(REQUEST) is OK

    @pytest.mark.asyncio
    async def test_error_budget_annotated(self, transport, raw):
        raw.script(
            ServerError("Character not found", headers={"x-esi-error-limit-remain": "57"}),
        )
        with pytest.raises(ServerError) as exc_info:
            await transport.send(REQUEST)
        assert exc_info.value.message == "Character not found [Error limit left: 57]"
        assert str(exc_info.value) == exc_info.value.message


class TestStarIdWorkaround:
    @pytest.mark.asyncio
    async def test_synthetic_response(self, transport, raw, clock):
        raw.script(ServerError(
            "KeyError: 'star_id'",
            status_code=500,
            body={"error": "KeyError: 'star_id'", "response": {"name": "Jita", "system_id": 30000142}},
        ))
        response = await transport.send(REQUEST)
        assert response.status_code == 200
        assert response.body == {"name": "Jita", "system_id": 30000142}
        assert response.headers["expires"] == str(clock() + STAR_ID_EXPIRY_SECONDS)
        assert len(raw.calls) == 1
