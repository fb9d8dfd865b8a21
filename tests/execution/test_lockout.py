"""Tests for ErrorLimitLockout."""

import pytest

from eveswag.core.errors import LockoutError
from eveswag.core.timestamps import ManualClock
from eveswag.execution.lockout import ERROR_LIMIT_SIGNATURE, ErrorLimitLockout


@pytest.fixture
def lockout(clock):
    return ErrorLimitLockout(clock)


class TestObserveHeaders:
    def test_low_budget_arms_for_reset_minutes(self, lockout, clock):
        lockout.observe_headers({"x-esi-error-limit-remain": "2", "x-esi-error-limit-reset": "3"})
        assert lockout.locked_until == clock() + 180
        assert lockout.active is True

    def test_healthy_budget_ignored(self, lockout):
        lockout.observe_headers({"x-esi-error-limit-remain": "3", "x-esi-error-limit-reset": "3"})
        assert lockout.locked_until is None

    def test_missing_or_garbled_remain_ignored(self, lockout):
        lockout.observe_headers({})
        lockout.observe_headers(None)
        lockout.observe_headers({"x-esi-error-limit-remain": "lots"})
        assert lockout.locked_until is None

    def test_zero_reset_expires_immediately(self, lockout):
        lockout.observe_headers({"x-esi-error-limit-remain": "0", "x-esi-error-limit-reset": "0"})
        assert lockout.active is False
        assert lockout.locked_until is None


class TestObserveError:
    def test_signature_arms_one_minute(self, lockout, clock):
        lockout.observe_error(f"{ERROR_LIMIT_SIGNATURE} (100 errors)")
        assert lockout.locked_until == clock() + 60

    def test_other_errors_ignored(self, lockout):
        lockout.observe_error("Bad Gateway")
        assert lockout.locked_until is None


class TestCheck:
    def test_check_raises_with_minutes(self, lockout):
        lockout.arm(90)
        with pytest.raises(LockoutError, match="Too many errors. ESI is locked for 2 min") as exc_info:
            lockout.check()
        assert exc_info.value.locked_until == lockout.locked_until

    def test_open_when_unarmed(self, lockout):
        lockout.check()

    def test_lock_expires(self, lockout, clock):
        lockout.arm(60)
        clock.advance(60)
        lockout.check()
        assert lockout.locked_until is None

    def test_clear(self, lockout):
        lockout.arm(600)
        lockout.clear()
        lockout.check()

    def test_rejection_chains_cause(self):
        lockout = ErrorLimitLockout(ManualClock(0))
        lockout.arm(60)
        cause = RuntimeError("upstream")
        err = lockout.rejection(cause=cause)
        assert err.__cause__ is cause
        assert str(err) == "Too many errors. ESI is locked for 1 min"
