"""Tests for LinearBackoff and failure classification."""

import pytest

from eveswag.execution.retry import FailureClass, LinearBackoff, classify_failure


class TestClassifyFailure:
    @pytest.mark.parametrize(
        "message",
        [
            "Timeout: read timed out",
            "ENOTFOUND: esi.evetech.net",
            "ECONNRESET: connection reset",
            "EAI_AGAIN: temporary failure",
            "Bad Gateway",
            "Service Unavailable",
            "Failed to fetch access data",
        ],
    )
    def test_retryable(self, message):
        assert classify_failure(message) is FailureClass.RETRYABLE

    @pytest.mark.parametrize("message", ["Invalid body: expected array", "failed to coerce value 'x'"])
    def test_terminal(self, message):
        assert classify_failure(message) is FailureClass.TERMINAL

    def test_single_retry(self):
        assert classify_failure("no JWK available for datasource tranquility") is FailureClass.SINGLE_RETRY

    def test_star_id(self):
        assert classify_failure("KeyError: 'star_id'") is FailureClass.STAR_ID

    def test_unrecognized(self):
        assert classify_failure("Character not found") is FailureClass.UNRECOGNIZED

    def test_terminal_wins_over_retryable(self):
        assert classify_failure("Invalid body (Timeout)") is FailureClass.TERMINAL


class TestLinearBackoff:
    def test_default_configuration(self):
        policy = LinearBackoff()
        assert policy.max_attempts == 3
        assert policy.step == 0.5

    def test_delays(self):
        policy = LinearBackoff(max_attempts=4, step=0.5)
        assert [policy.next_delay(n) for n in (1, 2, 3)] == [0.0, 0.5, 1.0]

    def test_retryable_within_budget(self):
        policy = LinearBackoff(max_attempts=3)
        assert policy.should_retry(1, FailureClass.RETRYABLE) is True
        assert policy.should_retry(2, FailureClass.RETRYABLE) is True
        assert policy.should_retry(3, FailureClass.RETRYABLE) is False

    def test_single_retry_capped(self):
        policy = LinearBackoff(max_attempts=5)
        assert policy.should_retry(1, FailureClass.SINGLE_RETRY) is True
        assert policy.should_retry(2, FailureClass.SINGLE_RETRY) is False

    def test_single_attempt_budget(self):
        policy = LinearBackoff(max_attempts=1)
        assert policy.should_retry(1, FailureClass.RETRYABLE) is False
        assert policy.should_retry(1, FailureClass.SINGLE_RETRY) is False

    @pytest.mark.parametrize("failure", [FailureClass.TERMINAL, FailureClass.UNRECOGNIZED, FailureClass.STAR_ID])
    def test_never_retried(self, failure):
        assert LinearBackoff().should_retry(1, failure) is False
