"""Retry policy and failure classification for ESI calls.

ESI failures are recognised by their text: the upstream and the transport
report them as messages, not as a stable set of exception types. Each
failure is sorted into one of a handful of classes, and the policy decides
how long to wait before the next attempt.

Example:
    >>> policy = LinearBackoff(max_attempts=3, step=0.5)
    >>> [policy.next_delay(attempt) for attempt in (1, 2)]
    [0.0, 0.5]
    >>> classify_failure("Timeout: read timed out")
    <FailureClass.RETRYABLE: 'retryable'>
"""

from dataclasses import dataclass
from enum import Enum

# Caller bugs: retrying can't help.
TERMINAL_SIGNATURES = (
    "Invalid body",
    "failed to coerce value",
)

# Transient network and upstream conditions.
RETRYABLE_SIGNATURES = (
    "Timeout",
    "ENOTFOUND",
    "ECONNRESET",
    "EAI_AGAIN",
    "Bad Gateway",
    "Service Unavailable",
    "Failed to fetch access data",
)

# SSO error that rarely clears on repetition; gets exactly one retry.
SINGLE_RETRY_SIGNATURES = (
    "no JWK available for datasource",
)

# Legacy upstream bug, https://github.com/esi/esi-issues/issues/532
STAR_ID_SIGNATURE = "'star_id'"


class FailureClass(str, Enum):
    """How the retry loop treats a failure."""

    TERMINAL = "terminal"            # Raise immediately
    STAR_ID = "star_id"              # Synthesize a response from the payload
    RETRYABLE = "retryable"          # Retry while attempts remain
    SINGLE_RETRY = "single_retry"    # Retry once at most
    UNRECOGNIZED = "unrecognized"    # Raise immediately


def classify_failure(message: str) -> FailureClass:
    """Sort an error message into a FailureClass. First match wins."""
    if any(sig in message for sig in TERMINAL_SIGNATURES):
        return FailureClass.TERMINAL
    if STAR_ID_SIGNATURE in message:
        return FailureClass.STAR_ID
    if any(sig in message for sig in SINGLE_RETRY_SIGNATURES):
        return FailureClass.SINGLE_RETRY
    if any(sig in message for sig in RETRYABLE_SIGNATURES):
        return FailureClass.RETRYABLE
    return FailureClass.UNRECOGNIZED


@dataclass(frozen=True)
class LinearBackoff:
    """Linear backoff counted in total attempts.

    Delay before attempt ``n + 1`` is ``(n - 1) * step``: no wait before the
    first retry, then one more step per attempt.

    Attributes:
        max_attempts: Total attempts including the first
        step: Delay increment in seconds
    """

    max_attempts: int = 3
    step: float = 0.5

    def next_delay(self, attempt: int) -> float:
        """Delay after failed ``attempt`` (1-based)."""
        return max(attempt - 1, 0) * self.step

    def should_retry(self, attempt: int, failure: FailureClass) -> bool:
        """Check if another attempt follows failed ``attempt``."""
        if failure is FailureClass.SINGLE_RETRY:
            return attempt < min(2, self.max_attempts)
        if failure is FailureClass.RETRYABLE:
            return attempt < self.max_attempts
        return False


__all__ = [
    "TERMINAL_SIGNATURES",
    "RETRYABLE_SIGNATURES",
    "SINGLE_RETRY_SIGNATURES",
    "STAR_ID_SIGNATURE",
    "FailureClass",
    "classify_failure",
    "LinearBackoff",
]
