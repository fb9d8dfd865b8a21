"""Error-limit lockout -- a global fail-fast window for one client.

ESI counts every 4xx/5xx a client produces. When the budget runs out the
client is banned for the rest of the window, so once the remaining budget is
nearly gone every operation on the instance stops touching the network until
the window resets.

States:
    OPEN:   ``locked_until`` is None or in the past, requests pass through
    LOCKED: ``locked_until`` is in the future, requests rejected immediately

Unlike a per-service circuit breaker there is no half-open probing: the
deadline comes from ESI itself, so the lock simply expires.

Example:
    >>> lockout = ErrorLimitLockout()
    >>> lockout.observe_headers({"x-esi-error-limit-remain": "1",
    ...                          "x-esi-error-limit-reset": "2"})
    >>> lockout.check()
    Traceback (most recent call last):
    ...
    LockoutError: Too many errors. ESI is locked for 2 min
"""

import math
from collections.abc import Mapping

from eveswag.core.errors import (
    ERROR_LIMIT_REMAIN_HEADER,
    ERROR_LIMIT_RESET_HEADER,
    LockoutError,
)
from eveswag.core.timestamps import Clock, epoch

LOCKOUT_MESSAGE = "Too many errors. ESI is locked for"
ERROR_LIMIT_SIGNATURE = "This software has exceeded the error limit for ESI"
# Arm the lockout once the remaining budget drops to this value.
REMAIN_THRESHOLD = 2
# Fixed lockout when only the error text reveals the ban.
SIGNATURE_LOCKOUT_SECONDS = 60


class ErrorLimitLockout:
    """Nullable "locked until" deadline, in epoch seconds.

    ``locked_until`` may be reset to None by the owner to force calls
    through earlier.
    """

    def __init__(self, clock: Clock = epoch):
        self._clock = clock
        self.locked_until: int | None = None

    @property
    def active(self) -> bool:
        """True while the deadline is in the future. Clears an expired lock."""
        if self.locked_until is not None and self.locked_until > self._clock():
            return True
        self.locked_until = None
        return False

    @property
    def remaining_minutes(self) -> int:
        if not self.active:
            return 0
        return math.ceil((self.locked_until - self._clock()) / 60)

    def check(self) -> None:
        """Raise LockoutError if locked.

        Raises:
            LockoutError: While the deadline is in the future
        """
        if self.active:
            raise self.rejection()

    def rejection(self, cause: BaseException | None = None) -> LockoutError:
        """Build the error reported while locked."""
        return LockoutError(
            f"{LOCKOUT_MESSAGE} {self.remaining_minutes} min",
            locked_until=self.locked_until,
            cause=cause,
        )

    def observe_headers(self, headers: Mapping[str, str] | None) -> None:
        """Arm from ``x-esi-error-limit-*`` headers when the budget is low.

        The reset header is read as minutes from now.
        """
        if not headers:
            return
        remain = str(headers.get(ERROR_LIMIT_REMAIN_HEADER, ""))
        if not remain.isdigit() or int(remain) > REMAIN_THRESHOLD:
            return
        reset = str(headers.get(ERROR_LIMIT_RESET_HEADER, "0"))
        minutes = int(reset) if reset.isdigit() else 0
        self.locked_until = self._clock() + minutes * 60

    def observe_error(self, message: str) -> None:
        """Arm a fixed lockout when the error text reports an exhausted budget."""
        if ERROR_LIMIT_SIGNATURE in message:
            self.arm(SIGNATURE_LOCKOUT_SECONDS)

    def arm(self, seconds: int) -> None:
        self.locked_until = self._clock() + seconds

    def clear(self) -> None:
        self.locked_until = None


__all__ = [
    "ErrorLimitLockout",
    "LOCKOUT_MESSAGE",
    "ERROR_LIMIT_SIGNATURE",
    "REMAIN_THRESHOLD",
    "SIGNATURE_LOCKOUT_SECONDS",
]
