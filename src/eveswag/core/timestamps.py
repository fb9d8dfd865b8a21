"""Epoch-second clock helpers (stdlib-only).

The lockout and health refresh logic work in whole epoch seconds. Components
take a ``clock`` callable so tests can move time explicitly.
"""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def epoch() -> int:
    """Current time in whole epoch seconds."""
    return int(time.time())


class ManualClock:
    """Settable clock for tests and replay.

    Example:
        >>> clock = ManualClock(1_000)
        >>> clock.advance(60)
        >>> clock()
        1060
    """

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds
