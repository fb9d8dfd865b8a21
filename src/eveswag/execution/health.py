"""Health monitor -- per-operation ESI status from the ``status.json`` feed.

Manifesto:
    ESI publishes the health of every route. Calling a red route burns
    error budget for nothing, so the executor checks the status before each
    call. The feed is cached for ``ttl`` seconds; when it can't be read the
    monitor assumes everything is fine and tries again on the next call,
    because the feed itself is one of the flakier endpoints.

ARCHITECTURE
────────────
::

    HealthMonitor
      ├── .refresh(force=False)   ─ await pending, TTL check, fetch, rebuild
      ├── .schedule_refresh()     ─ background forced refresh after a load
      ├── .status(op)             ─ HealthStatus, point-in-time read
      ├── .label(op)              ─ "unknown" | "green" | "yellow" | "red"
      ├── .health_score           ─ 0..100, higher is healthier
      └── .reset()                ─ forget everything

    Feed record → operation id:
        {"method": "get", "route": "/characters/{character_id}/"}
        → "get_characters_character_id"

Concurrency: writes replace whole values (map, score, timestamp). Two
refreshes racing both fetch; the later write wins.

Tags:
    eveswag, execution, health, status, ttl

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import math
import re
from collections.abc import Awaitable, Callable, Mapping
from enum import IntEnum
from types import MappingProxyType
from typing import Any

from eveswag.core.logging import LogCallback, structlog_sink
from eveswag.core.timestamps import Clock, epoch

FeedFetcher = Callable[[], Awaitable[Any]]

DEFAULT_TTL = 300

_ROUTE_STRIP = re.compile(r"/$|[{}]")


class HealthStatus(IntEnum):
    """Per-operation status level; higher is worse."""

    UNKNOWN = -1
    GREEN = 0
    YELLOW = 1
    RED = 2

    @property
    def label(self) -> str:
        return self.name.lower()


_FEED_STATUS = {
    "green": HealthStatus.GREEN,
    "yellow": HealthStatus.YELLOW,
    "red": HealthStatus.RED,
}

# Score weight per level.
_WEIGHTS = {
    HealthStatus.GREEN: 0.0,
    HealthStatus.YELLOW: 0.5,
    HealthStatus.RED: 1.0,
}


def feed_operation_id(method: str, route: str) -> str:
    """Synthesize the operation id a feed record refers to."""
    return method + _ROUTE_STRIP.sub("", route).replace("/", "_")


def compute_health_score(levels: list[HealthStatus]) -> int:
    """``100 - round(mean(weight) * 100)``; 0 for an empty feed."""
    if not levels:
        return 0
    mean = sum(_WEIGHTS.get(level, 0.0) for level in levels) / len(levels)
    # half-up rounding, not banker's
    return 100 - math.floor(mean * 100 + 0.5)


class HealthMonitor:
    """Caches the status feed and answers per-operation status queries.

    Args:
        fetch_feed: Async callable returning the decoded feed (a list)
        ttl: Seconds a successful fetch stays fresh
        log: ``(level, *parts)`` callback
        clock: Epoch-second clock
    """

    def __init__(
        self,
        fetch_feed: FeedFetcher,
        *,
        ttl: float = DEFAULT_TTL,
        log: LogCallback = structlog_sink,
        clock: Clock = epoch,
    ):
        self.fetch_feed = fetch_feed
        self.ttl = ttl
        self.log = log
        self._clock = clock
        self._statuses: Mapping[str, HealthStatus] = MappingProxyType({})
        self.health_score = 0
        self.last_refreshed = 0
        self._pending: asyncio.Task | None = None

    @property
    def statuses(self) -> Mapping[str, HealthStatus]:
        """Read-only snapshot of the current status map."""
        return self._statuses

    @property
    def is_fresh(self) -> bool:
        return self.last_refreshed + self.ttl > self._clock()

    def status(self, operation_id: str) -> HealthStatus:
        """Last known status; UNKNOWN when the feed never mentioned it."""
        return self._statuses.get(operation_id, HealthStatus.UNKNOWN)

    def label(self, operation_id: str) -> str:
        return self.status(operation_id).label

    def reset(self) -> None:
        self._statuses = MappingProxyType({})
        self.health_score = 0
        self.last_refreshed = 0

    def schedule_refresh(self) -> asyncio.Task | None:
        """Start a forced refresh in the background.

        Returns None when no event loop is running; the next ``refresh()``
        call fetches instead.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._pending = loop.create_task(self._fetch())
        return self._pending

    async def refresh(self, force: bool = False) -> None:
        """Fetch the feed unless the last fetch is still fresh."""
        if self._pending is not None and not self._pending.done():
            await self._pending
        if not force and self.is_fresh:
            return
        await self._fetch()

    async def _fetch(self) -> None:
        self.last_refreshed = self._clock()
        try:
            feed = await self.fetch_feed()
        except Exception as e:
            self.log("info", "esi_health_fetch_error", str(e))
            feed = None
        else:
            if not isinstance(feed, list):
                self.log("info", "esi_health_parse_error")
                feed = None

        if feed is None:
            # the feed itself is unreliable: assume healthy, retry next call
            self.health_score = 100
            self.last_refreshed = 0
            self.log("info", "esi_health_unknown")
            return

        statuses: dict[str, HealthStatus] = {}
        levels: list[HealthStatus] = []
        for record in feed:
            if not isinstance(record, Mapping) or not record.get("tags"):
                continue
            op = feed_operation_id(str(record.get("method", "")), str(record.get("route", "")))
            level = _FEED_STATUS.get(record.get("status"), HealthStatus.GREEN)
            statuses[op] = level
            levels.append(level)

        self._statuses = MappingProxyType(statuses)
        self.health_score = compute_health_score(levels)
        self.log("info", "esi_health", f"{self.health_score}%")


__all__ = [
    "HealthStatus",
    "HealthMonitor",
    "DEFAULT_TTL",
    "feed_operation_id",
    "compute_health_score",
]
