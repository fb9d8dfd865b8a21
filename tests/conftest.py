"""
Shared pytest fixtures for eveswag tests.

This module provides:
- A small Swagger document shaped like the real ESI spec
- A matching ``status.json`` feed
- ``FakeTransport``: scripted raw transport that records every request
- ``RecordingSleep`` and ``ManualClock`` so retries and lockouts run instantly

Usage:
    @pytest.mark.asyncio
    async def test_something(client, fake_transport):
        fake_transport.script(EsiResponse(200, {}, {"players": 1}))
        ...
"""

import copy
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure eveswag package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from eveswag.client import EsiClient
from eveswag.core.timestamps import ManualClock
from esi_doubles import (
    START_TIME,
    STATUS_FEED,
    SWAGGER_DOC,
    FakeTransport,
    RecordingLog,
    RecordingReport,
    RecordingSleep,
)

FIXTURES = Path(__file__).parent / "fixtures"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def swagger_doc() -> dict[str, Any]:
    """Fresh copy of the sample Swagger document."""
    return copy.deepcopy(SWAGGER_DOC)


@pytest.fixture
def status_feed() -> list[dict[str, Any]]:
    return copy.deepcopy(STATUS_FEED)


@pytest.fixture
def swagger_file() -> Path:
    return FIXTURES / "swagger.json"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START_TIME)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def recording_log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def recording_report() -> RecordingReport:
    return RecordingReport()


@pytest.fixture
def client(fake_transport, recording_sleep, recording_log, recording_report, clock) -> EsiClient:
    """Client wired to test doubles, no spec loaded."""
    return EsiClient(
        user_agent="eveswag tests (by Test Pilot)",
        transport=fake_transport,
        sleep=recording_sleep,
        log=recording_log,
        report=recording_report,
        clock=clock,
    )
