"""Pytest fixtures for booking engine tests."""

import logging
from datetime import date, datetime, time, timedelta

import httpx
import pytest
import pytz

from models.entities import AvailabilityRequest, TimeInterval
from services.booking_coordinator import BookingCoordinator
from services.calendar_provider_mock import CalendarProviderMock
from services.engine_config import EngineConfig
from services.google_calendar_client import GoogleCalendarClient

# Configure logging
logging.basicConfig(level=logging.INFO)

TIMEZONE = "America/New_York"
TEST_DAY = date(2026, 6, 10)  # a Wednesday, EDT (UTC-4)
TOKEN = "test-access-token"


@pytest.fixture
def tz():
    return pytz.timezone(TIMEZONE)


@pytest.fixture
def local(tz):
    """Build an aware datetime on TEST_DAY from HH, MM in the test zone."""
    def _local(hour: int, minute: int = 0, day: date = TEST_DAY) -> datetime:
        return tz.localize(datetime.combine(day, time(hour, minute)))
    return _local


@pytest.fixture
def busy(local):
    """Build a busy interval on TEST_DAY from local (h, m) pairs."""
    def _busy(start: tuple, end: tuple) -> TimeInterval:
        return TimeInterval(start=local(*start), end=local(*end))
    return _busy


@pytest.fixture
def day_request():
    """Default 09:00-18:00 request with 30 minute slots and stride."""
    def _request(**overrides) -> AvailabilityRequest:
        params = {
            "date": TEST_DAY,
            "timezone": TIMEZONE,
            "slot_duration": timedelta(minutes=30),
            "workday_start": time(9, 0),
            "workday_end": time(18, 0),
            "slot_stride": timedelta(minutes=30),
        }
        params.update(overrides)
        return AvailabilityRequest(**params)
    return _request


@pytest.fixture
def fixed_now():
    return datetime(2026, 6, 1, 12, 0, tzinfo=pytz.UTC)


@pytest.fixture
def mock_provider():
    """Empty in-memory calendar."""
    return CalendarProviderMock(timezone=TIMEZONE, seed_events=False)


@pytest.fixture
def engine_config():
    return EngineConfig()


@pytest.fixture
def coordinator(mock_provider, engine_config, fixed_now):
    return BookingCoordinator(mock_provider, engine_config, clock=lambda: fixed_now)


@pytest.fixture
def google_client(engine_config):
    """GoogleCalendarClient wired to an httpx.MockTransport handler."""
    clients = []

    def _client(handler) -> GoogleCalendarClient:
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(http_client)
        return GoogleCalendarClient(engine_config, http_client=http_client)

    yield _client
    for http_client in clients:
        http_client.close()
