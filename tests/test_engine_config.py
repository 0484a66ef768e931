"""Tests for environment-driven configuration."""

import pytest

from models.errors import BookingRejected, InvalidParameters, ProviderUnavailable, Unauthorized
from services.engine_config import GOOGLE_CALENDAR_API_BASE_URL, EngineConfig

ENV_VARS = [
    "GOOGLE_CALENDAR_BASE_URL",
    "GOOGLE_CALENDAR_ID",
    "BOOKING_FREEBUSY_TIMEOUT",
    "BOOKING_CREATE_TIMEOUT",
    "BOOKING_REVALIDATE",
    "BOOKING_DEFAULT_TIMEZONE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestEngineConfig:

    def test_defaults(self, clean_env):
        config = EngineConfig.from_env()

        assert config.base_url == GOOGLE_CALENDAR_API_BASE_URL
        assert config.calendar_id == "primary"
        assert config.freebusy_timeout == 10.0
        assert config.create_timeout == 15.0
        assert config.revalidate_before_booking is False
        assert config.default_timezone == "America/New_York"

    def test_from_env(self, clean_env):
        clean_env.setenv("GOOGLE_CALENDAR_BASE_URL", "http://localhost:8080/calendar/v3/")
        clean_env.setenv("GOOGLE_CALENDAR_ID", "team@example.com")
        clean_env.setenv("BOOKING_FREEBUSY_TIMEOUT", "2.5")
        clean_env.setenv("BOOKING_CREATE_TIMEOUT", "30")
        clean_env.setenv("BOOKING_REVALIDATE", "true")
        clean_env.setenv("BOOKING_DEFAULT_TIMEZONE", "Asia/Kolkata")

        config = EngineConfig.from_env()

        assert config.base_url == "http://localhost:8080/calendar/v3"
        assert config.calendar_id == "team@example.com"
        assert config.freebusy_timeout == 2.5
        assert config.create_timeout == 30.0
        assert config.revalidate_before_booking is True
        assert config.default_timezone == "Asia/Kolkata"

    def test_prefix(self, clean_env):
        clean_env.setenv("STAGING_GOOGLE_CALENDAR_ID", "staging")

        assert EngineConfig.from_env("STAGING_").calendar_id == "staging"

    @pytest.mark.parametrize("value", ["ten", "0", "-1"])
    def test_invalid_timeout(self, clean_env, value):
        clean_env.setenv("BOOKING_FREEBUSY_TIMEOUT", value)

        with pytest.raises(ValueError, match="BOOKING_FREEBUSY_TIMEOUT"):
            EngineConfig.from_env()

    @pytest.mark.parametrize("value", ["0", "false", "no", "off"])
    def test_revalidate_falsy(self, clean_env, value):
        clean_env.setenv("BOOKING_REVALIDATE", value)

        assert EngineConfig.from_env().revalidate_before_booking is False


class TestErrorTaxonomy:

    @pytest.mark.parametrize("error_cls, status", [
        (InvalidParameters, 400),
        (Unauthorized, 401),
        (ProviderUnavailable, 503),
        (BookingRejected, 409),
    ])
    def test_kinds_and_statuses(self, error_cls, status):
        error = error_cls("boom", details={"raw": 1})

        assert error.status_code == status
        assert error.to_dict()["error"]["kind"] == error_cls.__name__
        assert error.to_dict()["error"]["details"] == {"raw": 1}

    def test_only_provider_unavailable_is_retryable(self):
        assert ProviderUnavailable.retryable is True
        assert not any(cls.retryable for cls in (InvalidParameters, Unauthorized, BookingRejected))

    def test_details_omitted_when_absent(self):
        assert "details" not in BookingRejected("taken").to_dict()["error"]
