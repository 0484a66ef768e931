"""POST-shaped handlers exposing the engine to a calling layer.

Each handler takes a JSON-like payload and returns ``(status, body)``. Errors
come back as ``{"error": {"kind", "message", ...}}`` with the kind's status.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional, Tuple

import pytz

from models.entities import AvailabilityRequest, BookingRequest, Slot
from models.errors import BookingEngineError, InvalidParameters
from services.booking_coordinator import BookingCoordinator

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30
DEFAULT_STRIDE_MINUTES = 30
DEFAULT_WORKDAY_START = "09:00"
DEFAULT_WORKDAY_END = "18:00"
DEFAULT_SUMMARY = "Meeting"
DEFAULT_DESCRIPTION = "Scheduled via booking assistant."

Response = Tuple[int, Dict[str, Any]]


def _parse_date(value: Any) -> date:
    if not value:
        raise InvalidParameters("Missing date")
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidParameters(f"Invalid date {value!r}, expected YYYY-MM-DD")


def _parse_time_of_day(value: Any, field_name: str) -> time:
    try:
        hours, minutes = (int(part) for part in str(value).split(":"))
        return time(hours, minutes)
    except (TypeError, ValueError):
        raise InvalidParameters(f"Invalid {field_name} {value!r}, expected HH:MM")


def _parse_minutes(value: Any, field_name: str) -> timedelta:
    if isinstance(value, bool):
        raise InvalidParameters(f"{field_name} must be a whole number of minutes")
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise InvalidParameters(f"{field_name} must be a whole number of minutes")
    if minutes <= 0:
        raise InvalidParameters(f"{field_name} must be positive")
    return timedelta(minutes=minutes)


def _parse_instant(value: Any, field_name: str, timezone: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as local to ``timezone``."""
    if not value:
        raise InvalidParameters(f"Missing {field_name}")
    text = str(value).strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidParameters(f"Invalid {field_name} {value!r}, expected ISO 8601")
    if parsed.tzinfo is None:
        try:
            parsed = pytz.timezone(timezone).localize(parsed)
        except pytz.UnknownTimeZoneError:
            raise InvalidParameters(f"Unknown timezone: {timezone!r}")
    return parsed


def _optional_text(payload: Dict[str, Any], key: str) -> Optional[str]:
    """Return a string field, or None if absent; other types are invalid."""
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidParameters(f"{key} must be a string")
    return value


def _parse_flag(value: Any, field_name: str) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("", "0", "false", "no", "off"):
            return False
    raise InvalidParameters(f"{field_name} must be a boolean")


def _error_response(error: BookingEngineError) -> Response:
    return error.status_code, error.to_dict()


def handle_availability(
    payload: Optional[Dict[str, Any]],
    access_token: Optional[str],
    coordinator: BookingCoordinator,
) -> Response:
    """
    Compute slots for a day.

    Payload keys: date (required), timezone, durationMinutes, workdayStart,
    workdayEnd, strideMinutes (or slotIntervalMinutes), excludePast.
    """
    payload = payload or {}
    try:
        stride = payload.get("strideMinutes", payload.get("slotIntervalMinutes", DEFAULT_STRIDE_MINUTES))
        request = AvailabilityRequest(
            date=_parse_date(payload.get("date")),
            timezone=_optional_text(payload, "timezone") or coordinator.config.default_timezone,
            slot_duration=_parse_minutes(payload.get("durationMinutes", DEFAULT_DURATION_MINUTES), "durationMinutes"),
            workday_start=_parse_time_of_day(payload.get("workdayStart", DEFAULT_WORKDAY_START), "workdayStart"),
            workday_end=_parse_time_of_day(payload.get("workdayEnd", DEFAULT_WORKDAY_END), "workdayEnd"),
            slot_stride=_parse_minutes(stride, "strideMinutes"),
        )
        result = coordinator.get_availability(
            access_token, request, exclude_past=_parse_flag(payload.get("excludePast"), "excludePast")
        )
    except BookingEngineError as e:
        logger.info("Availability request failed: %s: %s", e.kind, e.message)
        return _error_response(e)
    return 200, result.to_dict()


def handle_book(
    payload: Optional[Dict[str, Any]],
    access_token: Optional[str],
    coordinator: BookingCoordinator,
) -> Response:
    """
    Book a slot.

    Payload keys: start, end (required, ISO 8601), timezone, summary (or
    title), description, attendeeEmail.
    """
    payload = payload or {}
    try:
        timezone = _optional_text(payload, "timezone") or coordinator.config.default_timezone
        summary = _optional_text(payload, "summary")
        title = _optional_text(payload, "title")
        description = _optional_text(payload, "description")
        attendee_email = _optional_text(payload, "attendeeEmail")
        slot = Slot(
            start=_parse_instant(payload.get("start"), "start", timezone),
            end=_parse_instant(payload.get("end"), "end", timezone),
        )
        request = BookingRequest(
            slot=slot,
            timezone=timezone,
            title=summary or title or DEFAULT_SUMMARY,
            description=DEFAULT_DESCRIPTION if description is None else description,
            attendee_email=attendee_email or None,
        )
        result = coordinator.book(access_token, request)
    except BookingEngineError as e:
        logger.info("Booking request failed: %s: %s", e.kind, e.message)
        return _error_response(e)
    return 200, {"ok": True, **result.to_dict()}
