"""Availability lookup and booking against an external calendar provider."""

import logging
import re
import uuid
from datetime import datetime
from typing import Callable, Optional

import pytz

from models.entities import AvailabilityRequest, AvailabilityResult, BookingRequest, BookingResult
from models.errors import BookingEngineError, BookingRejected, InvalidParameters, ProviderUnavailable, Unauthorized
from services.availability_calculator import compute_slots, day_window
from services.engine_config import EngineConfig

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


class BookingCoordinator:
    """
    Stateless coordinator between callers and the calendar provider.

    The provider is any object exposing ``query_free_busy`` and
    ``insert_event`` with the signatures of GoogleCalendarClient. No locking
    is done between an availability query and a booking: a slot taken in
    between surfaces as BookingRejected from the provider.
    """

    def __init__(
        self,
        provider,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize booking coordinator."""
        self.provider = provider
        self.config = config or EngineConfig()
        self.clock = clock or utc_now

    def _require_token(self, access_token: Optional[str]) -> str:
        if not access_token or not access_token.strip():
            raise Unauthorized("Missing access token")
        return access_token

    def _query_busy(self, access_token: str, time_min: datetime, time_max: datetime, timezone: str):
        try:
            return self.provider.query_free_busy(
                access_token,
                time_min,
                time_max,
                timezone,
                calendar_id=self.config.calendar_id,
            )
        except BookingEngineError:
            raise
        except Exception as e:
            logger.exception("Unclassified free/busy failure")
            raise ProviderUnavailable(f"Free/busy query failed: {e}", details=repr(e)) from e

    def get_availability(
        self,
        access_token: Optional[str],
        request: AvailabilityRequest,
        exclude_past: bool = False,
    ) -> AvailabilityResult:
        """
        Fetch the day's busy intervals and compute bookable slots.

        Args:
            access_token: Bearer credential for the calendar owner
            request: Day and tuning parameters
            exclude_past: Drop slots starting at or before the current time

        Returns:
            AvailabilityResult; an empty slot list means the day is full,
            never that the provider failed

        Raises:
            Unauthorized, InvalidParameters, ProviderUnavailable
        """
        token = self._require_token(access_token)
        request.validate()

        window = day_window(request.date, request.timezone)
        busy = self._query_busy(token, window.start, window.end, request.timezone)
        slots = compute_slots(request, busy)

        if exclude_past:
            now = self.clock()
            slots = [slot for slot in slots if slot.start > now]

        logger.info(
            "Computed %d slot(s) for %s (%s) against %d busy interval(s)",
            len(slots), request.date.isoformat(), request.timezone, len(busy),
        )
        return AvailabilityResult(
            timezone=request.timezone,
            duration_minutes=int(request.slot_duration.total_seconds() // 60),
            slots=slots,
        )

    def _validate_booking(self, request: BookingRequest):
        """Local checks done before any provider call."""
        for name in ("timezone", "title", "description", "attendee_email"):
            value = getattr(request, name)
            if value is not None and not isinstance(value, str):
                raise InvalidParameters(f"{name} must be a string")
        slot = request.slot
        if not slot.start < slot.end:
            raise InvalidParameters("Slot start must be before end")
        try:
            pytz.timezone(request.timezone)
        except pytz.UnknownTimeZoneError:
            raise InvalidParameters(f"Unknown timezone: {request.timezone!r}")
        if slot.start <= self.clock():
            raise InvalidParameters(f"Slot {slot.start.isoformat()} is not in the future")
        if not request.title or not request.title.strip():
            raise InvalidParameters("Title must not be empty")
        if request.attendee_email and not EMAIL_PATTERN.match(request.attendee_email):
            raise InvalidParameters(f"Invalid attendee email: {request.attendee_email!r}")

    def _ensure_still_free(self, access_token: str, request: BookingRequest):
        slot = request.slot
        busy = self._query_busy(access_token, slot.start, slot.end, request.timezone)
        if any(slot.overlaps(b) for b in busy):
            raise BookingRejected("The selected slot is no longer available")

    def book(self, access_token: Optional[str], request: BookingRequest) -> BookingResult:
        """
        Reserve a slot on the provider calendar with a video conference.

        A fresh conferencing nonce is generated for every call, so a retry by
        the caller is a distinct attempt.

        Returns:
            BookingResult; ``meet_link`` is None when the provider attached
            no video entry point

        Raises:
            Unauthorized, InvalidParameters, BookingRejected, ProviderUnavailable
        """
        token = self._require_token(access_token)
        self._validate_booking(request)

        if self.config.revalidate_before_booking:
            self._ensure_still_free(token, request)

        request_id = uuid.uuid4().hex
        try:
            result = self.provider.insert_event(
                token,
                title=request.title,
                description=request.description,
                start=request.slot.start,
                end=request.slot.end,
                timezone=request.timezone,
                request_id=request_id,
                attendee_email=request.attendee_email,
                calendar_id=self.config.calendar_id,
            )
        except BookingEngineError as e:
            logger.warning("Booking %s failed with %s: %s", request_id, e.kind, e.message)
            raise
        except KeyboardInterrupt as e:
            # Cancelled mid-call: the provider may already have the event.
            logger.warning("Booking %s cancelled while in flight", request_id)
            raise ProviderUnavailable(
                "Booking was cancelled before the provider response was read",
                details={"requestId": request_id},
                may_have_succeeded=True,
            ) from e
        except Exception as e:
            logger.exception("Unclassified booking failure (request_id=%s)", request_id)
            raise ProviderUnavailable(
                f"Booking failed: {e}", details=repr(e), may_have_succeeded=True
            ) from e

        logger.info(
            "Booked event %s for %s-%s (request_id=%s, meet=%s)",
            result.event_id, request.slot.start.isoformat(), request.slot.end.isoformat(),
            request_id, bool(result.meet_link),
        )
        return result
