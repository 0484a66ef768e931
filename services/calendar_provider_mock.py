"""Mock calendar provider with synthetic busy data."""

import uuid
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from models.entities import BookingResult, TimeInterval
from models.errors import BookingRejected, ProviderUnavailable, Unauthorized


class CalendarProviderMock:
    """In-memory stand-in for GoogleCalendarClient; records events instead of creating them."""

    def __init__(
        self,
        timezone: str = "America/New_York",
        days: int = 30,
        attach_meet_link: bool = True,
        valid_tokens: Optional[set[str]] = None,
        seed_events: bool = True,
    ):
        """
        Initialize with synthetic busy blocks for the next ``days`` days.

        Args:
            timezone: Zone the synthetic meetings are placed in
            attach_meet_link: Whether created events get a video entry point
            valid_tokens: If given, any other token is rejected as Unauthorized
        """
        self.timezone = timezone
        self.attach_meet_link = attach_meet_link
        self.valid_tokens = valid_tokens
        self.fail_with: Optional[Exception] = None
        self.busy: list[TimeInterval] = []
        self.created_events: list[dict] = []
        self.free_busy_calls: list[dict] = []
        if seed_events:
            self._initialize_synthetic_events(days)

    def _initialize_synthetic_events(self, days: int):
        """Generate a standup every weekday and a team meeting every other day."""
        tz = pytz.timezone(self.timezone)
        today = date.today()

        for day_offset in range(days):
            current_date = today + timedelta(days=day_offset)
            if current_date.weekday() >= 5:
                continue

            self.busy.append(TimeInterval(
                start=tz.localize(datetime.combine(current_date, time(9, 0))),
                end=tz.localize(datetime.combine(current_date, time(9, 30))),
            ))
            if day_offset % 2 == 0:
                self.busy.append(TimeInterval(
                    start=tz.localize(datetime.combine(current_date, time(14, 0))),
                    end=tz.localize(datetime.combine(current_date, time(15, 0))),
                ))

    def _check(self, access_token: str):
        if self.fail_with is not None:
            raise self.fail_with
        if self.valid_tokens is not None and access_token not in self.valid_tokens:
            raise Unauthorized("Invalid Credentials")

    def add_busy(self, start: datetime, end: datetime) -> TimeInterval:
        """Mark a window as busy."""
        interval = TimeInterval(start=start, end=end)
        self.busy.append(interval)
        return interval

    def query_free_busy(
        self,
        access_token: str,
        time_min: datetime,
        time_max: datetime,
        timezone: str,
        calendar_id: Optional[str] = None,
    ) -> list[TimeInterval]:
        """Return busy intervals intersecting [time_min, time_max)."""
        self._check(access_token)
        self.free_busy_calls.append({
            "time_min": time_min,
            "time_max": time_max,
            "timezone": timezone,
            "calendar_id": calendar_id or "primary",
        })
        window = TimeInterval(start=time_min, end=time_max)
        return [b for b in self.busy if b.overlaps(window)]

    def insert_event(
        self,
        access_token: str,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
        timezone: str,
        request_id: str,
        attendee_email: Optional[str] = None,
        calendar_id: Optional[str] = None,
    ) -> BookingResult:
        """Record an event, rejecting it if the window is already busy."""
        self._check(access_token)
        interval = TimeInterval(start=start, end=end)
        if any(interval.overlaps(b) for b in self.busy):
            raise BookingRejected(
                "The requested time conflicts with an existing event", provider_status=409
            )

        event_id = uuid.uuid4().hex[:26]
        self.busy.append(interval)
        self.created_events.append({
            "id": event_id,
            "summary": title,
            "description": description,
            "start": start,
            "end": end,
            "timezone": timezone,
            "request_id": request_id,
            "attendee_email": attendee_email,
            "calendar_id": calendar_id or "primary",
        })

        meet_link = None
        if self.attach_meet_link:
            code = uuid.uuid5(uuid.NAMESPACE_OID, request_id).hex
            meet_link = f"https://meet.google.com/{code[:3]}-{code[3:7]}-{code[7:10]}"

        return BookingResult(
            event_id=event_id,
            html_link=f"https://www.google.com/calendar/event?eid={event_id}",
            meet_link=meet_link,
        )

    def fail_next_calls(self, error: Optional[Exception] = None):
        """Make every following call raise ``error`` (clear with None)."""
        self.fail_with = error

    def simulate_outage(self):
        self.fail_next_calls(ProviderUnavailable("Simulated provider outage"))
