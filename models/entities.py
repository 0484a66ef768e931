"""Domain models for the Availability & Booking Engine."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from models.errors import InvalidParameters


@dataclass(frozen=True)
class TimeInterval:
    """A half-open [start, end) range between two timezone-aware instants."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidParameters("Interval bounds must be timezone-aware")
        if not self.start < self.end:
            raise InvalidParameters(
                f"Interval start must be before end ({self.start.isoformat()} >= {self.end.isoformat()})"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        """Half-open overlap: back-to-back intervals do not overlap."""
        return self.start < other.end and self.end > other.start

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class Slot(TimeInterval):
    """A candidate meeting window; has no identity until booked."""


@dataclass(frozen=True)
class AvailabilityRequest:
    """Parameters for computing the bookable slots of a single day."""
    date: date
    timezone: str
    slot_duration: timedelta = timedelta(minutes=30)
    workday_start: time = time(9, 0)
    workday_end: time = time(18, 0)
    slot_stride: timedelta = timedelta(minutes=30)

    def tzinfo(self) -> pytz.BaseTzInfo:
        """Resolve the IANA zone, failing with InvalidParameters if unknown."""
        try:
            return pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise InvalidParameters(f"Unknown timezone: {self.timezone!r}")

    def validate(self) -> None:
        """
        Check the request invariants.

        Raises:
            InvalidParameters: unknown zone, non-positive durations, an empty
                workday, or a slot longer than the workday.
        """
        self.tzinfo()
        if self.slot_duration <= timedelta(0):
            raise InvalidParameters("Slot duration must be positive")
        if self.slot_stride <= timedelta(0):
            raise InvalidParameters("Slot stride must be positive")
        if not self.workday_start < self.workday_end:
            raise InvalidParameters(
                f"Workday start {self.workday_start:%H:%M} must be before end {self.workday_end:%H:%M}"
            )
        workday_length = (
            datetime.combine(self.date, self.workday_end)
            - datetime.combine(self.date, self.workday_start)
        )
        if self.slot_duration > workday_length:
            raise InvalidParameters("Slot duration exceeds the workday")


@dataclass(frozen=True)
class BookingRequest:
    """A caller's commitment to one slot. Never mutated after creation."""
    slot: Slot
    timezone: str
    title: str
    description: str = ""
    attendee_email: Optional[str] = None


@dataclass(frozen=True)
class BookingResult:
    """Normalized outcome of a successful event creation."""
    event_id: str
    html_link: str
    meet_link: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "eventId": self.event_id,
            "htmlLink": self.html_link,
            "meetLink": self.meet_link,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    """Slots for a day plus the parameters they were computed with."""
    timezone: str
    duration_minutes: int
    slots: list[Slot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timezone": self.timezone,
            "durationMinutes": self.duration_minutes,
            "slots": [slot.to_dict() for slot in self.slots],
        }
