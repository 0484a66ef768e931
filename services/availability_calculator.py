"""Core slot computation: pure, no I/O."""

from datetime import date, datetime, time, timedelta
from typing import Iterable

import pytz

from models.entities import AvailabilityRequest, Slot, TimeInterval
from models.errors import InvalidParameters


def day_window(day: date, timezone: str) -> TimeInterval:
    """Local midnight to the next local midnight for ``day`` in ``timezone``."""
    try:
        tz = pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError:
        raise InvalidParameters(f"Unknown timezone: {timezone!r}")
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return TimeInterval(start=start, end=end)


def _align_up(wall_clock: datetime, stride: timedelta) -> datetime:
    """Round a naive local time up to the next stride multiple since midnight."""
    since_midnight = wall_clock - datetime.combine(wall_clock.date(), time.min)
    remainder = since_midnight % stride
    if remainder:
        return wall_clock + (stride - remainder)
    return wall_clock


def compute_slots(
    request: AvailabilityRequest,
    busy: Iterable[TimeInterval],
) -> list[Slot]:
    """
    Compute bookable slots for one workday.

    Candidates start on stride boundaries (relative to local midnight) and
    advance by ``slot_stride``; any candidate overlapping a busy interval is
    dropped. Busy input may be unsorted and overlapping. Past slots are not
    filtered here.

    Args:
        request: Day, zone, workday bounds, slot duration and stride
        busy: Busy intervals reported by the calendar provider

    Returns:
        Slots in strictly increasing start order

    Raises:
        InvalidParameters: if the request or a busy interval is malformed
    """
    request.validate()
    tz = request.tzinfo()

    busy_intervals = list(busy)
    for interval in busy_intervals:
        if not isinstance(interval, TimeInterval):
            raise InvalidParameters(f"Busy entry is not an interval: {interval!r}")

    day_end = tz.localize(datetime.combine(request.date, request.workday_end))
    wall = _align_up(datetime.combine(request.date, request.workday_start), request.slot_stride)
    wall_end = datetime.combine(request.date, request.workday_end)

    # Step in local wall-clock time so starts stay on stride boundaries
    # across DST shifts; each slot still lasts slot_duration of real time.
    slots: list[Slot] = []
    while wall < wall_end:
        start = tz.localize(wall)
        if tz.normalize(start).replace(tzinfo=None) != wall:
            # Wall time falls in the spring-forward gap and does not exist.
            wall += request.slot_stride
            continue
        end = tz.normalize(start + request.slot_duration)
        if end > day_end:
            wall += request.slot_stride
            continue
        candidate = Slot(start=start, end=end)
        if not any(candidate.overlaps(b) for b in busy_intervals):
            slots.append(candidate)
        wall += request.slot_stride

    return slots
