"""Tests for the markdown response formatter."""

from models.entities import AvailabilityResult, BookingResult, Slot
from models.errors import BookingRejected, ProviderUnavailable
from services.response_formatter import ResponseFormatter

from conftest import TIMEZONE


def test_format_slot_in_local_time(local):
    slot = Slot(start=local(14), end=local(14, 30))

    assert ResponseFormatter.format_slot(slot, TIMEZONE) == "02:00 PM – 02:30 PM"
    assert ResponseFormatter.format_slot(slot, "UTC") == "06:00 PM – 06:30 PM"


def test_format_availability_lists_slots(local):
    result = AvailabilityResult(
        timezone=TIMEZONE,
        duration_minutes=30,
        slots=[Slot(start=local(9), end=local(9, 30)), Slot(start=local(10), end=local(10, 30))],
    )

    text = ResponseFormatter.format_availability(result)

    assert "Available Times" in text
    assert "Wednesday, June 10" in text
    assert "1. 09:00 AM – 09:30 AM" in text
    assert "2. 10:00 AM – 10:30 AM" in text


def test_format_availability_truncates(local):
    slots = [Slot(start=local(9, m), end=local(9, m + 5)) for m in range(0, 30, 5)]
    result = AvailabilityResult(timezone=TIMEZONE, duration_minutes=5, slots=slots)

    assert "+ 4 more slot(s)" in ResponseFormatter.format_availability(result, limit=2)


def test_format_availability_empty():
    text = ResponseFormatter.format_availability(AvailabilityResult(timezone=TIMEZONE, duration_minutes=30))

    assert "fully booked" in text


def test_format_booking_confirmation(local):
    slot = Slot(start=local(10), end=local(10, 30))

    with_link = ResponseFormatter.format_booking_confirmation(
        BookingResult("evt_1", "https://cal/evt_1", "https://meet.google.com/abc-defg-hij"), slot, TIMEZONE
    )
    without_link = ResponseFormatter.format_booking_confirmation(
        BookingResult("evt_1", "https://cal/evt_1"), slot, TIMEZONE
    )

    assert "Meeting booked!" in with_link
    assert "https://meet.google.com/abc-defg-hij" in with_link
    assert "No video link" in without_link


def test_format_error_hints():
    rejected = ResponseFormatter.format_error(BookingRejected("Slot taken"))
    lost = ResponseFormatter.format_error(ProviderUnavailable("Response lost", may_have_succeeded=True))

    assert "BookingRejected" in rejected
    assert "Refresh availability and pick another slot" in rejected
    assert "check whether the meeting was created" in lost
