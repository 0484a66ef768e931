"""Markdown rendering of availability and booking outcomes."""

from typing import List

import pytz

from models.entities import AvailabilityResult, BookingResult, Slot
from models.errors import BookingEngineError, ProviderUnavailable


class ResponseFormatter:
    """Formats engine results in a consistent, structured manner."""

    ERROR_HINTS = {
        "InvalidParameters": "Check the date, times and duration, then try again.",
        "Unauthorized": "Sign in again to refresh calendar access.",
        "ProviderUnavailable": "The calendar service is unreachable. Try again in a moment.",
        "BookingRejected": "That time was just taken. Refresh availability and pick another slot.",
    }

    @staticmethod
    def format_section(title: str, content: List[str], icon: str = "📋") -> str:
        """Format a section with title and content."""
        lines = [f"**{icon} {title}**", ""]
        lines.extend(content)
        return "\n".join(lines)

    @staticmethod
    def format_slot(slot: Slot, timezone: str) -> str:
        """Format a slot as a local time range, e.g. '09:30 AM – 10:00 AM'."""
        tz = pytz.timezone(timezone)
        start = slot.start.astimezone(tz)
        end = slot.end.astimezone(tz)
        return f"{start.strftime('%I:%M %p')} – {end.strftime('%I:%M %p')}"

    @staticmethod
    def format_availability(result: AvailabilityResult, limit: int = 50) -> str:
        """Format the slot list for a day."""
        if not result.slots:
            return ResponseFormatter.format_section(
                "No Available Times",
                [f"The calendar is fully booked for this day ({result.timezone})."],
                icon="📭",
            )

        day = result.slots[0].start.astimezone(pytz.timezone(result.timezone))
        lines = [
            f"{day.strftime('%A, %B %d')} · {result.duration_minutes}-minute slots · {result.timezone}",
            "",
        ]
        for i, slot in enumerate(result.slots[:limit], 1):
            lines.append(f"{i}. {ResponseFormatter.format_slot(slot, result.timezone)}")

        remaining = len(result.slots) - limit
        if remaining > 0:
            lines.append("")
            lines.append(f"*+ {remaining} more slot(s).*")

        return ResponseFormatter.format_section("Available Times", lines, icon="🗓️")

    @staticmethod
    def format_booking_confirmation(result: BookingResult, slot: Slot, timezone: str) -> str:
        """Format a successful booking."""
        local_start = slot.start.astimezone(pytz.timezone(timezone))
        lines = [
            f"📅 {local_start.strftime('%A, %B %d at %I:%M %p %Z')}",
            f"🔗 [Open in calendar]({result.html_link})",
        ]
        if result.meet_link:
            lines.append(f"🎥 [Join video call]({result.meet_link})")
        else:
            lines.append("🎥 No video link was attached to this event.")
        return ResponseFormatter.format_section("Meeting booked!", lines, icon="✅")

    @staticmethod
    def format_error(error: BookingEngineError) -> str:
        """Format a classified engine error with a next-step hint."""
        lines = [error.message, ""]
        hint = ResponseFormatter.ERROR_HINTS.get(error.kind)
        if isinstance(error, ProviderUnavailable) and error.may_have_succeeded:
            hint = "Refresh availability to check whether the meeting was created before retrying."
        if hint:
            lines.append(f"*{hint}*")
        return ResponseFormatter.format_section(error.kind, lines, icon="❌")
