"""Booking Assistant - pick a free slot and book it with a Meet link."""

import logging
import os
from datetime import date, time, timedelta

import streamlit as st
from dotenv import load_dotenv

from models.entities import AvailabilityRequest, BookingRequest
from models.errors import BookingEngineError
from services.booking_coordinator import BookingCoordinator
from services.calendar_provider_mock import CalendarProviderMock
from services.engine_config import EngineConfig
from services.google_calendar_client import GoogleCalendarClient
from services.response_formatter import ResponseFormatter

# ============================================================================
# CONFIGURATION
# ============================================================================

# Load environment variables from .env file
load_dotenv()
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

ACCESS_TOKEN = os.getenv("GOOGLE_CALENDAR_ACCESS_TOKEN")
DEMO_TOKEN = "demo-token"

st.set_page_config(
    page_title="Booking Assistant",
    page_icon="🗓️",
    layout="centered"
)

# ============================================================================
# SERVICE INITIALIZATION
# ============================================================================

@st.cache_resource
def get_coordinator(_cache_version="v1"):
    """Build the coordinator against Google Calendar, or the mock without a token."""
    config = EngineConfig.from_env()
    if ACCESS_TOKEN:
        provider = GoogleCalendarClient(config)
    else:
        provider = CalendarProviderMock(timezone=config.default_timezone)
    return BookingCoordinator(provider, config)


try:
    coordinator = get_coordinator()
except ValueError as e:
    st.error(f"⚠️ Invalid configuration: {e}")
    st.stop()

token = ACCESS_TOKEN or DEMO_TOKEN
if not ACCESS_TOKEN:
    st.info("GOOGLE_CALENDAR_ACCESS_TOKEN is not set. Running against a demo calendar.")

# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================

if "availability" not in st.session_state:
    st.session_state.availability = None
    st.session_state.last_booking = None

# ============================================================================
# AVAILABILITY
# ============================================================================

st.title("🗓️ Book a Meeting")

with st.form("availability_form"):
    col1, col2 = st.columns(2)
    with col1:
        day = st.date_input("Date", value=date.today() + timedelta(days=1))
        duration = st.selectbox("Duration (minutes)", [15, 30, 45, 60, 90], index=1)
        stride = st.selectbox("Start every (minutes)", [15, 30, 60], index=1)
    with col2:
        timezone = st.text_input("Timezone", value=coordinator.config.default_timezone)
        workday_start = st.time_input("Workday start", value=time(9, 0))
        workday_end = st.time_input("Workday end", value=time(18, 0))
    find_clicked = st.form_submit_button("Find times")

if find_clicked:
    request = AvailabilityRequest(
        date=day,
        timezone=timezone.strip(),
        slot_duration=timedelta(minutes=duration),
        workday_start=workday_start,
        workday_end=workday_end,
        slot_stride=timedelta(minutes=stride),
    )
    try:
        with st.spinner("Finding available times..."):
            st.session_state.availability = coordinator.get_availability(token, request, exclude_past=True)
        st.session_state.last_booking = None
    except BookingEngineError as e:
        st.session_state.availability = None
        st.error(ResponseFormatter.format_error(e))

# ============================================================================
# BOOKING
# ============================================================================

availability = st.session_state.availability
if availability is not None:
    if not availability.slots:
        st.warning(ResponseFormatter.format_availability(availability))
    else:
        choice = st.radio(
            "Available times",
            range(len(availability.slots)),
            format_func=lambda i: ResponseFormatter.format_slot(availability.slots[i], availability.timezone),
        )

        with st.form("booking_form"):
            title = st.text_input("Title", value="Meeting")
            description = st.text_area("Description", value="Scheduled via booking assistant.")
            attendee = st.text_input("Attendee email (optional)")
            book_clicked = st.form_submit_button("Book")

        if book_clicked:
            slot = availability.slots[choice]
            booking = BookingRequest(
                slot=slot,
                timezone=availability.timezone,
                title=title,
                description=description,
                attendee_email=attendee.strip() or None,
            )
            try:
                with st.spinner("Booking..."):
                    result = coordinator.book(token, booking)
            except BookingEngineError as e:
                st.error(ResponseFormatter.format_error(e))
            else:
                st.session_state.last_booking = ResponseFormatter.format_booking_confirmation(
                    result, slot, availability.timezone
                )
                st.session_state.availability = None
                st.rerun()

if st.session_state.last_booking:
    st.success(st.session_state.last_booking)
