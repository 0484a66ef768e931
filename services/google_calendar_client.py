"""Google Calendar REST adapter.

This is the only place that knows the provider's JSON shapes. Responses are
mapped into ``TimeInterval`` / ``BookingResult`` and every failure is
classified into the engine's error taxonomy before it leaves this module.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from models.entities import BookingResult, TimeInterval
from models.errors import (
    BookingEngineError,
    BookingRejected,
    InvalidParameters,
    ProviderUnavailable,
    Unauthorized,
)
from services.engine_config import EngineConfig

logger = logging.getLogger(__name__)

# 403 reasons that describe the channel (quota) rather than the request.
QUOTA_REASONS = {"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded", "dailyLimitExceeded"}
TRANSIENT_STATUS_CODES = {408, 429}
# Transport failures raised before the request could reach the provider.
NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


def parse_provider_datetime(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp from the provider into an aware datetime."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"Expected RFC 3339 timestamp, got {value!r}")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp has no UTC offset: {value!r}")
    return parsed


def _error_reasons(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []
    error = payload.get("error")
    if not isinstance(error, dict):
        return []
    reasons = []
    for item in error.get("errors") or []:
        if isinstance(item, dict) and item.get("reason"):
            reasons.append(str(item["reason"]))
    return reasons


def safe_error_message(response: httpx.Response) -> str:
    """Short, single-line diagnostic extracted from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error_payload, str) and error_payload.strip():
            return " ".join(error_payload.split())[:200]

    raw_text = response.text.strip()
    if raw_text:
        return " ".join(raw_text.split())[:200]
    return f"Request failed with status {response.status_code}"


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500] or None


class GoogleCalendarClient:
    """Client for the Google Calendar v3 free/busy and event-insert endpoints."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the adapter.

        Args:
            config: Engine configuration (defaults to EngineConfig.from_env())
            http_client: Shared httpx client; one is created per call if omitted
        """
        self.config = config or EngineConfig.from_env()
        self._http_client = http_client

    def _get_headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    def _post(
        self,
        url: str,
        access_token: str,
        payload: Dict[str, Any],
        timeout: float,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        headers = self._get_headers(access_token)
        if self._http_client is not None:
            return self._http_client.post(url, json=payload, params=params, headers=headers, timeout=timeout)
        with httpx.Client(timeout=timeout) as client:
            return client.post(url, json=payload, params=params, headers=headers)

    def query_free_busy(
        self,
        access_token: str,
        time_min: datetime,
        time_max: datetime,
        timezone: str,
        calendar_id: Optional[str] = None,
    ) -> List[TimeInterval]:
        """
        Fetch busy intervals for the calendar owner over a window.

        Returns:
            Busy intervals as reported, unsorted and possibly overlapping

        Raises:
            Unauthorized: the provider rejected the bearer token
            ProviderUnavailable: on any other transport, HTTP or payload failure
        """
        calendar_id = calendar_id or self.config.calendar_id
        payload = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "timeZone": timezone,
            "items": [{"id": calendar_id}],
        }

        try:
            response = self._post(
                f"{self.config.base_url}/freeBusy",
                access_token,
                payload,
                timeout=self.config.freebusy_timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning("Free/busy query timed out: %s", e)
            raise ProviderUnavailable("Free/busy query timed out", details=str(e))
        except httpx.HTTPError as e:
            logger.warning("Free/busy query failed: %s", e)
            raise ProviderUnavailable("Free/busy query failed", details=str(e))

        if not response.is_success:
            message = safe_error_message(response)
            logger.warning("Free/busy query returned %s: %s", response.status_code, message)
            if response.status_code == 401:
                raise Unauthorized(message, details=_response_details(response))
            raise ProviderUnavailable(
                f"Free/busy query failed ({response.status_code}): {message}",
                details=_response_details(response),
            )

        return self._parse_busy(response, calendar_id)

    def _parse_busy(self, response: httpx.Response, calendar_id: str) -> List[TimeInterval]:
        try:
            data = response.json()
        except ValueError:
            raise ProviderUnavailable("Free/busy response was not valid JSON", details=response.text[:500])

        calendars = data.get("calendars") if isinstance(data, dict) else None
        entry = calendars.get(calendar_id) if isinstance(calendars, dict) else None
        if not isinstance(entry, dict):
            raise ProviderUnavailable(
                f"Free/busy response has no entry for calendar {calendar_id!r}", details=data
            )
        if entry.get("errors"):
            raise ProviderUnavailable(
                f"Provider reported errors for calendar {calendar_id!r}", details=entry["errors"]
            )

        busy: List[TimeInterval] = []
        for raw in entry.get("busy") or []:
            try:
                busy.append(
                    TimeInterval(
                        start=parse_provider_datetime(raw.get("start")),
                        end=parse_provider_datetime(raw.get("end")),
                    )
                )
            except (AttributeError, ValueError, InvalidParameters) as e:
                raise ProviderUnavailable(f"Malformed busy interval from provider: {e}", details=raw)
        return busy

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
        """
        Create an event with a Meet conference attached.

        Args:
            request_id: Conferencing nonce; must be unique per booking attempt

        Raises:
            Unauthorized: the provider rejected the bearer token
            BookingRejected: the provider declined the event (conflict, bad request)
            ProviderUnavailable: timeout, transport failure, quota or 5xx
        """
        calendar_id = calendar_id or self.config.calendar_id
        event_payload: Dict[str, Any] = {
            "summary": title,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": timezone},
            "conferenceData": {
                "createRequest": {
                    "requestId": request_id,
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                },
            },
        }
        if attendee_email:
            event_payload["attendees"] = [{"email": attendee_email}]

        url = f"{self.config.base_url}/calendars/{quote(calendar_id, safe='')}/events"
        try:
            response = self._post(
                url,
                access_token,
                event_payload,
                timeout=self.config.create_timeout,
                params={"conferenceDataVersion": 1},
            )
        except NOT_SENT_ERRORS as e:
            logger.warning("Event creation could not reach provider: %s", e)
            raise ProviderUnavailable("Could not reach calendar provider", details=str(e))
        except httpx.HTTPError as e:
            # The request may have been accepted before the response was lost.
            logger.warning("Event creation response lost (request_id=%s): %s", request_id, e)
            raise ProviderUnavailable(
                "Event creation response was not received", details=str(e), may_have_succeeded=True
            )

        if not response.is_success:
            raise self._classify_insert_failure(response)

        try:
            data = response.json()
        except ValueError:
            raise ProviderUnavailable(
                "Event creation response was not valid JSON",
                details=response.text[:500],
                may_have_succeeded=True,
            )
        return self._parse_event(data)

    def _classify_insert_failure(self, response: httpx.Response) -> BookingEngineError:
        status = response.status_code
        message = safe_error_message(response)
        details = _response_details(response)
        logger.warning("Event creation returned %s: %s", status, message)

        if status == 401:
            return Unauthorized(message, details=details)
        if status >= 500 or status in TRANSIENT_STATUS_CODES:
            return ProviderUnavailable(f"Calendar provider error ({status}): {message}", details=details)
        if status == 403 and QUOTA_REASONS.intersection(_error_reasons(details)):
            return ProviderUnavailable(f"Calendar provider quota exceeded: {message}", details=details)
        return BookingRejected(message, details=details, provider_status=status)

    def _parse_event(self, data: Any) -> BookingResult:
        if not isinstance(data, dict) or not data.get("id"):
            raise ProviderUnavailable(
                "Event creation response is missing an event id", details=data, may_have_succeeded=True
            )
        html_link = data.get("htmlLink")
        if not isinstance(html_link, str) or not html_link:
            raise ProviderUnavailable(
                "Event creation response is missing a calendar link",
                details={"eventId": str(data["id"])},
                may_have_succeeded=True,
            )

        meet_link = None
        conference = data.get("conferenceData")
        if isinstance(conference, dict):
            for entry_point in conference.get("entryPoints") or []:
                if isinstance(entry_point, dict) and entry_point.get("entryPointType") == "video":
                    meet_link = entry_point.get("uri")
                    break

        return BookingResult(
            event_id=str(data["id"]),
            html_link=html_link,
            meet_link=meet_link,
        )
