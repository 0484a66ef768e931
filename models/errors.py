"""Error taxonomy for the booking engine.

Every failure that leaves the engine is one of the four kinds below. Each
carries a machine-readable ``kind``, a short diagnostic message and, where
available, the provider's raw detail.
"""

from typing import Any, Optional


class BookingEngineError(Exception):
    """Base class for all classified engine failures."""

    kind = "BookingEngineError"
    status_code = 500
    retryable = False

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Structured error body for the calling layer."""
        error: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


class InvalidParameters(BookingEngineError):
    """Caller supplied malformed or contradictory input."""

    kind = "InvalidParameters"
    status_code = 400


class Unauthorized(BookingEngineError):
    """Credential missing or expired; the caller must re-authenticate."""

    kind = "Unauthorized"
    status_code = 401


class ProviderUnavailable(BookingEngineError):
    """Transient channel failure talking to the calendar provider.

    ``may_have_succeeded`` is set when an event-creation request was sent but
    its response was lost, so the booking may exist upstream.
    """

    kind = "ProviderUnavailable"
    status_code = 503
    retryable = True

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        may_have_succeeded: bool = False,
    ):
        if may_have_succeeded:
            message = (
                f"{message}. The booking may have been created upstream; "
                "re-query availability to confirm before retrying."
            )
        super().__init__(message, details)
        self.may_have_succeeded = may_have_succeeded

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["error"]["mayHaveSucceeded"] = self.may_have_succeeded
        return body


class BookingRejected(BookingEngineError):
    """The provider understood the booking request but declined it."""

    kind = "BookingRejected"
    status_code = 409

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        provider_status: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.provider_status = provider_status
