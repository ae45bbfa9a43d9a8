"""
Error taxonomy for the academy API.

Every failure a request can hit is an AcademyError subclass carrying the
user-facing message and the HTTP status it maps to. The exception handlers in
academy.main render them as {"error": message, **extra}.
"""

from typing import Any


class AcademyError(Exception):
    """Base class for request-level failures."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, extra: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.extra = extra or {}
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


# --- 400: malformed input ---------------------------------------------------


class ValidationError(AcademyError):
    status_code = 400
    default_message = "Invalid request"


class MissingFieldsError(ValidationError):
    default_message = "Missing required fields"


class InvalidNameError(ValidationError):
    default_message = "Invalid name (2-100 characters required)"


class InvalidEmailError(ValidationError):
    default_message = "Invalid email format"


class InvalidPhoneError(ValidationError):
    default_message = "Invalid phone number (10-15 digits required)"


class NoAnswersError(ValidationError):
    default_message = "No answers provided"


class NotFoundError(AcademyError):
    status_code = 400
    default_message = "Not found"


class InvalidQuestionIdError(NotFoundError):
    default_message = "Invalid question ID"


# --- 429: cooldown or upstream quota ----------------------------------------


class RateLimitedError(AcademyError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class CooldownActiveError(RateLimitedError):
    default_message = (
        "You have already booked a trial class in the last 24 hours. Please try again later."
    )


# --- 409: slot race lost ----------------------------------------------------


class ConflictError(AcademyError):
    status_code = 409
    default_message = "Conflict"


class SlotUnavailableError(ConflictError):
    default_message = "This time slot is no longer available. Please select another."


# --- upstream / configuration -----------------------------------------------


class UpstreamUnavailableError(AcademyError):
    """Third-party AI/TTS backend answered with a non-success status or failed."""

    status_code = 500
    default_message = "Upstream service error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        upstream_status: int | None = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(message, extra=extra)
        if status_code is not None:
            self.status_code = status_code
        self.upstream_status = upstream_status


class ConfigurationError(AcademyError):
    status_code = 500
    default_message = "Service is not configured"


# --- 500: parse / internal --------------------------------------------------


class ParseError(AcademyError):
    status_code = 500
    default_message = "Failed to parse upstream response"


class EvaluationParseError(ParseError):
    default_message = "Failed to parse AI evaluation"


class InternalError(AcademyError):
    status_code = 500
    default_message = "Internal server error"
