"""
Booking Domain Models
Time slots, bookings and the validation rules for a trial-class request.
Used by the booking service and repository; API models live in models/api.
"""

import re
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any

from academy.errors import (
    InvalidEmailError,
    InvalidNameError,
    InvalidPhoneError,
    MissingFieldsError,
)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")
PHONE_DIGITS = re.compile(rf"^[0-9]{{{PHONE_MIN_DIGITS},{PHONE_MAX_DIGITS}}}$")


def is_valid_name(name: str) -> bool:
    return NAME_MIN_LENGTH <= len(name.strip()) <= NAME_MAX_LENGTH


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email.strip()))


def phone_digits(phone: str) -> str:
    """Phone with spaces, hyphens, parentheses and one leading '+' removed."""
    stripped = PHONE_SEPARATORS.sub("", phone.strip())
    return stripped[1:] if stripped.startswith("+") else stripped


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_DIGITS.match(phone_digits(phone)))


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


@dataclass(slots=True, frozen=True)
class BookingDraft:
    """A validated, normalized booking request ready for reservation."""

    name: str
    email: str
    phone: str
    course: str
    slot_id: str
    message: str | None = None

    @classmethod
    def parse(
        cls,
        *,
        name: str | None,
        phone: str | None,
        email: str | None,
        course: str | None,
        slot_id: str | None,
        message: str | None = None,
    ) -> "BookingDraft":
        """
        Validate raw input in a fixed order; the first failing rule wins.

        Raises:
            MissingFieldsError, InvalidNameError, InvalidEmailError, InvalidPhoneError
        """
        if any(_blank(value) for value in (name, phone, email, course, slot_id)):
            raise MissingFieldsError()

        if not is_valid_name(name):
            raise InvalidNameError()

        if not is_valid_email(email):
            raise InvalidEmailError()

        if not is_valid_phone(phone):
            raise InvalidPhoneError()

        return cls(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            course=course.strip(),
            slot_id=str(slot_id).strip(),
            message=(message or "").strip() or None,
        )


@dataclass(slots=True)
class TimeSlot:
    """A bookable date/time window for a trial class."""

    id: str
    slot_date: date
    start_time: time
    end_time: time
    is_available: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Booking:
    """A booking row joined with the date/time of its slot."""

    id: str
    slot_id: str
    name: str
    email: str
    phone: str
    course: str
    message: str | None
    created_at: datetime
    slot_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class RecentBooking:
    """The latest booking inside the cooldown window for an email."""

    id: str
    created_at: datetime
