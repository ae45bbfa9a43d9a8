import asyncio
import uuid
from datetime import UTC, date, datetime, time, timedelta

import pytest

from academy.config import Settings
from academy.errors import CooldownActiveError, SlotUnavailableError
from academy.models.domain.booking_domain import Booking, BookingDraft, RecentBooking, TimeSlot
from academy.services.ai_provider import AIProvider
from academy.services.streaming import TokenStream


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's .env and environment."""
    values = {
        "AI_PROVIDER": "gemini",
        "GEMINI_API_KEY": "test-gemini-key",
        "ELEVENLABS_API_KEY": "test-elevenlabs-key",
        "DATABASE_URL": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings():
    return make_settings()


class FakeBookingRepository:
    """
    In-memory stand-in for BookingRepository.

    book_slot checks the email cooldown and claims the slot under one lock,
    mirroring the advisory lock and conditional UPDATE inside the stored
    procedure.
    """

    def __init__(self, slots: list[TimeSlot] | None = None):
        self.slots: dict[str, TimeSlot] = {slot.id: slot for slot in slots or []}
        self.bookings: dict[str, Booking] = {}
        self.now = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
        self._lock = asyncio.Lock()

    async def list_available_slots(self, limit: int = 50) -> list[TimeSlot]:
        open_slots = [slot for slot in self.slots.values() if slot.is_available]
        open_slots.sort(key=lambda slot: (slot.slot_date, slot.start_time))
        return [TimeSlot(**slot.to_dict()) for slot in open_slots[:limit]]

    async def find_recent_booking(self, email: str, cooldown_hours: int) -> RecentBooking | None:
        since = self.now - timedelta(hours=cooldown_hours)
        matches = [
            booking
            for booking in self.bookings.values()
            if booking.email == email and booking.created_at > since
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda booking: booking.created_at)
        return RecentBooking(id=latest.id, created_at=latest.created_at)

    async def book_slot(self, draft: BookingDraft, cooldown_hours: int = 24) -> str:
        async with self._lock:
            # Yield so concurrent callers queue up behind the lock
            await asyncio.sleep(0)
            if await self.find_recent_booking(draft.email, cooldown_hours) is not None:
                raise CooldownActiveError()
            slot = self.slots.get(draft.slot_id)
            if slot is None or not slot.is_available:
                raise SlotUnavailableError()
            slot.is_available = False

            booking_id = str(uuid.uuid4())
            self.bookings[booking_id] = Booking(
                id=booking_id,
                slot_id=draft.slot_id,
                name=draft.name,
                email=draft.email,
                phone=draft.phone,
                course=draft.course,
                message=draft.message,
                created_at=self.now,
            )
        return booking_id

    async def get_booking_with_slot(self, booking_id: str) -> Booking | None:
        booking = self.bookings.get(booking_id)
        if booking is None:
            return None
        slot = self.slots[booking.slot_id]
        booking.slot_date = slot.slot_date
        booking.start_time = slot.start_time
        booking.end_time = slot.end_time
        return booking


def make_slot(day_offset: int = 1, hour: int = 10) -> TimeSlot:
    return TimeSlot(
        id=str(uuid.uuid4()),
        slot_date=date(2026, 3, 1) + timedelta(days=day_offset),
        start_time=time(hour, 0),
        end_time=time(hour + 1, 0),
        is_available=True,
    )


@pytest.fixture
def fake_booking_repository():
    return FakeBookingRepository([make_slot(1, 10), make_slot(1, 12), make_slot(2, 9)])


class FakeAIProvider(AIProvider):
    """Records every call and replays canned text."""

    name = "fake"

    def __init__(self, reply: str = "", tokens: list[str] | None = None, error: Exception | None = None):
        super().__init__(config=None, model="fake-model")
        self.reply = reply
        self.tokens = tokens or []
        self.error = error
        self.calls: list[dict] = []
        self.stream_closed = False

    async def complete(self, system, messages, *, temperature, max_tokens) -> str:
        self.calls.append(
            {"system": system, "messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error:
            raise self.error
        return self.reply

    async def open_stream(self, system, messages, *, temperature, max_tokens) -> TokenStream:
        self.calls.append(
            {"system": system, "messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error:
            raise self.error

        async def tokens():
            for token in self.tokens:
                yield token

        iterator = tokens()

        async def close():
            self.stream_closed = True
            await iterator.aclose()

        return TokenStream(iterator, close)


class FakeAIClients:
    def __init__(self, provider: AIProvider):
        self.provider = provider

    def get(self) -> AIProvider:
        return self.provider

    async def close(self) -> None:
        return None


@pytest.fixture
def fake_ai_provider():
    return FakeAIProvider()
