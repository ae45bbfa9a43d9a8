"""
Trial-Booking Reservation Service
Validates booking requests, enforces the per-email cooldown and reserves slots.
"""

from datetime import timedelta

from academy.config import Settings, settings
from academy.db.helpers import DatabaseError
from academy.errors import CooldownActiveError, InternalError
from academy.infrastructure.observability.logging import get_logger
from academy.models.domain.booking_domain import Booking, BookingDraft, RecentBooking, TimeSlot
from academy.repositories.booking_repository import BookingRepository

logger = get_logger(__name__)


class BookingService:
    """
    Service for listing open slots and creating trial-class bookings.

    Neither the cooldown nor the slot claim is read-then-write here: the
    book_slot() procedure re-checks the cooldown under a per-email lock and
    claims the slot in the same statement. The lookup before it only builds
    the friendlier "book again at" response.
    """

    def __init__(self, config: Settings = settings, repository: BookingRepository | None = None):
        self.config = config
        self.repository = repository or BookingRepository()

    @property
    def cooldown(self) -> timedelta:
        return timedelta(hours=self.config.BOOKING_COOLDOWN_HOURS)

    async def list_available_slots(self) -> list[TimeSlot]:
        """
        Open slots from today onwards, ordered by date then start time.

        Raises:
            InternalError: the store could not be read
        """
        try:
            slots = await self.repository.list_available_slots(limit=self.config.SLOT_LISTING_LIMIT)
        except DatabaseError as e:
            logger.error("Error fetching slots", error=str(e))
            raise InternalError("Failed to fetch available slots") from e

        logger.debug("Available slots listed", count=len(slots))
        return slots

    async def create_booking(
        self,
        *,
        name: str | None,
        phone: str | None,
        email: str | None,
        course: str | None,
        slot_id: str | None,
        message: str | None = None,
    ) -> Booking:
        """
        Validate, check the cooldown and reserve the slot.

        Raises:
            ValidationError subclasses: malformed input (400)
            CooldownActiveError: same email booked inside the cooldown window (429)
            SlotUnavailableError: slot taken, unknown or malformed (409)
            InternalError: any other store failure (500)
        """
        draft = BookingDraft.parse(
            name=name,
            phone=phone,
            email=email,
            course=course,
            slot_id=slot_id,
            message=message,
        )

        try:
            await self._check_cooldown(draft.email)

            try:
                booking_id = await self.repository.book_slot(
                    draft, cooldown_hours=self.config.BOOKING_COOLDOWN_HOURS
                )
            except CooldownActiveError:
                # A concurrent request for the same email committed first
                await self._check_cooldown(draft.email)
                raise

            booking = await self.repository.get_booking_with_slot(booking_id)
        except DatabaseError as e:
            logger.error("Booking failed", slot_id=draft.slot_id, operation=e.operation, error=str(e))
            raise InternalError("Failed to create booking") from e

        if booking is None:
            logger.error("Booking vanished after insert", booking_id=booking_id)
            raise InternalError("Failed to create booking")

        logger.info(
            "Trial class booked",
            booking_id=booking.id,
            slot_id=booking.slot_id,
            course=booking.course,
        )
        return booking

    async def _check_cooldown(self, email: str) -> None:
        recent = await self.repository.find_recent_booking(email, self.config.BOOKING_COOLDOWN_HOURS)
        if recent is None:
            return

        logger.info("Booking rejected by cooldown", booking_id=recent.id)
        raise self._cooldown_error(recent)

    def _cooldown_error(self, recent: RecentBooking) -> CooldownActiveError:
        next_available = recent.created_at + self.cooldown
        return CooldownActiveError(
            f"You have already booked a trial class in the last "
            f"{self.config.BOOKING_COOLDOWN_HOURS} hours. Please try again later.",
            extra={
                "canBookAgain": False,
                "nextAvailableTime": next_available.isoformat(),
            },
        )
