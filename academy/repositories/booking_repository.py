"""
Persistence layer for trial-class slots and bookings.

The reservation itself is delegated to the book_slot() stored procedure so the
email cooldown check, the slot claim and the booking insert happen in a single
statement.
"""

from academy.db.helpers import DatabaseError, fetch_all, fetch_one, fetch_val
from academy.errors import CooldownActiveError, SlotUnavailableError
from academy.infrastructure.observability.logging import get_logger
from academy.models.domain.booking_domain import Booking, BookingDraft, RecentBooking, TimeSlot

logger = get_logger(__name__)

# raise_exception from book_slot, and a slot id that is not a valid uuid
SLOT_UNAVAILABLE_SQLSTATES = {"P0001", "22P02"}
# raised by book_slot when the email booked inside the cooldown window
COOLDOWN_ACTIVE_SQLSTATE = "AC429"


class BookingRepositoryError(DatabaseError):
    """More specific exception for booking repository failures."""


class BookingRepository:
    """SQL access for time_slots and bookings."""

    SLOT_COLUMNS = "id, slot_date, start_time, end_time, is_available"

    @classmethod
    def _row_to_slot(cls, row: dict) -> TimeSlot:
        return TimeSlot(
            id=str(row["id"]),
            slot_date=row["slot_date"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            is_available=row["is_available"],
        )

    @classmethod
    def _row_to_booking(cls, row: dict | None) -> Booking | None:
        if not row:
            return None

        return Booking(
            id=str(row["id"]),
            slot_id=str(row["slot_id"]),
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            course=row["course"],
            message=row.get("message"),
            created_at=row["created_at"],
            slot_date=row.get("slot_date"),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
        )

    async def list_available_slots(self, limit: int = 50) -> list[TimeSlot]:
        """Open slots from today onwards, soonest first."""

        query = f"""
            SELECT {self.SLOT_COLUMNS}
            FROM time_slots
            WHERE is_available = true
              AND slot_date >= CURRENT_DATE
            ORDER BY slot_date, start_time
            LIMIT %s
        """

        rows = await fetch_all(query, (limit,))
        return [self._row_to_slot(row) for row in rows]

    async def find_recent_booking(self, email: str, cooldown_hours: int) -> RecentBooking | None:
        """Most recent booking for an email inside the trailing cooldown window."""

        # Window measured against the database clock, the same one that set created_at
        query = """
            SELECT id, created_at
            FROM bookings
            WHERE email = %s
              AND created_at > now() - make_interval(hours => %s)
            ORDER BY created_at DESC
            LIMIT 1
        """

        row = await fetch_one(query, (email, cooldown_hours))
        if not row:
            return None
        return RecentBooking(id=str(row["id"]), created_at=row["created_at"])

    async def book_slot(self, draft: BookingDraft, cooldown_hours: int = 24) -> str:
        """
        Atomically check the email cooldown, claim the slot and insert the booking.

        Returns:
            The new booking id

        Raises:
            CooldownActiveError: a booking for this email committed inside the window
            SlotUnavailableError: slot already taken, unknown or malformed
            BookingRepositoryError: any other database failure
        """

        query = "SELECT book_slot(%s, %s, %s, %s, %s, %s::uuid, %s) AS booking_id"
        params = (
            draft.course,
            draft.email,
            draft.message or "",
            draft.name,
            draft.phone,
            draft.slot_id,
            cooldown_hours,
        )

        try:
            booking_id = await fetch_val(query, params)
        except DatabaseError as e:
            if e.sqlstate == COOLDOWN_ACTIVE_SQLSTATE:
                logger.info("Booking rejected by cooldown in book_slot", slot_id=draft.slot_id)
                raise CooldownActiveError() from e
            if e.sqlstate in SLOT_UNAVAILABLE_SQLSTATES:
                logger.info("Slot reservation lost", slot_id=draft.slot_id, sqlstate=e.sqlstate)
                raise SlotUnavailableError() from e
            raise

        if not booking_id:
            raise BookingRepositoryError("book_slot returned no booking id", operation="book_slot")

        logger.info("Slot reserved", slot_id=draft.slot_id, booking_id=str(booking_id))
        return str(booking_id)

    async def get_booking_with_slot(self, booking_id: str) -> Booking | None:
        """Booking row joined with the date and time of its slot."""

        query = """
            SELECT b.id, b.slot_id, b.name, b.email, b.phone, b.course, b.message, b.created_at,
                   ts.slot_date, ts.start_time, ts.end_time
            FROM bookings b
            LEFT JOIN time_slots ts ON b.slot_id = ts.id
            WHERE b.id = %s
        """

        row = await fetch_one(query, (booking_id,))
        return self._row_to_booking(row)
