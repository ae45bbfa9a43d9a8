"""
Tests for the SQL repositories with the database helpers patched out.
"""

from datetime import UTC, date, datetime, time
from unittest.mock import AsyncMock, patch

import pytest

from academy.db.helpers import DatabaseError
from academy.errors import CooldownActiveError, SlotUnavailableError
from academy.models.domain.booking_domain import BookingDraft
from academy.models.domain.evaluation_domain import Evaluation, TestAnswer
from academy.repositories.booking_repository import BookingRepository, BookingRepositoryError
from academy.repositories.test_attempt_repository import TestAttemptRepository

SLOT_ID = "3f9a4e1c-0000-4000-8000-000000000001"


def make_draft(message: str | None = None) -> BookingDraft:
    return BookingDraft(
        name="Visitor",
        email="visitor@example.com",
        phone="9876543210",
        course="Student English",
        slot_id=SLOT_ID,
        message=message,
    )


# --- book_slot ---------------------------------------------------------------


@pytest.mark.asyncio
async def test_book_slot_passes_draft_and_cooldown_to_procedure():
    fetch_val = AsyncMock(return_value="b-1")
    with patch("academy.repositories.booking_repository.fetch_val", fetch_val):
        booking_id = await BookingRepository().book_slot(make_draft(), cooldown_hours=12)

    assert booking_id == "b-1"
    query, params = fetch_val.await_args.args
    assert "book_slot(" in query
    assert params == ("Student English", "visitor@example.com", "", "Visitor", "9876543210", SLOT_ID, 12)


@pytest.mark.asyncio
@pytest.mark.parametrize("sqlstate", ["P0001", "22P02"])
async def test_book_slot_maps_lost_or_malformed_slot_to_conflict(sqlstate):
    error = DatabaseError("Query failed", operation="fetch_one", sqlstate=sqlstate)
    with patch("academy.repositories.booking_repository.fetch_val", AsyncMock(side_effect=error)):
        with pytest.raises(SlotUnavailableError) as exc_info:
            await BookingRepository().book_slot(make_draft())

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_book_slot_maps_cooldown_sqlstate():
    error = DatabaseError("Booking cooldown active", operation="fetch_one", sqlstate="AC429")
    with patch("academy.repositories.booking_repository.fetch_val", AsyncMock(side_effect=error)):
        with pytest.raises(CooldownActiveError):
            await BookingRepository().book_slot(make_draft())


@pytest.mark.asyncio
async def test_book_slot_other_database_errors_propagate():
    error = DatabaseError("connection reset", operation="fetch_one", sqlstate="08006")
    with patch("academy.repositories.booking_repository.fetch_val", AsyncMock(side_effect=error)):
        with pytest.raises(DatabaseError) as exc_info:
            await BookingRepository().book_slot(make_draft())

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_book_slot_without_returned_id_is_repository_error():
    with patch("academy.repositories.booking_repository.fetch_val", AsyncMock(return_value=None)):
        with pytest.raises(BookingRepositoryError) as exc_info:
            await BookingRepository().book_slot(make_draft())

    assert exc_info.value.operation == "book_slot"


# --- reads -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_listing_filters_open_future_slots_with_limit():
    rows = [
        {
            "id": SLOT_ID,
            "slot_date": date(2026, 3, 2),
            "start_time": time(10, 0),
            "end_time": time(11, 0),
            "is_available": True,
        }
    ]
    fetch_all = AsyncMock(return_value=rows)
    with patch("academy.repositories.booking_repository.fetch_all", fetch_all):
        slots = await BookingRepository().list_available_slots(limit=50)

    query, params = fetch_all.await_args.args
    assert "is_available = true" in query
    assert "slot_date >= CURRENT_DATE" in query
    assert "ORDER BY slot_date, start_time" in query
    assert params == (50,)
    assert slots[0].id == SLOT_ID
    assert slots[0].start_time == time(10, 0)


@pytest.mark.asyncio
async def test_recent_booking_window_uses_database_clock():
    created_at = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
    fetch_one = AsyncMock(return_value={"id": "b-1", "created_at": created_at})
    with patch("academy.repositories.booking_repository.fetch_one", fetch_one):
        recent = await BookingRepository().find_recent_booking("visitor@example.com", 24)

    query, params = fetch_one.await_args.args
    assert "now() - make_interval(hours => %s)" in query
    assert params == ("visitor@example.com", 24)
    assert recent.id == "b-1"
    assert recent.created_at == created_at


@pytest.mark.asyncio
async def test_recent_booking_none_when_no_row():
    with patch("academy.repositories.booking_repository.fetch_one", AsyncMock(return_value=None)):
        assert await BookingRepository().find_recent_booking("visitor@example.com", 24) is None


@pytest.mark.asyncio
async def test_booking_with_slot_row_mapping():
    row = {
        "id": "b-1",
        "slot_id": SLOT_ID,
        "name": "Visitor",
        "email": "visitor@example.com",
        "phone": "9876543210",
        "course": "Student English",
        "message": None,
        "created_at": datetime(2026, 3, 1, 10, 0, tzinfo=UTC),
        "slot_date": date(2026, 3, 2),
        "start_time": time(10, 0),
        "end_time": time(11, 0),
    }
    with patch("academy.repositories.booking_repository.fetch_one", AsyncMock(return_value=row)):
        booking = await BookingRepository().get_booking_with_slot("b-1")

    assert booking.slot_date == date(2026, 3, 2)
    assert booking.end_time == time(11, 0)


# --- test attempts -----------------------------------------------------------


def make_evaluation() -> Evaluation:
    return Evaluation(
        score=80,
        scores=[{"questionId": 1, "score": 80, "feedback": "Good"}],
        summary="Solid",
        raw={"overallScore": 80, "scores": [{"questionId": 1, "score": 80, "feedback": "Good"}]},
    )


@pytest.mark.asyncio
async def test_insert_attempt_stores_answers_and_raw_evaluation():
    fetch_val = AsyncMock(return_value="a-1")
    answers = [TestAnswer(question_id=1, question="Describe your city.", answer="It is busy.", type="written")]
    with patch("academy.repositories.test_attempt_repository.fetch_val", fetch_val):
        attempt_id = await TestAttemptRepository().insert_attempt(
            test_type="written",
            answers=answers,
            evaluation=make_evaluation(),
            cefr_level="C1",
            recommended_course="Professional English",
            user_email="",
        )

    assert attempt_id == "a-1"
    params = fetch_val.await_args.args[1]
    assert params[0] == "written"
    assert params[2] is None
    assert params[3].obj == [{"questionId": 1, "question": "Describe your city.", "answer": "It is busy.", "type": "written"}]
    assert params[4:7] == (80, "C1", "Professional English")
    assert params[7].obj["overallScore"] == 80


@pytest.mark.asyncio
async def test_insert_attempt_without_id_raises():
    with patch("academy.repositories.test_attempt_repository.fetch_val", AsyncMock(return_value=None)):
        with pytest.raises(DatabaseError):
            await TestAttemptRepository().insert_attempt(
                test_type="written",
                answers=[],
                evaluation=make_evaluation(),
                cefr_level="C1",
                recommended_course="Professional English",
            )
