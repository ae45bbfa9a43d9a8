"""
Trial Booking API Routes
Slot listing and free trial-class reservation.
"""

from fastapi import APIRouter, Depends, status

from academy.dependencies import get_booking_service
from academy.errors import AcademyError, InternalError
from academy.infrastructure.observability.logging import get_logger
from academy.models.api.booking_request import CreateBookingRequest
from academy.models.api.booking_response import (
    BookingDetailsResponse,
    CreateBookingResponse,
    SlotsListResponse,
    TimeSlotResponse,
)
from academy.services.booking_service import BookingService

logger = get_logger(__name__)

router = APIRouter(prefix="/book-trial", tags=["booking"])


@router.get("", response_model=SlotsListResponse)
async def list_available_slots(service: BookingService = Depends(get_booking_service)):
    """List open trial-class slots from today onwards."""
    try:
        slots = await service.list_available_slots()
    except AcademyError:
        raise
    except Exception as e:
        logger.error("Unexpected error listing slots", error=str(e))
        raise InternalError("Failed to fetch available slots") from e

    return SlotsListResponse(slots=[TimeSlotResponse(**slot.to_dict()) for slot in slots])


@router.post("", response_model=CreateBookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Book a free trial class in an open slot."""
    try:
        booking = await service.create_booking(
            name=request.name,
            phone=request.phone,
            email=request.email,
            course=request.course,
            slot_id=request.slot_id,
            message=request.message,
        )
    except AcademyError as e:
        logger.info("Booking rejected", reason=type(e).__name__, status_code=e.status_code)
        raise
    except Exception as e:
        logger.error("Unexpected booking error", error=str(e))
        raise InternalError("Failed to create booking") from e

    return CreateBookingResponse(booking=BookingDetailsResponse(**booking.to_dict()))
