"""
Booking API response models.
Used by routes for output formatting.
"""

from datetime import date, datetime, time

from pydantic import BaseModel, Field


class TimeSlotResponse(BaseModel):
    """An open trial-class slot."""

    id: str = Field(..., description="Slot ID")
    slot_date: date = Field(..., description="Calendar date of the slot")
    start_time: time = Field(..., description="Start time of day")
    end_time: time = Field(..., description="End time of day")
    is_available: bool = Field(..., description="Whether the slot can still be booked")


class SlotsListResponse(BaseModel):
    """Response for listing available slots."""

    slots: list[TimeSlotResponse] = Field(default_factory=list, description="Open slots, soonest first")


class BookingDetailsResponse(BaseModel):
    """A stored booking joined with its slot's date and time."""

    id: str = Field(..., description="Booking ID")
    slot_id: str = Field(..., description="Reserved slot ID")
    name: str = Field(..., description="Visitor's name")
    email: str = Field(..., description="Normalized contact email")
    phone: str = Field(..., description="Contact phone number")
    course: str = Field(..., description="Course of interest")
    message: str | None = Field(None, description="Optional note")
    created_at: datetime = Field(..., description="When the booking was made")
    slot_date: date | None = Field(None, description="Date of the reserved slot")
    start_time: time | None = Field(None, description="Start time of the reserved slot")
    end_time: time | None = Field(None, description="End time of the reserved slot")


class CreateBookingResponse(BaseModel):
    """Response after a successful booking."""

    success: bool = Field(default=True)
    message: str = Field(default="Trial class booked successfully!")
    booking: BookingDetailsResponse
