"""
Booking API request models.
Fields are optional at the schema level; the booking service applies the
business validation so every rejection carries its specific error message.
"""

from pydantic import BaseModel, ConfigDict, Field


class CreateBookingRequest(BaseModel):
    """Request for booking a free trial class."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, description="Visitor's full name")
    phone: str | None = Field(default=None, description="Contact phone number")
    email: str | None = Field(default=None, description="Contact email")
    course: str | None = Field(default=None, description="Course of interest")
    message: str | None = Field(default=None, description="Optional note for the instructor")
    slot_id: str | None = Field(default=None, alias="slotId", description="Time slot to reserve")
