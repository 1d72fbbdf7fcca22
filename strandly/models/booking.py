"""Data models for salon bookings."""

from datetime import datetime
from enum import Enum

from pydantic import AwareDatetime, ConfigDict, Field

from strandly.models.base import CMSDocument, CMSModel, RelationId


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(CMSDocument):
    """A booking stored in the CMS."""

    stylist: RelationId = Field(..., description="Stylist id")
    service: RelationId = Field(..., description="Service id")
    start: AwareDatetime = Field(..., description="Appointment start")
    end: AwareDatetime = Field(..., description="Appointment end")
    customer_name: str = Field(..., description="Customer name")
    customer_email: str = Field(..., description="Customer email")
    customer_phone: str | None = Field(None, description="Customer phone")
    notes: str | None = Field(None, description="Notes for the stylist")
    status: BookingStatus = Field(default=BookingStatus.PENDING)
    locale: str | None = Field(None, description="Locale the booking was made in")

    @property
    def is_active(self) -> bool:
        """Active bookings occupy the stylist's chair."""
        return self.status != BookingStatus.CANCELLED

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval overlap with ``[start, end)``."""
        return self.start < end and start < self.end


class BookingRequest(CMSModel):
    """Customer's booking request details."""

    model_config = ConfigDict(frozen=True)

    stylist_id: str = Field(..., description="Stylist id")
    service_id: str = Field(..., description="Service id")
    start: AwareDatetime = Field(..., description="Requested start time")
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: str = Field(..., max_length=254)
    customer_phone: str | None = Field(None, description="Contact phone number")
    notes: str | None = Field(None, max_length=500, description="Special requests")


class TimeSlot(CMSModel):
    """A bookable start/end pair."""

    start: datetime
    end: datetime
