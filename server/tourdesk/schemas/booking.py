"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.booking import BookingStatus
from .common import MutationOutcome, NotificationWarning


class StatusFilter(str, Enum):
    """Status filter offered by the operator booking list."""
    ALL = "All"
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCEL_REQUESTED = "Cancel-Requested"
    CANCELLED = "Cancelled"

    def matches(self, status: BookingStatus) -> bool:
        if self is StatusFilter.ALL:
            return True
        return status.value == self.value.lower()


class CustomerTab(str, Enum):
    """Groupings of a customer's own bookings."""
    ALL = "all"
    UPCOMING = "upcoming"
    HISTORY = "history"
    CANCELLATIONS = "cancellations"


class BookingRow(BaseModel):
    """Booking row as stored."""

    id: UUID
    created_at: datetime
    user_id: UUID
    tour_id: UUID
    booking_date: date
    number_of_people: int = Field(..., ge=1)
    total_price: Decimal
    status: BookingStatus
    special_requests: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingBackupRow(BookingRow):
    """Archived booking snapshot."""

    archived_at: datetime


class CreateBookingRequest(BaseModel):
    """Request schema for booking a tour."""

    tour_id: UUID = Field(..., description="Tour to book")
    booking_date: date = Field(..., description="Date of the tour")
    number_of_people: int = Field(..., ge=1, le=100, description="Party size")
    special_requests: Optional[str] = Field(None, max_length=2000, description="Free-text requests")
    contact_phone: Optional[str] = Field(None, max_length=32, description="Contact phone")
    contact_email: Optional[str] = Field(None, max_length=255, description="Contact email; defaults to the account email")


class BookingIdRequest(BaseModel):
    """Request schema addressing a single booking."""

    booking_id: UUID = Field(..., description="Booking to act on")


class EditBookingRequest(BaseModel):
    """Request schema for editing the mutable booking fields."""

    booking_id: UUID = Field(..., description="Booking to edit")
    number_of_people: Optional[int] = Field(None, ge=1, le=100, description="New party size")
    special_requests: Optional[str] = Field(None, max_length=2000, description="New special requests")
    contact_phone: Optional[str] = Field(None, max_length=32, description="New contact phone")


class ListBookingsRequest(BaseModel):
    """Request schema for the operator booking list."""

    query: str = Field("", max_length=255, description="Matches contact email, customer name or tour title")
    status: StatusFilter = Field(StatusFilter.ALL, description="Status filter")


class CustomerBookingsRequest(BaseModel):
    """Request schema for the caller's own bookings."""

    tab: CustomerTab = Field(CustomerTab.ALL, description="Which bookings to show")


class BookingView(BookingRow):
    """Booking joined with its customer name and tour title."""

    customer_name: str = Field(..., description="Resolved display name or N/A")
    tour_title: Optional[str] = Field(None, description="Title of the booked tour")


class BookingListResponse(BaseModel):
    """Filtered operator booking list."""

    items: list[BookingView]
    total: int = Field(..., description="Number of items after filtering")
    counts: dict[StatusFilter, int] = Field(..., description="Unfiltered booking count per status filter")


class PendingAction(BaseModel):
    """A booking awaiting operator attention."""

    notification_type: str = Field(..., description="New Booking or Cancel Request")
    booking: BookingView


class PendingActionsResponse(BaseModel):
    """Latest bookings awaiting operator attention."""

    items: list[PendingAction]


class BookingMutationResponse(BaseModel):
    """Result of a committed booking mutation."""

    outcome: MutationOutcome
    booking: BookingRow
    warnings: list[NotificationWarning] = Field(default_factory=list)
