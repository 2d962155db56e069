"""Analytics-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ..models.booking import BookingStatus
from ..models.tour import TourType


class LocationRank(BaseModel):
    """One entry of the top-locations ranking."""

    name: str = Field(..., description="Location label")
    count: int = Field(..., ge=0, description="Number of tours at the location")
    color: str = Field(..., description="Palette colour assigned by rank")


class DashboardStats(BaseModel):
    """Statistics derived from one round of bulk reads."""

    total_bookings: int = Field(..., ge=0, description="Completed bookings")
    total_revenue: Decimal = Field(..., description="Revenue over completed bookings")
    available_tours: int = Field(..., ge=0, description="Tours currently bookable")
    active_customers: int = Field(..., ge=0, description="Profiles with the customer role")
    bookings_trend: str = Field(..., description="Completed bookings, this month vs last month")
    revenue_trend: str = Field(..., description="Revenue, this month vs last month")
    monthly_bookings: list[int] = Field(..., min_length=6, max_length=6, description="Oldest month first")
    monthly_revenue: list[Decimal] = Field(..., min_length=6, max_length=6, description="Oldest month first")
    month_labels: list[str] = Field(..., min_length=6, max_length=6, description="Month names per bucket")
    status_distribution: dict[BookingStatus, int]
    category_distribution: dict[TourType, int]
    top_locations: list[LocationRank] = Field(..., max_length=5)
    generated_at: datetime = Field(..., description="Reference time the buckets are computed against")
