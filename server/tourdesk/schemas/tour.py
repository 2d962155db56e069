"""Tour-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.tour import MAX_SUB_IMAGES, TourType


class Feature(BaseModel):
    """One entry of a tour's feature list."""

    text: str = Field(..., max_length=255, description="Feature label")
    available: bool = Field(True, description="Whether the feature is included")


class TourRow(BaseModel):
    """Tour row as stored."""

    id: UUID
    created_at: datetime
    title: str
    price: Decimal
    duration: str
    image: str
    sub_images: list[str] = Field(default_factory=list)
    type: TourType
    location: str
    max_capacity: int = 0
    available: bool = True
    features: list[Feature] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class TourDraft(BaseModel):
    """Editable tour fields. Business rules are checked by the catalog before any write."""

    title: str = Field("", max_length=255, description="Tour title")
    price: Optional[Decimal] = Field(None, description="Price per person")
    duration: str = Field("", max_length=64, description="Duration label, e.g. '8 hours'")
    image: Optional[str] = Field(None, description="Primary image URL")
    sub_images: list[str] = Field(default_factory=list, description=f"Up to {MAX_SUB_IMAGES} secondary image URLs")
    type: TourType = Field(TourType.REGULAR, description="Tour category")
    location: str = Field("", max_length=255, description="Location label")
    max_capacity: int = Field(0, ge=0, description="Maximum party size; 0 means unlimited")
    available: bool = Field(True, description="Whether the tour can be booked")
    features: list[Feature] = Field(default_factory=list, description="Ordered feature list")


class UpdateTourRequest(TourDraft):
    """Request schema for replacing a tour's editable fields."""

    tour_id: UUID = Field(..., description="Tour to update")


class TourIdRequest(BaseModel):
    """Request schema addressing a single tour."""

    tour_id: UUID = Field(..., description="Tour to act on")


class SearchToursRequest(BaseModel):
    """Request schema for the catalog listing."""

    query: str = Field("", max_length=255, description="Matches title or location")


class FeaturedToursRequest(BaseModel):
    """Request schema for featured tours of one category."""

    type: TourType = Field(..., description="Tour category")
    limit: int = Field(3, ge=1, le=20, description="Maximum tours to return")


class AddFeatureRequest(BaseModel):
    """Request schema for adding a feature to a draft's feature list."""

    features: list[Feature] = Field(default_factory=list, description="Current draft features")
    text: str = Field(..., max_length=255, description="Label of the feature to add")


class ToggleFeatureRequest(BaseModel):
    """Request schema for flipping one feature's availability."""

    features: list[Feature] = Field(..., description="Current draft features")
    index: int = Field(..., ge=0, description="Position of the feature to toggle")


class FeatureListResponse(BaseModel):
    """Resulting feature list."""

    features: list[Feature]


class TourListResponse(BaseModel):
    """Tour listing."""

    items: list[TourRow]


class DeleteTourResponse(BaseModel):
    """Result of the archive-and-delete workflow."""

    tour_id: UUID
    archived_bookings: int = Field(..., ge=0, description="Bookings copied to the backup store and removed")
