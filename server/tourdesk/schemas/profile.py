"""Profile-related Pydantic schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ProfileRow(BaseModel):
    """Profile row as stored."""

    id: UUID
    created_at: datetime
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "user"
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    model_config = {"from_attributes": True}


class UpdateProfileRequest(BaseModel):
    """Request schema for editing the caller's own profile. Omitted fields are left unchanged."""

    full_name: Optional[str] = Field(None, max_length=255, description="Display name")
    first_name: Optional[str] = Field(None, max_length=128, description="Given name")
    last_name: Optional[str] = Field(None, max_length=128, description="Family name")
    contact_phone: Optional[str] = Field(None, max_length=32, description="Contact phone")
