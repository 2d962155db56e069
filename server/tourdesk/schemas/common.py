"""Common Pydantic schemas."""

from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


class MutationOutcome(str, Enum):
    """How a committed mutation ended. Failures are returned as problems instead."""
    SUCCESS = "success"
    SUCCESS_WITH_WARNING = "success_with_warning"


class NotificationWarning(BaseModel):
    """A best-effort side effect failed after its state change committed."""

    code: str = Field("NOTIFICATION_FAILED", description="Warning code")
    booking_id: UUID = Field(..., description="Booking whose notification failed")
    message: str = Field(..., description="Failure reported by the notifier")
