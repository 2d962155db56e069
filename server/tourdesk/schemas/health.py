"""Health-related Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Outcome of the health ping."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Health ping response schema."""

    status: HealthStatus = Field(..., description="degraded when the store does not answer")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    version: str = Field(..., description="Service version")
    database_reachable: bool = Field(..., description="Whether a trivial query against the store succeeded")
    notifications_enabled: bool = Field(..., description="Whether cancellation notifications are configured")
