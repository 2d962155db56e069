"""Service self-check over the RPC surface."""

import logging

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from ..core.clock import utcnow
from ..core.config import settings
from ..core.database import ping_database
from ..core.observability import SERVICE_VERSION
from ..schemas.health import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping() -> HealthResponse:
    """
    Report whether the store answers and whether cancellation notices go out.

    An unreachable store degrades the service instead of failing the ping.
    """
    try:
        database_reachable = await ping_database()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health ping could not reach the database", extra={"error": str(e)})
        database_reachable = False

    return HealthResponse(
        status=HealthStatus.HEALTHY if database_reachable else HealthStatus.DEGRADED,
        timestamp=utcnow(),
        version=SERVICE_VERSION,
        database_reachable=database_reachable,
        notifications_enabled=bool(settings.notification_url),
    )
