"""FastAPI routers package."""

from .analytics import router as analytics_router
from .booking import router as booking_router
from .health import router as health_router
from .metrics import router as metrics_router
from .profile import router as profile_router
from .tour import router as tour_router

__all__ = [
    "analytics_router",
    "booking_router",
    "health_router",
    "metrics_router",
    "profile_router",
    "tour_router",
]
