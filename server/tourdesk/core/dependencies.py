"""FastAPI dependencies for the session context, gateway and services."""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Header

from .config import settings
from .database import async_session_factory
from .exceptions import AuthorizationError
from .session import SessionContext, close_session, open_session, parse_authorization
from ..gateway import Gateway, SqlAlchemyGateway
from ..services.analytics import AnalyticsService
from ..services.booking_lifecycle import BookingLifecycleService
from ..services.notifications import BookingEventDispatcher, build_notifier
from ..services.profile_service import ProfileService
from ..services.tour_catalog import TourCatalogService

_gateway = SqlAlchemyGateway(async_session_factory)
_dispatcher = BookingEventDispatcher(build_notifier(settings))


def get_gateway() -> Gateway:
    """Gateway dependency; overridden in tests."""
    return _gateway


def get_event_dispatcher() -> BookingEventDispatcher:
    """Dispatcher for booking events with the configured notifier."""
    return _dispatcher


async def get_session_context(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> AsyncGenerator[SessionContext, None]:
    """
    Session dependency built from the bearer token.

    The context lives for one request; its logging context is cleared on
    teardown.

    Raises:
        AuthenticationError: If the header or token is missing or invalid
    """
    context = open_session(parse_authorization(authorization))
    try:
        yield context
    finally:
        close_session(context)


async def require_operator(
    session: SessionContext = Depends(get_session_context)
) -> SessionContext:
    """Allow only callers carrying the operator role."""
    if not session.is_operator:
        raise AuthorizationError(
            detail="Operator access is required",
            required_role=settings.operator_role,
        )
    return session


def get_booking_service(
    gateway: Gateway = Depends(get_gateway),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
) -> BookingLifecycleService:
    return BookingLifecycleService(gateway, dispatcher)


def get_catalog_service(gateway: Gateway = Depends(get_gateway)) -> TourCatalogService:
    return TourCatalogService(gateway)


def get_analytics_service(gateway: Gateway = Depends(get_gateway)) -> AnalyticsService:
    return AnalyticsService(gateway)


def get_profile_service(gateway: Gateway = Depends(get_gateway)) -> ProfileService:
    return ProfileService(gateway)


SessionDependency = Depends(get_session_context)
OperatorDependency = Depends(require_operator)
BookingServiceDependency = Depends(get_booking_service)
CatalogServiceDependency = Depends(get_catalog_service)
AnalyticsServiceDependency = Depends(get_analytics_service)
ProfileServiceDependency = Depends(get_profile_service)
