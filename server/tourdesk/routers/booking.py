"""Booking router for customer and operator booking operations."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import BookingServiceDependency, OperatorDependency, SessionDependency
from ..core.session import SessionContext
from ..schemas.booking import (
    BookingIdRequest,
    BookingListResponse,
    BookingMutationResponse,
    BookingView,
    CreateBookingRequest,
    CustomerBookingsRequest,
    EditBookingRequest,
    ListBookingsRequest,
    PendingActionsResponse,
)
from ..services.booking_lifecycle import BookingLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])


def _mutation_response(result: BookingMutationResponse) -> JSONResponse:
    if result.warnings:
        logger.warning(
            "Booking change committed with warnings",
            extra={
                "booking_id": str(result.booking.id),
                "status": result.booking.status.value,
                "warnings": [warning.message for warning in result.warnings]
            }
        )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


# Customer surface

@router.post("/create", response_model=BookingMutationResponse)
async def create_booking(
    request: CreateBookingRequest,
    session: SessionContext = SessionDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    """Book a tour for the signed-in customer. The booking starts as pending."""
    result = await service.create_booking(session, request)
    return _mutation_response(result)


@router.post("/request-cancel", response_model=BookingMutationResponse)
async def request_cancellation(
    request: BookingIdRequest,
    session: SessionContext = SessionDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    """Ask the operator to cancel one of the caller's upcoming bookings."""
    result = await service.request_cancellation(session, request.booking_id)
    return _mutation_response(result)


@router.post("/cancel", response_model=BookingMutationResponse)
async def cancel_pending_booking(
    request: BookingIdRequest,
    session: SessionContext = SessionDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    """Withdraw one of the caller's bookings that is still pending."""
    result = await service.cancel_pending_booking(session, request.booking_id)
    return _mutation_response(result)


@router.post("/mine", response_model=list[BookingView])
async def list_my_bookings(
    request: CustomerBookingsRequest,
    session: SessionContext = SessionDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    """The caller's bookings, newest first, for one tab."""
    views = await service.list_customer_bookings(session, request.tab)
    return JSONResponse(status_code=200, content=[view.model_dump(mode="json") for view in views])


# Operator surface

@router.post("/list", response_model=BookingListResponse)
async def list_bookings(
    request: ListBookingsRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> BookingListResponse:
    """All bookings, newest first, filtered by free text and status."""
    return await service.list_bookings(request)


@router.post("/get", response_model=BookingView)
async def get_booking(
    request: BookingIdRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> BookingView:
    return await service.get_booking(request.booking_id)


@router.post("/pending", response_model=PendingActionsResponse)
async def list_pending_actions(
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> PendingActionsResponse:
    """Latest new bookings and cancel requests awaiting a decision."""
    return await service.list_pending_actions()


@router.post("/confirm", response_model=BookingMutationResponse)
async def confirm_booking(
    request: BookingIdRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    result = await service.confirm_booking(request.booking_id)
    return _mutation_response(result)


@router.post("/complete", response_model=BookingMutationResponse)
async def complete_booking(
    request: BookingIdRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    result = await service.complete_booking(request.booking_id)
    return _mutation_response(result)


@router.post("/approve-cancel", response_model=BookingMutationResponse)
async def approve_cancellation(
    request: BookingIdRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    """
    Approve a cancel request.

    A failed cancellation notice does not undo the approval; it is returned
    as a warning with outcome ``success_with_warning``.
    """
    result = await service.approve_cancellation(request.booking_id)
    return _mutation_response(result)


@router.post("/reject-cancel", response_model=BookingMutationResponse)
async def reject_cancellation(
    request: BookingIdRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    result = await service.reject_cancellation(request.booking_id)
    return _mutation_response(result)


@router.post("/edit", response_model=BookingMutationResponse)
async def edit_booking(
    request: EditBookingRequest,
    _: SessionContext = OperatorDependency,
    service: BookingLifecycleService = BookingServiceDependency,
) -> JSONResponse:
    """Change party size, special requests or contact phone of a non-terminal booking."""
    result = await service.edit_booking(request)
    return _mutation_response(result)
