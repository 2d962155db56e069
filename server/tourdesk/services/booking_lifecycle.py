"""Booking lifecycle: status transitions, edits and operator/customer queries."""

import logging
from datetime import date
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from ..core.clock import today, utcnow
from ..core.exceptions import AuthorizationError, ConflictError, StaleWriteError, ValidationError
from ..core.observability import metrics_collector
from ..core.session import SessionContext
from ..gateway import Gateway, Order, Table, eq, in_
from ..models.booking import BookingStatus
from ..schemas.booking import (
    BookingListResponse,
    BookingMutationResponse,
    BookingRow,
    BookingView,
    CreateBookingRequest,
    CustomerTab,
    EditBookingRequest,
    ListBookingsRequest,
    PendingAction,
    PendingActionsResponse,
    StatusFilter,
)
from ..schemas.common import MutationOutcome, NotificationWarning
from ..schemas.profile import ProfileRow
from ..schemas.tour import TourRow
from .notifications import BookingCancelled, BookingEventDispatcher

logger = logging.getLogger(__name__)

PENDING_ACTIONS_LIMIT = 5
EDITABLE_FIELDS = frozenset({"number_of_people", "special_requests", "contact_phone"})


class Actor(str, Enum):
    """Who is asking for a transition."""
    OPERATOR = "operator"
    CUSTOMER = "customer"


# (from, to) -> the only actor allowed to make that move
ALLOWED_TRANSITIONS: dict[tuple[BookingStatus, BookingStatus], Actor] = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): Actor.OPERATOR,
    (BookingStatus.PENDING, BookingStatus.CANCELLED): Actor.CUSTOMER,
    (BookingStatus.PENDING, BookingStatus.CANCEL_REQUESTED): Actor.CUSTOMER,
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): Actor.OPERATOR,
    (BookingStatus.CONFIRMED, BookingStatus.CANCEL_REQUESTED): Actor.CUSTOMER,
    (BookingStatus.CANCEL_REQUESTED, BookingStatus.CANCELLED): Actor.OPERATOR,
    (BookingStatus.CANCEL_REQUESTED, BookingStatus.CONFIRMED): Actor.OPERATOR,
}

PENDING_ACTION_LABELS = {
    BookingStatus.PENDING: "New Booking",
    BookingStatus.CANCEL_REQUESTED: "Cancel Request",
}


class InvalidTransitionError(ConflictError):
    """Exception when a status change is not in the transition table."""

    def __init__(self, booking_id: UUID, current: BookingStatus, target: BookingStatus, actor: Actor):
        super().__init__(
            detail=f"Booking {booking_id} cannot move from '{current.value}' to '{target.value}' as {actor.value}",
            conflicting_resource={
                "booking_id": str(booking_id),
                "status": current.value,
            }
        )
        self.problem_details.update({
            "code": "INVALID_TRANSITION",
            "retryable": False,
            "from_status": current.value,
            "to_status": target.value,
        })


class BookingLockedError(ConflictError):
    """Exception when editing a booking that reached a terminal status."""

    def __init__(self, booking_id: UUID, status: BookingStatus):
        super().__init__(
            detail=f"Booking {booking_id} is {status.value} and can no longer be edited",
            conflicting_resource={
                "booking_id": str(booking_id),
                "status": status.value,
            }
        )
        self.problem_details.update({
            "code": "BOOKING_LOCKED",
            "retryable": False
        })


class TourUnavailableError(ConflictError):
    """Exception when booking a tour that is not open for bookings."""

    def __init__(self, tour_id: UUID):
        super().__init__(
            detail=f"Tour {tour_id} is not available for booking",
            conflicting_resource={"tour_id": str(tour_id)}
        )
        self.problem_details.update({
            "code": "TOUR_UNAVAILABLE",
            "retryable": False
        })


class CapacityFullError(ConflictError):
    """Exception when the party is larger than the tour allows."""

    def __init__(self, tour_id: UUID, requested: int, max_capacity: int):
        super().__init__(
            detail=f"Tour {tour_id} accepts at most {max_capacity} people per booking. Requested: {requested}",
            conflicting_resource={
                "tour_id": str(tour_id),
                "requested": requested,
                "max_capacity": max_capacity
            }
        )
        self.problem_details.update({
            "code": "FULL",
            "retryable": False
        })


def validate_transition(booking_id: UUID, current: BookingStatus, target: BookingStatus, actor: Actor) -> None:
    """Raise InvalidTransitionError unless ``actor`` may move ``current`` to ``target``."""
    if ALLOWED_TRANSITIONS.get((current, target)) is not actor:
        raise InvalidTransitionError(booking_id, current, target, actor)


def display_name(profile: Optional[ProfileRow]) -> str:
    """Full name, else first and last name, else N/A."""
    if profile is None:
        return "N/A"
    if profile.full_name and profile.full_name.strip():
        return profile.full_name.strip()
    joined = f"{profile.first_name or ''} {profile.last_name or ''}".strip()
    return joined or "N/A"


def matches_query(view: BookingView, query: str) -> bool:
    needle = query.strip().casefold()
    if not needle:
        return True
    haystacks = (view.contact_email, view.customer_name, view.tour_title)
    return any(needle in value.casefold() for value in haystacks if value)


def filter_bookings(views: Iterable[BookingView], query: str, status: StatusFilter) -> list[BookingView]:
    """Free-text match intersected with the status filter; order is preserved."""
    return [view for view in views if status.matches(view.status) and matches_query(view, query)]


def count_by_filter(bookings: Iterable[BookingRow]) -> dict[StatusFilter, int]:
    counts = {status_filter: 0 for status_filter in StatusFilter}
    for booking in bookings:
        for status_filter in StatusFilter:
            if status_filter.matches(booking.status):
                counts[status_filter] += 1
    return counts


def in_tab(booking: BookingRow, tab: CustomerTab, on: date) -> bool:
    """Whether a customer's booking belongs to a bookings tab as of date ``on``."""
    status = booking.status
    if tab is CustomerTab.ALL:
        return True
    if tab is CustomerTab.UPCOMING:
        return status in (BookingStatus.PENDING, BookingStatus.CONFIRMED) and booking.booking_date >= on
    if tab is CustomerTab.HISTORY:
        return status is BookingStatus.COMPLETED or (
            status is BookingStatus.CONFIRMED and booking.booking_date < on
        )
    return status in (BookingStatus.CANCEL_REQUESTED, BookingStatus.CANCELLED)


class BookingLifecycleService:
    """Service owning booking status transitions and booking queries."""

    def __init__(self, gateway: Gateway, dispatcher: BookingEventDispatcher):
        self.gateway = gateway
        self.dispatcher = dispatcher

    async def _apply_transition(
        self,
        booking: BookingRow,
        target: BookingStatus,
        actor: Actor,
    ) -> BookingMutationResponse:
        """Validate, write the new status, then run the cancellation side effect."""
        previous = booking.status
        validate_transition(booking.id, previous, target, actor)

        try:
            updated = await self.gateway.update(
                Table.BOOKINGS, booking.id, {"status": target}, expected=[eq("status", previous)]
            )
        except StaleWriteError:
            # Status moved since the read; judge the request against the stored status
            current = await self.gateway.get(Table.BOOKINGS, booking.id)
            raise InvalidTransitionError(booking.id, current.status, target, actor) from None

        metrics_collector.record_transition(previous.value, target.value)

        logger.info(
            "Booking status changed",
            extra={
                "booking_id": str(booking.id),
                "from_status": previous.value,
                "to_status": target.value,
                "actor": actor.value
            }
        )

        warnings: list[NotificationWarning] = []
        if target is BookingStatus.CANCELLED:
            warning = await self.dispatcher.publish_cancelled(
                BookingCancelled(booking_id=booking.id, previous_status=previous, occurred_at=utcnow())
            )
            if warning is not None:
                warnings.append(warning)

        return BookingMutationResponse(
            outcome=MutationOutcome.SUCCESS_WITH_WARNING if warnings else MutationOutcome.SUCCESS,
            booking=updated,
            warnings=warnings,
        )

    async def _get_owned(self, session: SessionContext, booking_id: UUID) -> BookingRow:
        booking = await self.gateway.get(Table.BOOKINGS, booking_id)
        if booking.user_id != session.user_id:
            logger.warning(
                "Booking access denied - not the owner",
                extra={"booking_id": str(booking_id), "user_id": str(session.user_id)}
            )
            raise AuthorizationError(detail="Only the customer who made the booking can change it")
        return booking

    async def confirm_booking(self, booking_id: UUID) -> BookingMutationResponse:
        booking = await self.gateway.get(Table.BOOKINGS, booking_id)
        return await self._apply_transition(booking, BookingStatus.CONFIRMED, Actor.OPERATOR)

    async def complete_booking(self, booking_id: UUID) -> BookingMutationResponse:
        booking = await self.gateway.get(Table.BOOKINGS, booking_id)
        return await self._apply_transition(booking, BookingStatus.COMPLETED, Actor.OPERATOR)

    async def approve_cancellation(self, booking_id: UUID) -> BookingMutationResponse:
        """Operator approves a cancel request; the cancellation notice follows the write."""
        booking = await self.gateway.get(Table.BOOKINGS, booking_id)
        return await self._apply_transition(booking, BookingStatus.CANCELLED, Actor.OPERATOR)

    async def reject_cancellation(self, booking_id: UUID) -> BookingMutationResponse:
        """Operator rejects a cancel request; the booking always returns to confirmed."""
        booking = await self.gateway.get(Table.BOOKINGS, booking_id)
        return await self._apply_transition(booking, BookingStatus.CONFIRMED, Actor.OPERATOR)

    async def request_cancellation(self, session: SessionContext, booking_id: UUID) -> BookingMutationResponse:
        """
        Customer asks for a pending or confirmed booking to be cancelled.

        Raises:
            AuthorizationError: If the caller does not own the booking
            ValidationError: If the booking date has passed
            InvalidTransitionError: If the booking is not pending or confirmed
        """
        booking = await self._get_owned(session, booking_id)
        if booking.booking_date < today():
            raise ValidationError(
                detail="Cancellation can only be requested for bookings that have not taken place",
                errors={"booking_date": booking.booking_date.isoformat()},
            )
        return await self._apply_transition(booking, BookingStatus.CANCEL_REQUESTED, Actor.CUSTOMER)

    async def cancel_pending_booking(self, session: SessionContext, booking_id: UUID) -> BookingMutationResponse:
        """Customer withdraws a booking the operator has not confirmed yet."""
        booking = await self._get_owned(session, booking_id)
        return await self._apply_transition(booking, BookingStatus.CANCELLED, Actor.CUSTOMER)

    async def create_booking(self, session: SessionContext, request: CreateBookingRequest) -> BookingMutationResponse:
        """
        Book a tour for the signed-in customer.

        Args:
            session: Caller's session; supplies the owner and the default contact email
            request: Booking creation request

        Returns:
            The pending booking with its computed total price

        Raises:
            ValidationError: If the date is in the past or the party is empty
            NotFoundError: If the tour does not exist
            TourUnavailableError: If the tour is not open for bookings
            CapacityFullError: If the party exceeds the tour's capacity
        """
        errors = {}
        if request.booking_date < today():
            errors["booking_date"] = "Booking date cannot be in the past"
        if request.number_of_people < 1:
            errors["number_of_people"] = "At least one person is required"
        if errors:
            raise ValidationError(detail="Booking details are invalid", errors=errors)

        tour: TourRow = await self.gateway.get(Table.TOURS, request.tour_id)
        if not tour.available:
            raise TourUnavailableError(tour.id)
        if tour.max_capacity > 0 and request.number_of_people > tour.max_capacity:
            raise CapacityFullError(tour.id, request.number_of_people, tour.max_capacity)

        booking = await self.gateway.insert(Table.BOOKINGS, {
            "user_id": session.user_id,
            "tour_id": tour.id,
            "booking_date": request.booking_date,
            "number_of_people": request.number_of_people,
            "total_price": tour.price * request.number_of_people,
            "status": BookingStatus.PENDING,
            "special_requests": request.special_requests,
            "contact_phone": request.contact_phone,
            "contact_email": request.contact_email or session.email,
        })

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "tour_id": str(tour.id),
                "user_id": str(session.user_id),
                "number_of_people": booking.number_of_people,
                "total_price": str(booking.total_price)
            }
        )

        return BookingMutationResponse(outcome=MutationOutcome.SUCCESS, booking=booking)

    async def edit_booking(self, request: EditBookingRequest) -> BookingMutationResponse:
        """
        Change party size, special requests or contact phone.

        The total price is kept as computed at creation.

        Raises:
            ValidationError: If no editable field is supplied
            BookingLockedError: If the booking is completed or cancelled
        """
        patch = request.model_dump(exclude_unset=True, include=EDITABLE_FIELDS)
        if not patch:
            raise ValidationError(detail="No editable fields supplied")
        if "number_of_people" in patch and patch["number_of_people"] is None:
            raise ValidationError(
                detail="Booking details are invalid",
                errors={"number_of_people": "Party size cannot be cleared"},
            )

        booking = await self.gateway.get(Table.BOOKINGS, request.booking_id)
        if booking.status.is_terminal:
            raise BookingLockedError(booking.id, booking.status)

        updated = await self.gateway.update(Table.BOOKINGS, booking.id, patch)

        logger.info(
            "Booking edited",
            extra={"booking_id": str(booking.id), "fields": sorted(patch)}
        )

        return BookingMutationResponse(outcome=MutationOutcome.SUCCESS, booking=updated)

    async def _to_views(self, bookings: list[BookingRow]) -> list[BookingView]:
        """Join bookings with customer names and tour titles in memory."""
        if not bookings:
            return []

        user_ids = {booking.user_id for booking in bookings}
        tour_ids = {booking.tour_id for booking in bookings}
        profiles = await self.gateway.list(Table.PROFILES, [in_("id", user_ids)])
        tours = await self.gateway.list(Table.TOURS, [in_("id", tour_ids)])

        profiles_by_id = {profile.id: profile for profile in profiles}
        titles_by_id = {tour.id: tour.title for tour in tours}

        return [
            BookingView(
                **booking.model_dump(),
                customer_name=display_name(profiles_by_id.get(booking.user_id)),
                tour_title=titles_by_id.get(booking.tour_id),
            )
            for booking in bookings
        ]

    async def get_booking(self, booking_id: UUID) -> BookingView:
        booking = await self.gateway.get(Table.BOOKINGS, booking_id)
        views = await self._to_views([booking])
        return views[0]

    async def list_bookings(self, request: ListBookingsRequest) -> BookingListResponse:
        """All bookings newest first, filtered by text query and status."""
        bookings = await self.gateway.list(Table.BOOKINGS, order=Order("created_at", descending=True))
        views = await self._to_views(bookings)
        items = filter_bookings(views, request.query, request.status)

        logger.debug(
            "Bookings listed",
            extra={"query": request.query, "status": request.status.value, "matched": len(items)}
        )

        return BookingListResponse(items=items, total=len(items), counts=count_by_filter(bookings))

    async def list_pending_actions(self, limit: int = PENDING_ACTIONS_LIMIT) -> PendingActionsResponse:
        """Latest bookings waiting for an operator decision."""
        bookings = await self.gateway.list(
            Table.BOOKINGS,
            [in_("status", PENDING_ACTION_LABELS)],
            order=Order("created_at", descending=True),
            limit=limit,
        )
        views = await self._to_views(bookings)
        return PendingActionsResponse(items=[
            PendingAction(notification_type=PENDING_ACTION_LABELS[view.status], booking=view)
            for view in views
        ])

    async def list_customer_bookings(self, session: SessionContext, tab: CustomerTab) -> list[BookingView]:
        bookings = await self.gateway.list(
            Table.BOOKINGS,
            [eq("user_id", session.user_id)],
            order=Order("created_at", descending=True),
        )
        on = today()
        return await self._to_views([booking for booking in bookings if in_tab(booking, tab, on)])
