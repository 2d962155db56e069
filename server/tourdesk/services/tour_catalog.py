"""Tour catalog: validated CRUD and the archive-then-delete workflow."""

import logging
from typing import Any, Optional
from uuid import UUID

from ..core.clock import utcnow
from ..core.exceptions import GatewayError, PartialFailureError, ValidationError
from ..core.observability import get_tracer, metrics_collector
from ..gateway import Gateway, Order, Table, eq, in_
from ..models.tour import MAX_SUB_IMAGES, TourType
from ..schemas.booking import BookingRow
from ..schemas.tour import DeleteTourResponse, Feature, TourDraft, TourRow, UpdateTourRequest

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

DELETE_WORKFLOW = "Tour deletion"
FEATURED_LIMIT = 3


def _label_key(text: str) -> str:
    return text.strip().casefold()


def validate_draft(draft: TourDraft) -> dict[str, Any]:
    """
    Check a tour draft and return the column values to write.

    Raises:
        ValidationError: Listing every failed field
    """
    errors: dict[str, str] = {}

    title = draft.title.strip()
    if not title:
        errors["title"] = "Title is required"

    if draft.price is None or not draft.price.is_finite() or draft.price <= 0:
        errors["price"] = "Price must be a positive number"

    duration = draft.duration.strip()
    if not duration:
        errors["duration"] = "Duration is required"

    location = draft.location.strip()
    if not location:
        errors["location"] = "Location is required"

    image = (draft.image or "").strip()
    if not image:
        errors["image"] = "A primary image is required"

    if len(draft.sub_images) > MAX_SUB_IMAGES:
        errors["sub_images"] = f"At most {MAX_SUB_IMAGES} additional images are allowed"

    seen: set[str] = set()
    for feature in draft.features:
        key = _label_key(feature.text)
        if not key:
            errors["features"] = "Feature labels cannot be blank"
            break
        if key in seen:
            errors["features"] = f"Duplicate feature '{feature.text.strip()}'"
            break
        seen.add(key)

    if errors:
        raise ValidationError(detail="Tour details are invalid", errors=errors)

    return {
        "title": title,
        "price": draft.price,
        "duration": duration,
        "image": image,
        "sub_images": list(draft.sub_images),
        "type": draft.type,
        "location": location,
        "max_capacity": draft.max_capacity,
        "available": draft.available,
        "features": [Feature(text=f.text.strip(), available=f.available) for f in draft.features],
    }


def add_feature(features: list[Feature], text: str) -> list[Feature]:
    """Append an available feature, rejecting blanks and case-insensitive duplicates."""
    label = text.strip()
    if not label:
        raise ValidationError(detail="Feature text is required", errors={"text": "blank"})
    if any(_label_key(feature.text) == label.casefold() for feature in features):
        raise ValidationError(detail=f"Feature '{label}' already exists", errors={"text": "duplicate"})
    return [*features, Feature(text=label, available=True)]


def toggle_feature(features: list[Feature], index: int) -> list[Feature]:
    """Flip the availability of the feature at ``index``."""
    if not 0 <= index < len(features):
        raise ValidationError(detail=f"No feature at position {index}", errors={"index": str(index)})
    toggled = list(features)
    toggled[index] = features[index].model_copy(update={"available": not features[index].available})
    return toggled


class TourCatalogService:
    """Service for tour catalog operations."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def create_tour(self, draft: TourDraft) -> TourRow:
        values = validate_draft(draft)
        tour = await self.gateway.insert(Table.TOURS, values)

        logger.info(
            "Tour created successfully",
            extra={"tour_id": str(tour.id), "title": tour.title, "type": tour.type.value}
        )
        return tour

    async def update_tour(self, request: UpdateTourRequest) -> TourRow:
        values = validate_draft(request)
        tour = await self.gateway.update(Table.TOURS, request.tour_id, values)

        logger.info("Tour updated", extra={"tour_id": str(tour.id)})
        return tour

    async def get_tour(self, tour_id: UUID) -> TourRow:
        return await self.gateway.get(Table.TOURS, tour_id)

    async def search_tours(self, query: str = "") -> list[TourRow]:
        """Tours newest first whose title or location contains ``query``."""
        tours = await self.gateway.list(Table.TOURS, order=Order("created_at", descending=True))
        needle = query.strip().casefold()
        if not needle:
            return tours
        return [
            tour for tour in tours
            if needle in tour.title.casefold() or needle in tour.location.casefold()
        ]

    async def featured_tours(self, tour_type: TourType, limit: int = FEATURED_LIMIT) -> list[TourRow]:
        return await self.gateway.list(
            Table.TOURS,
            [eq("type", tour_type), eq("available", True)],
            order=Order("created_at", descending=True),
            limit=limit,
        )

    async def delete_tour(self, tour_id: UUID) -> DeleteTourResponse:
        """
        Archive a tour's bookings, remove them, then remove the tour.

        Either the tour and its bookings are gone with one backup row per
        booking, or the tour and bookings are left as they were.

        Raises:
            NotFoundError: If the tour does not exist
            GatewayError: If the bookings cannot be read
            PartialFailureError: If archiving or a delete step fails
        """
        with tracer.start_as_current_span("tour.delete") as span:
            span.set_attribute("tour.id", str(tour_id))

            await self.gateway.get(Table.TOURS, tour_id)
            bookings: list[BookingRow] = await self.gateway.list(Table.BOOKINGS, [eq("tour_id", tour_id)])
            completed = ["read_bookings"]
            span.set_attribute("tour.bookings", len(bookings))

            if bookings:
                archived_at = utcnow()
                snapshots = [{**booking.model_dump(), "archived_at": archived_at} for booking in bookings]
                try:
                    await self.gateway.insert_many(Table.BOOKINGS_BACKUP, snapshots)
                except GatewayError as e:
                    raise self._partial_failure(tour_id, "archive_bookings", completed, e) from e
                completed.append("archive_bookings")

                try:
                    # Only the archived rows; a booking added since the read keeps the tour referenced
                    await self.gateway.delete_where(
                        Table.BOOKINGS, [in_("id", [booking.id for booking in bookings])]
                    )
                except GatewayError as e:
                    compensated = await self._discard_backups(bookings)
                    raise self._partial_failure(tour_id, "delete_bookings", completed, e, compensated) from e
                completed.append("delete_bookings")

            try:
                await self.gateway.delete(Table.TOURS, tour_id)
            except GatewayError as e:
                compensated = True
                if bookings:
                    compensated = await self._restore_bookings(bookings) and await self._discard_backups(bookings)
                raise self._partial_failure(tour_id, "delete_tour", completed, e, compensated) from e

        metrics_collector.record_tour_deleted(len(bookings))
        logger.info(
            "Tour deleted",
            extra={"tour_id": str(tour_id), "archived_bookings": len(bookings)}
        )
        return DeleteTourResponse(tour_id=tour_id, archived_bookings=len(bookings))

    async def _discard_backups(self, bookings: list[BookingRow]) -> bool:
        try:
            await self.gateway.delete_where(
                Table.BOOKINGS_BACKUP, [in_("id", [booking.id for booking in bookings])]
            )
        except GatewayError as e:
            logger.error(
                "Failed to remove booking backups after aborted tour deletion",
                extra={"booking_ids": [str(booking.id) for booking in bookings], "error": str(e)}
            )
            return False
        return True

    async def _restore_bookings(self, bookings: list[BookingRow]) -> bool:
        try:
            await self.gateway.insert_many(Table.BOOKINGS, [booking.model_dump() for booking in bookings])
        except GatewayError as e:
            logger.error(
                "Failed to restore bookings after aborted tour deletion",
                extra={"booking_ids": [str(booking.id) for booking in bookings], "error": str(e)}
            )
            return False
        return True

    def _partial_failure(
        self,
        tour_id: UUID,
        failed_step: str,
        completed: list[str],
        cause: GatewayError,
        compensated: Optional[bool] = None,
    ) -> PartialFailureError:
        logger.error(
            "Tour deletion aborted",
            extra={
                "tour_id": str(tour_id),
                "failed_step": failed_step,
                "completed_steps": completed,
                "compensated": compensated,
                "error": str(cause)
            }
        )
        error = PartialFailureError(
            workflow=DELETE_WORKFLOW,
            failed_step=failed_step,
            completed_steps=list(completed),
            cause=str(cause),
        )
        error.problem_details["tour_id"] = str(tour_id)
        if compensated is not None:
            error.problem_details["compensated"] = compensated
        return error
