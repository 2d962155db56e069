"""Tour router for catalog operations."""

import logging

from fastapi import APIRouter

from ..core.dependencies import CatalogServiceDependency, OperatorDependency
from ..core.session import SessionContext
from ..schemas.tour import (
    AddFeatureRequest,
    DeleteTourResponse,
    FeaturedToursRequest,
    FeatureListResponse,
    SearchToursRequest,
    ToggleFeatureRequest,
    TourDraft,
    TourIdRequest,
    TourListResponse,
    TourRow,
    UpdateTourRequest,
)
from ..services.tour_catalog import TourCatalogService, add_feature, toggle_feature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/tour", tags=["tour"])


@router.post("/create", response_model=TourRow)
async def create_tour(
    request: TourDraft,
    _: SessionContext = OperatorDependency,
    service: TourCatalogService = CatalogServiceDependency,
) -> TourRow:
    """Create a tour after validating the draft."""
    return await service.create_tour(request)


@router.post("/update", response_model=TourRow)
async def update_tour(
    request: UpdateTourRequest,
    _: SessionContext = OperatorDependency,
    service: TourCatalogService = CatalogServiceDependency,
) -> TourRow:
    return await service.update_tour(request)


@router.post("/delete", response_model=DeleteTourResponse)
async def delete_tour(
    request: TourIdRequest,
    _: SessionContext = OperatorDependency,
    service: TourCatalogService = CatalogServiceDependency,
) -> DeleteTourResponse:
    """
    Delete a tour.

    Its bookings are copied to the backup store and removed first; if any
    step fails nothing is left half-deleted.
    """
    return await service.delete_tour(request.tour_id)


@router.post("/get", response_model=TourRow)
async def get_tour(
    request: TourIdRequest,
    service: TourCatalogService = CatalogServiceDependency,
) -> TourRow:
    return await service.get_tour(request.tour_id)


@router.post("/search", response_model=TourListResponse)
async def search_tours(
    request: SearchToursRequest,
    service: TourCatalogService = CatalogServiceDependency,
) -> TourListResponse:
    """Tours whose title or location contains the query."""
    tours = await service.search_tours(request.query)

    logger.debug("Tours searched", extra={"query": request.query, "matched": len(tours)})

    return TourListResponse(items=tours)


@router.post("/featured", response_model=TourListResponse)
async def featured_tours(
    request: FeaturedToursRequest,
    service: TourCatalogService = CatalogServiceDependency,
) -> TourListResponse:
    """Newest available tours of one category."""
    tours = await service.featured_tours(request.type, request.limit)
    return TourListResponse(items=tours)


@router.post("/feature/add", response_model=FeatureListResponse)
async def add_tour_feature(
    request: AddFeatureRequest,
    _: SessionContext = OperatorDependency,
) -> FeatureListResponse:
    """Append a feature to a draft's feature list."""
    return FeatureListResponse(features=add_feature(request.features, request.text))


@router.post("/feature/toggle", response_model=FeatureListResponse)
async def toggle_tour_feature(
    request: ToggleFeatureRequest,
    _: SessionContext = OperatorDependency,
) -> FeatureListResponse:
    return FeatureListResponse(features=toggle_feature(request.features, request.index))
