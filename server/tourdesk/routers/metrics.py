"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.observability import get_prometheus_metrics

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Request, booking transition, notification and export counters",
    response_class=Response,
    tags=["Observability"]
)
async def metrics():
    """Return the service registry in the Prometheus text format."""
    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
