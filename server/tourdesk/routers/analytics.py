"""Analytics router for the dashboard and report export."""

import logging

from fastapi import APIRouter, Response

from ..core.clock import today
from ..core.dependencies import AnalyticsServiceDependency, OperatorDependency
from ..core.observability import metrics_collector
from ..core.session import SessionContext
from ..schemas.analytics import DashboardStats
from ..services.analytics import AnalyticsService
from ..services.report_export import CSV_MEDIA_TYPE, export_report_csv, report_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/analytics", tags=["analytics"])


@router.post("/dashboard", response_model=DashboardStats)
async def dashboard(
    _: SessionContext = OperatorDependency,
    service: AnalyticsService = AnalyticsServiceDependency,
) -> DashboardStats:
    """Statistics recomputed from the current bookings, tours and customers."""
    return await service.get_dashboard_stats()


@router.post(
    "/report/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_report(
    session: SessionContext = OperatorDependency,
    service: AnalyticsService = AnalyticsServiceDependency,
) -> Response:
    """
    Export the dashboard statistics as a CSV attachment.

    The report is built from a fresh computation, never from a cached one.
    """
    stats = await service.get_dashboard_stats()
    content = export_report_csv(stats)
    filename = report_filename(today())

    metrics_collector.record_report_exported()
    logger.info(
        "Report exported",
        extra={"report_file": filename, "user_id": str(session.user_id)}
    )

    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
