"""Service layer package."""

from .analytics import AnalyticsService, compute_dashboard_stats
from .booking_lifecycle import BookingLifecycleService
from .notifications import BookingEventDispatcher, HttpCancellationNotifier
from .profile_service import ProfileService
from .report_export import export_report_csv
from .tour_catalog import TourCatalogService

__all__ = [
    "AnalyticsService",
    "BookingEventDispatcher",
    "BookingLifecycleService",
    "HttpCancellationNotifier",
    "ProfileService",
    "TourCatalogService",
    "compute_dashboard_stats",
    "export_report_csv",
]
