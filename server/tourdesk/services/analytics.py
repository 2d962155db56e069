"""Dashboard statistics derived from bulk booking and tour reads."""

import calendar
import logging
from collections import Counter
from datetime import date, datetime
from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Sequence, Union

from ..core.clock import utcnow
from ..core.config import settings
from ..gateway import Gateway, Table, eq, ilike
from ..models.booking import BookingStatus
from ..models.tour import TourType
from ..schemas.analytics import DashboardStats, LocationRank
from ..schemas.booking import BookingRow
from ..schemas.tour import TourRow

logger = logging.getLogger(__name__)

CHART_COLORS = ("#00355f", "#eec218", "#10b981", "#f59e0b", "#3b82f6", "#ef4444")
MONTH_WINDOW = 6
TOP_LOCATIONS = 5

Moment = Union[date, datetime]


def month_offset(moment: Moment, now: Moment) -> int:
    """Whole calendar months from ``moment`` to ``now``; negative for the future."""
    return (now.year - moment.year) * 12 + (now.month - moment.month)


def month_labels(now: Moment) -> list[str]:
    """Abbreviated month names for the trailing window, oldest first."""
    labels = []
    for offset in range(MONTH_WINDOW - 1, -1, -1):
        month_index = (now.month - 1 - offset) % 12
        labels.append(calendar.month_abbr[month_index + 1])
    return labels


def calculate_trend(current: Union[int, Decimal], previous: Union[int, Decimal]) -> str:
    """
    Signed month-over-month change, e.g. ``+20%``.

    Halves round toward positive infinity. Growth from a zero baseline
    reads ``+100%``; the result is not clamped.
    """
    if previous == 0:
        return "+100%" if current > 0 else "0%"

    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    rounded = int((change + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
    return f"+{rounded}%" if rounded > 0 else f"{rounded}%"


def rank_locations(tours: Sequence[TourRow]) -> list[LocationRank]:
    """Top locations by tour count; ties keep first-seen order."""
    counts = Counter(tour.location for tour in tours)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:TOP_LOCATIONS]
    return [
        LocationRank(name=name, count=count, color=CHART_COLORS[rank % len(CHART_COLORS)])
        for rank, (name, count) in enumerate(ranked)
    ]


def compute_dashboard_stats(
    completed: Sequence[BookingRow],
    all_statuses: Sequence[BookingStatus],
    tours: Sequence[TourRow],
    customer_count: int,
    now: Optional[datetime] = None,
) -> DashboardStats:
    """
    Derive the dashboard statistics.

    Args:
        completed: Completed bookings; totals, monthly series and trends use these only
        all_statuses: Status of every booking
        tours: Every tour
        customer_count: Number of customer profiles
        now: Reference time for the monthly window and trends

    Returns:
        DashboardStats: Snapshot relative to ``now``
    """
    now = now or utcnow()

    monthly_bookings = [0] * MONTH_WINDOW
    monthly_revenue = [Decimal("0")] * MONTH_WINDOW
    for booking in completed:
        offset = month_offset(booking.created_at, now)
        if 0 <= offset < MONTH_WINDOW:
            monthly_bookings[MONTH_WINDOW - 1 - offset] += 1
            monthly_revenue[MONTH_WINDOW - 1 - offset] += booking.total_price

    # The last two buckets are exactly the current and previous calendar month
    current_bookings, previous_bookings = monthly_bookings[-1], monthly_bookings[-2]
    current_revenue, previous_revenue = monthly_revenue[-1], monthly_revenue[-2]

    status_counts = Counter(all_statuses)
    type_counts = Counter(tour.type for tour in tours)

    return DashboardStats(
        total_bookings=len(completed),
        total_revenue=sum((booking.total_price for booking in completed), Decimal("0")),
        available_tours=sum(1 for tour in tours if tour.available),
        active_customers=customer_count,
        bookings_trend=calculate_trend(current_bookings, previous_bookings),
        revenue_trend=calculate_trend(current_revenue, previous_revenue),
        monthly_bookings=monthly_bookings,
        monthly_revenue=monthly_revenue,
        month_labels=month_labels(now),
        status_distribution={status: status_counts.get(status, 0) for status in BookingStatus},
        category_distribution={tour_type: type_counts.get(tour_type, 0) for tour_type in TourType},
        top_locations=rank_locations(tours),
        generated_at=now,
    )


class AnalyticsService:
    """Runs the bulk reads behind the dashboard and the exported report."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def get_dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        """
        Read bookings, tours and customer profiles, then aggregate.

        Any failed read aborts the whole computation with its GatewayError.
        """
        completed = await self.gateway.list(Table.BOOKINGS, [eq("status", BookingStatus.COMPLETED)])
        all_bookings = await self.gateway.list(Table.BOOKINGS)
        tours = await self.gateway.list(Table.TOURS)
        customers = await self.gateway.list(Table.PROFILES, [ilike("role", settings.customer_role)])

        stats = compute_dashboard_stats(
            completed=completed,
            all_statuses=[booking.status for booking in all_bookings],
            tours=tours,
            customer_count=len(customers),
            now=now,
        )

        logger.debug(
            "Dashboard statistics computed",
            extra={
                "total_bookings": stats.total_bookings,
                "available_tours": stats.available_tours,
                "active_customers": stats.active_customers
            }
        )
        return stats
