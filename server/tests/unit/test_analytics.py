"""Unit tests for the analytics aggregator."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from tourdesk.core.exceptions import GatewayError
from tourdesk.gateway import Table
from tourdesk.models.booking import BookingStatus
from tourdesk.models.tour import TourType
from tourdesk.schemas.booking import BookingRow
from tourdesk.schemas.tour import TourRow
from tourdesk.services.analytics import (
    CHART_COLORS,
    AnalyticsService,
    calculate_trend,
    compute_dashboard_stats,
    month_labels,
)

from conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID

NOW = datetime(2026, 3, 15, 12, 0)


def _completed(created_at: datetime, price: str = "1000") -> BookingRow:
    return BookingRow(
        id=uuid4(),
        created_at=created_at,
        user_id=CUSTOMER_ID,
        tour_id=uuid4(),
        booking_date=created_at.date(),
        number_of_people=1,
        total_price=Decimal(price),
        status=BookingStatus.COMPLETED,
    )


def _tour(location: str, tour_type: TourType = TourType.REGULAR, available: bool = True) -> TourRow:
    return TourRow(
        id=uuid4(),
        created_at=NOW,
        title=f"{location} tour",
        price=Decimal("1000"),
        duration="1 day",
        image="https://images.example.com/t.jpg",
        type=tour_type,
        location=location,
        available=available,
    )


@pytest.mark.parametrize(
    "current,previous,expected",
    [
        (0, 0, "0%"),
        (5, 0, "+100%"),
        (120, 100, "+20%"),
        (80, 100, "-20%"),
        (100, 100, "0%"),
        (7, 2, "+250%"),
        (Decimal("1500.50"), Decimal("1000"), "+50%"),
        (1, 3, "-67%"),
        (5, 2, "+150%"),
        (3, 8, "-62%"),
    ],
)
def test_calculate_trend(current, previous, expected):
    assert calculate_trend(current, previous) == expected


def test_trend_halves_round_up():
    assert calculate_trend(Decimal("100.5"), 100) == "+1%"
    assert calculate_trend(Decimal("99.5"), 100) == "0%"


def test_month_labels_end_at_current_month():
    assert month_labels(NOW) == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
    assert month_labels(datetime(2026, 6, 1)) == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]


def test_monthly_buckets_by_calendar_month():
    rows = [
        _completed(datetime(2026, 3, 1)),             # offset 0
        _completed(datetime(2026, 3, 14), "500"),     # offset 0
        _completed(datetime(2026, 2, 28)),            # offset 1
        _completed(datetime(2025, 12, 31)),           # offset 3 across the year boundary
        _completed(datetime(2025, 10, 1)),            # offset 5
        _completed(datetime(2025, 9, 30)),            # offset 6, dropped
        _completed(datetime(2026, 4, 2)),             # future, dropped
    ]

    stats = compute_dashboard_stats(rows, [], [], 0, now=NOW)

    assert stats.monthly_bookings == [1, 0, 1, 0, 1, 2]
    assert stats.monthly_revenue == [
        Decimal("1000"), Decimal("0"), Decimal("1000"), Decimal("0"), Decimal("1000"), Decimal("1500")
    ]
    assert stats.total_bookings == 7
    assert stats.total_revenue == Decimal("6500")


def test_trends_compare_current_and_previous_month():
    rows = [_completed(datetime(2026, 3, 2)) for _ in range(6)] + [
        _completed(datetime(2026, 2, 2)) for _ in range(5)
    ]

    stats = compute_dashboard_stats(rows, [], [], 0, now=NOW)

    assert stats.bookings_trend == "+20%"
    assert stats.revenue_trend == "+20%"


def test_trend_wraps_to_december_in_january():
    january = datetime(2026, 1, 10)
    rows = [_completed(datetime(2025, 12, 5)), _completed(datetime(2025, 12, 6))]

    stats = compute_dashboard_stats(rows, [], [], 0, now=january)

    assert stats.bookings_trend == "-100%"
    assert stats.monthly_bookings[4] == 2


def test_distributions_and_counts():
    statuses = [
        BookingStatus.PENDING,
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.CANCEL_REQUESTED,
    ]
    tours = [
        _tour("Oslob"),
        _tour("Oslob", TourType.COMBO),
        _tour("Moalboal", available=False),
    ]

    stats = compute_dashboard_stats([], statuses, tours, 12, now=NOW)

    assert stats.status_distribution == {
        BookingStatus.PENDING: 2,
        BookingStatus.CONFIRMED: 1,
        BookingStatus.COMPLETED: 0,
        BookingStatus.CANCELLED: 0,
        BookingStatus.CANCEL_REQUESTED: 1,
    }
    assert stats.category_distribution == {TourType.REGULAR: 2, TourType.COMBO: 1}
    assert stats.available_tours == 2
    assert stats.active_customers == 12
    assert stats.bookings_trend == "0%"
    assert stats.generated_at == NOW


def test_top_locations_limited_ranked_and_coloured():
    locations = ["Cebu"] * 4 + ["Oslob"] * 3 + ["Bohol", "Moalboal", "Siargao", "Bantayan", "Camotes"]
    tours = [_tour(location) for location in locations]

    stats = compute_dashboard_stats([], [], tours, 0, now=NOW)

    assert [(rank.name, rank.count) for rank in stats.top_locations] == [
        ("Cebu", 4),
        ("Oslob", 3),
        ("Bohol", 1),
        ("Moalboal", 1),
        ("Siargao", 1),
    ]
    assert [rank.color for rank in stats.top_locations] == list(CHART_COLORS[:5])


@pytest.mark.asyncio
async def test_service_reads_store(gateway, tour, make_booking):
    await make_booking(tour, status=BookingStatus.COMPLETED)
    await make_booking(tour, status=BookingStatus.PENDING)
    await gateway.insert(Table.PROFILES, {"id": CUSTOMER_ID, "role": "user"})
    await gateway.insert(Table.PROFILES, {"id": OTHER_CUSTOMER_ID, "role": "User"})
    await gateway.insert(Table.PROFILES, {"id": uuid4(), "role": "admin"})

    stats = await AnalyticsService(gateway).get_dashboard_stats()

    assert stats.total_bookings == 1
    assert stats.total_revenue == Decimal("3000")
    assert stats.monthly_bookings[-1] == 1
    assert stats.active_customers == 2
    assert stats.available_tours == 1
    assert stats.status_distribution[BookingStatus.PENDING] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("fault", [("list", Table.BOOKINGS), ("list", Table.TOURS), ("list", Table.PROFILES)])
async def test_any_failed_read_aborts(make_faulty_gateway, fault):
    with pytest.raises(GatewayError):
        await AnalyticsService(make_faulty_gateway(fault)).get_dashboard_stats()
