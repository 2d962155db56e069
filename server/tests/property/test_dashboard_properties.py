"""Property-based tests for the booking state machine, analytics and report export."""

import csv
import io
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tourdesk.models.booking import BookingStatus
from tourdesk.schemas.booking import BookingRow
from tourdesk.services.analytics import (
    MONTH_WINDOW,
    calculate_trend,
    compute_dashboard_stats,
    month_offset,
)
from tourdesk.services.booking_lifecycle import (
    ALLOWED_TRANSITIONS,
    Actor,
    InvalidTransitionError,
    validate_transition,
)
from tourdesk.services.report_export import REPORT_WIDTH, build_report_rows, export_report_csv

pytestmark = pytest.mark.property

# Strategies for generating test data
statuses = st.sampled_from(list(BookingStatus))
actors = st.sampled_from(list(Actor))
moments = st.datetimes(min_value=datetime(2020, 1, 1), max_value=datetime(2030, 12, 31))
prices = st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2)
labels = st.text(alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\r\x00"), max_size=20)


def _completed(created_at: datetime, price: Decimal) -> BookingRow:
    return BookingRow(
        id=uuid4(),
        created_at=created_at,
        user_id=uuid4(),
        tour_id=uuid4(),
        booking_date=created_at.date(),
        number_of_people=1,
        total_price=price,
        status=BookingStatus.COMPLETED,
    )


@given(current=statuses, target=statuses, actor=actors)
def test_terminal_statuses_never_move(current, target, actor):
    """Completed and cancelled bookings accept no transition from anyone."""
    if not current.is_terminal:
        return

    with pytest.raises(InvalidTransitionError):
        validate_transition(uuid4(), current, target, actor)


@given(current=statuses, target=statuses, actor=actors)
def test_transition_allowed_only_for_its_actor(current, target, actor):
    allowed = ALLOWED_TRANSITIONS.get((current, target)) is actor

    if allowed:
        validate_transition(uuid4(), current, target, actor)
    else:
        with pytest.raises(InvalidTransitionError):
            validate_transition(uuid4(), current, target, actor)


@given(
    now=moments,
    rows=st.lists(st.tuples(st.integers(min_value=0, max_value=400), prices), max_size=30),
)
def test_monthly_buckets_partition_the_window(now, rows):
    """Every booking inside the window lands in exactly one bucket; totals count every booking."""
    bookings = [_completed(now - timedelta(days=days), price) for days, price in rows]

    stats = compute_dashboard_stats(bookings, [], [], 0, now=now)

    in_window = [b for b in bookings if 0 <= month_offset(b.created_at, now) < MONTH_WINDOW]
    assert sum(stats.monthly_bookings) == len(in_window)
    assert sum(stats.monthly_revenue) == sum((b.total_price for b in in_window), Decimal("0"))
    assert stats.total_bookings == len(bookings)
    assert stats.total_revenue == sum((b.total_price for b in bookings), Decimal("0"))
    assert len(stats.month_labels) == MONTH_WINDOW


@given(
    current=st.integers(min_value=0, max_value=10_000),
    previous=st.integers(min_value=0, max_value=10_000),
)
def test_trend_sign_follows_direction(current, previous):
    trend = calculate_trend(current, previous)

    assert trend.endswith("%")
    if previous == 0:
        assert trend == ("+100%" if current > 0 else "0%")
    elif current == previous:
        assert trend == "0%"
    elif trend != "0%":
        assert trend.startswith("+") == (current > previous)
        assert trend.startswith("-") == (current < previous)


@given(month_names=st.lists(labels, min_size=6, max_size=6), title=labels)
def test_report_csv_round_trips(month_names, title):
    """Whatever the labels contain, a standard CSV reader recovers every row."""
    stats = compute_dashboard_stats([], [], [], 0, now=datetime(2026, 3, 15, 9, 30))
    stats = stats.model_copy(update={"month_labels": month_names, "bookings_trend": title})

    content = export_report_csv(stats)
    parsed = list(csv.reader(io.StringIO(content, newline="")))

    assert parsed == build_report_rows(stats)
    assert all(len(row) == REPORT_WIDTH for row in parsed)
