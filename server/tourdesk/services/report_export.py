"""CSV serialization of dashboard statistics."""

import csv
import io
from datetime import date, datetime
from decimal import Decimal

from ..core.config import settings
from ..schemas.analytics import DashboardStats

REPORT_WIDTH = 8
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def format_amount(amount: Decimal) -> str:
    """Group thousands and drop a zero fraction: ``3000.00`` -> ``3,000``."""
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,.2f}".rstrip("0")


def format_generated_on(moment: datetime) -> str:
    """Render like ``Oct 19, 2026, 3:04 PM``."""
    hour = moment.hour % 12 or 12
    return f"{moment:%b} {moment.day}, {moment.year}, {hour}:{moment:%M} {moment:%p}"


def _row(*cells: str) -> list[str]:
    return list(cells) + [""] * (REPORT_WIDTH - len(cells))


def build_report_rows(stats: DashboardStats, currency: str = settings.report_currency) -> list[list[str]]:
    """Report rows in their fixed order, each padded to the report width."""
    rows = [
        _row(settings.report_title),
        _row("Generated on:", format_generated_on(stats.generated_at)),
        _row(),
        _row("Summary Statistics"),
        _row("Metric", "Value", "Trend"),
        _row("Total Bookings", str(stats.total_bookings), stats.bookings_trend),
        _row("Total Revenue", f"{currency} {format_amount(stats.total_revenue)}", stats.revenue_trend),
        _row("Available Tours", str(stats.available_tours)),
        _row("Active Customers", str(stats.active_customers)),
        _row(),
        _row("Monthly Data"),
        _row("Month", "Bookings", "Revenue"),
    ]

    for label, bookings, revenue in zip(stats.month_labels, stats.monthly_bookings, stats.monthly_revenue):
        rows.append(_row(label, str(bookings), format_amount(revenue)))

    return rows


def export_report_csv(stats: DashboardStats, currency: str = settings.report_currency) -> str:
    """Every field double-quoted with embedded quotes doubled; rows end with ``\\n``."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(build_report_rows(stats, currency))
    return buffer.getvalue().removesuffix("\n")


def report_filename(on: date) -> str:
    return f"tour_report_{on.isoformat()}.csv"
