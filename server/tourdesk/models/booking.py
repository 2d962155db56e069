"""Booking and booking backup model definitions."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CANCEL_REQUESTED = "cancel-requested"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})


class _BookingColumns:
    """Columns shared by live bookings and their archived snapshots."""

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    number_of_people: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        index=True
    )
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Booking(_BookingColumns, Base):
    """A reservation of a party against a tour on a date."""

    __tablename__ = "bookings"

    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id"),
        nullable=False,
        index=True
    )

    __table_args__ = (
        CheckConstraint("number_of_people > 0", name="ck_booking_people_positive"),
        CheckConstraint("total_price >= 0", name="ck_booking_total_price_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'cancel-requested')",
            name="ck_booking_status_valid"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, tour_id={self.tour_id}, "
            f"people={self.number_of_people}, status={self.status})>"
        )


class BookingBackup(_BookingColumns, Base):
    """Snapshot of a booking removed by the tour deletion cascade."""

    __tablename__ = "bookings_backup"

    # No foreign key: the tour is gone once the snapshot matters
    tour_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    archived_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<BookingBackup(id={self.id}, tour_id={self.tour_id}, archived_at={self.archived_at})>"
