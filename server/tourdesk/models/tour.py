"""Tour model definition."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class TourType(str, Enum):
    """Tour category."""
    REGULAR = "regular"
    COMBO = "combo"


MAX_SUB_IMAGES = 5


class Tour(Base):
    """A sellable tour package."""

    __tablename__ = "tours"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    duration: Mapped[str] = mapped_column(String(64), nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False)
    sub_images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=TourType.REGULAR.value, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    # Ordered [{"text": str, "available": bool}]
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_tour_price_positive"),
        CheckConstraint("max_capacity >= 0", name="ck_tour_max_capacity_non_negative"),
        CheckConstraint("length(title) > 0", name="ck_tour_title_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<Tour(id={self.id}, title='{self.title}', type='{self.type}')>"
