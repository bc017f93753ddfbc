"""Company model: the vendor organisation that owns products and receives settlements."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.currency import to_decimal
from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONType
from sqlalchemy import Boolean, CheckConstraint, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


def _default_commission_rate() -> Decimal:
    return to_decimal(get_settings().DEFAULT_COMMISSION_RATE)


class Company(Base):
    """A vendor. ``commission_rate`` is the platform's cut as a fraction (0.1 == 10%)."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name_en: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    name_ar: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    zones: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4), default=_default_commission_rate, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 1",
            name="commission_rate_fraction",
        ),
    )

    def __repr__(self) -> str:
        return f"<Company {self.id} {self.name_en}>"
