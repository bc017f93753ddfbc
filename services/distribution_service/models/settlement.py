"""Settlement model: a company's reconciled earnings for one period."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.distribution_service.models.enums import SettlementStatus, enum_values
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Settlement(Base):
    """Aggregated figures for delivered orders in ``[period_start, period_end)``.

    Rows are never deleted. Once past PENDING the figures are frozen.
    """

    __tablename__ = "settlements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id"), index=True, nullable=False
    )
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    total_commission: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    total_payout: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    cash_collected: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    cash_to_remit: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    online_revenue: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    # Rate in force when the figures were computed
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)

    status: Mapped[SettlementStatus] = mapped_column(
        SAEnum(
            SettlementStatus,
            name="settlement_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=SettlementStatus.PENDING,
        index=True,
        nullable=False,
    )

    # Audit trail
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    verified_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    settled_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    settled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    disputed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    disputed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    dispute_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "company_id", "period_start", "period_end", name="uq_settlement_period"
        ),
        CheckConstraint("total_payout >= 0", name="settlement_payout_non_negative"),
        CheckConstraint("period_end >= period_start", name="settlement_period_ordered"),
    )

    def __repr__(self) -> str:
        return (
            f"<Settlement {self.id} company={self.company_id} "
            f"{self.status.value} payout={self.total_payout}>"
        )
