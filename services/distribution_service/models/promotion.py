"""Promotion models."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONType
from services.distribution_service.models.enums import PromotionType, enum_values
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Promotion(Base):
    """A discount campaign scoped to zones, a date window and optional targets.

    A promotion without linked products or categories applies to every line in
    its zones. ``value`` is a percentage for PERCENTAGE promotions and an IQD
    amount for FIXED ones; BUY_X_GET_Y uses ``buy_quantity``/``get_quantity``.
    """

    __tablename__ = "promotions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name_en: Mapped[str] = mapped_column(String(255), nullable=False)
    name_ar: Mapped[str] = mapped_column(String(255), nullable=False)
    description_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description_ar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    promotion_type: Mapped[PromotionType] = mapped_column(
        SAEnum(
            PromotionType,
            name="promotion_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    buy_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    get_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    min_purchase: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    max_discount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    zones: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    products: Mapped[list["PromotionProduct"]] = relationship(
        back_populates="promotion", cascade="all, delete-orphan", lazy="selectin"
    )
    categories: Mapped[list["PromotionCategory"]] = relationship(
        back_populates="promotion", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="promotion_window_ordered"),
        CheckConstraint("value >= 0", name="promotion_value_non_negative"),
    )

    @property
    def product_ids(self) -> list[uuid.UUID]:
        return [link.product_id for link in self.products]

    @property
    def category_ids(self) -> list[uuid.UUID]:
        return [link.category_id for link in self.categories]

    def __repr__(self) -> str:
        return f"<Promotion {self.id} {self.promotion_type.value}={self.value}>"


class PromotionProduct(Base):
    __tablename__ = "promotion_products"

    promotion_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True
    )

    promotion: Mapped["Promotion"] = relationship(back_populates="products")


class PromotionCategory(Base):
    __tablename__ = "promotion_categories"

    promotion_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )

    promotion: Mapped["Promotion"] = relationship(back_populates="categories")
