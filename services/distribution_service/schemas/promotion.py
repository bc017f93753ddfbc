"""Promotion request/response schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.distribution_service.models.enums import PromotionType, Zone


class PromotionBase(BaseModel):
    name_en: str = Field(..., min_length=1, max_length=255)
    name_ar: str = Field(..., min_length=1, max_length=255)
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    promotion_type: PromotionType
    value: Decimal = Field(default=Decimal("0"), ge=0)
    buy_quantity: Optional[int] = Field(default=None, gt=0)
    get_quantity: Optional[int] = Field(default=None, gt=0)
    min_purchase: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    start_date: datetime
    end_date: datetime
    zones: list[Zone] = Field(..., min_length=1)
    usage_limit: Optional[int] = Field(default=None, gt=0)


class PromotionCreate(PromotionBase):
    product_ids: list[uuid.UUID] = Field(default_factory=list)
    category_ids: list[uuid.UUID] = Field(default_factory=list)
    is_active: bool = True


class PromotionUpdate(BaseModel):
    name_en: Optional[str] = Field(default=None, min_length=1, max_length=255)
    name_ar: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    promotion_type: Optional[PromotionType] = None
    value: Optional[Decimal] = Field(default=None, ge=0)
    buy_quantity: Optional[int] = Field(default=None, gt=0)
    get_quantity: Optional[int] = Field(default=None, gt=0)
    min_purchase: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    zones: Optional[list[Zone]] = Field(default=None, min_length=1)
    usage_limit: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    product_ids: Optional[list[uuid.UUID]] = None
    category_ids: Optional[list[uuid.UUID]] = None


class PromotionResponse(BaseModel):
    id: uuid.UUID
    name_en: str
    name_ar: str
    description_en: Optional[str] = None
    description_ar: Optional[str] = None
    promotion_type: PromotionType
    value: float
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None
    min_purchase: Optional[float] = None
    max_discount: Optional[float] = None
    start_date: datetime
    end_date: datetime
    zones: list[str]
    is_active: bool
    usage_limit: Optional[int] = None
    usage_count: int
    product_ids: list[uuid.UUID] = []
    category_ids: list[uuid.UUID] = []
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PromotionListResponse(BaseModel):
    promotions: list[PromotionResponse]
    total: int


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class CartItemRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0, description="Unit price in IQD")


class ApplyToCartRequest(BaseModel):
    items: list[CartItemRequest] = Field(default_factory=list)
    zone: Optional[Zone] = None


class LineDiscountResponse(BaseModel):
    product_id: uuid.UUID
    subtotal: float
    discount: float
    promotion_id: Optional[uuid.UUID] = None


class AppliedPromotionResponse(BaseModel):
    promotion_id: uuid.UUID
    name_en: str
    name_ar: str
    promotion_type: PromotionType
    discount: float
    applied_to: list[uuid.UUID]


class ApplyToCartResponse(BaseModel):
    zone: Zone
    subtotal: float
    total_discount: float
    total: float
    applied_promotions: list[AppliedPromotionResponse]
    lines: list[LineDiscountResponse]


class CartPreviewResponse(ApplyToCartResponse):
    """Cart discount plus every promotion relevant to the cart's products."""

    available_promotions: list[PromotionResponse]
