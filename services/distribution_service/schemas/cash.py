"""Cash collection and reconciliation schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import to_utc
from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.distribution_service.models.enums import PaymentStatus


class CashCollectedRequest(BaseModel):
    amount: Decimal = Field(..., description="Cash handed over, in IQD")
    notes: Optional[str] = None


class CashCollectionResponse(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    amount: float
    collected_by: str
    collected_at: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CashCollectedResponse(BaseModel):
    collection: CashCollectionResponse
    order_id: uuid.UUID
    payment_status: PaymentStatus
    collected_total: float
    outstanding: float


class BulkCashCollectionItem(BaseModel):
    order_id: uuid.UUID
    amount: Decimal
    notes: Optional[str] = None


class BulkCashCollectionRequest(BaseModel):
    collections: list[BulkCashCollectionItem] = Field(..., min_length=1, max_length=500)


class BulkCashCollectionResult(BaseModel):
    order_id: uuid.UUID
    success: bool
    payment_status: Optional[PaymentStatus] = None
    error: Optional[str] = None


class BulkCashCollectionResponse(BaseModel):
    results: list[BulkCashCollectionResult]
    succeeded: int
    failed: int


class CashReconcileRequest(BaseModel):
    company_id: uuid.UUID
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def check_range(self):
        if to_utc(self.start_date) > to_utc(self.end_date):
            raise ValueError("start_date must not be after end_date")
        return self


class CashReconciliationItem(BaseModel):
    order_id: uuid.UUID
    order_number: Optional[str] = None
    success: bool = True
    expected_amount: float = 0.0
    collected_amount: float = 0.0
    discrepancy: float = 0.0
    verified: bool = False
    error: Optional[str] = None


class CashReconcileResponse(BaseModel):
    company_id: uuid.UUID
    start_date: datetime
    end_date: datetime
    total_orders: int
    total_expected: float
    total_collected: float
    total_discrepancy: float
    items: list[CashReconciliationItem]


class PendingCashOrder(BaseModel):
    order_id: uuid.UUID
    order_number: str
    shop_id: str
    total: float
    collected: float
    outstanding: float
    delivered_at: Optional[datetime] = None
    days_pending: int


class PendingCashResponse(BaseModel):
    company_id: uuid.UUID
    orders: list[PendingCashOrder]
    total_outstanding: float
