"""Settlement request/response schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import to_utc
from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.distribution_service.models.enums import SettlementStatus


class SettlementCreateRequest(BaseModel):
    company_id: uuid.UUID
    period_start: datetime
    period_end: datetime

    @model_validator(mode="after")
    def check_period(self):
        if to_utc(self.period_start) > to_utc(self.period_end):
            raise ValueError("period_start must not be after period_end")
        return self


class DailySettlementRequest(BaseModel):
    company_id: uuid.UUID
    day: Optional[date] = Field(
        default=None, description="Local calendar day to settle. Defaults to today."
    )


class SettlementVerifyRequest(BaseModel):
    notes: Optional[str] = None


class SettlementSettleRequest(BaseModel):
    notes: Optional[str] = None


class SettlementDisputeRequest(BaseModel):
    reason: str = Field(..., min_length=3)


class SettlementResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    period_start: datetime
    period_end: datetime
    total_orders: int
    total_revenue: float
    total_commission: float
    total_payout: float
    cash_collected: float
    cash_to_remit: float
    online_revenue: float
    commission_rate: float
    status: SettlementStatus
    created_by: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    settled_by: Optional[str] = None
    settled_at: Optional[datetime] = None
    disputed_by: Optional[str] = None
    disputed_at: Optional[datetime] = None
    dispute_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SettlementListResponse(BaseModel):
    settlements: list[SettlementResponse]
    total: int


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class SummaryPeriod(BaseModel):
    start: datetime
    end: datetime


class SummaryOrders(BaseModel):
    total: int
    delivered: int
    cash: int
    online: int


class SummaryFinancials(BaseModel):
    total_revenue: float
    cash_collected: float
    online_payments: float
    total_commission: float
    net_payout: float
    pending_cash: float


class SummaryCashFlow(BaseModel):
    to_collect: float
    collected: float
    to_remit: float
    remitted: float


class SettlementSummaryResponse(BaseModel):
    company_id: uuid.UUID
    period: SummaryPeriod
    orders: SummaryOrders
    financials: SummaryFinancials
    cash_flow: SummaryCashFlow


# ---------------------------------------------------------------------------
# Platform earnings
# ---------------------------------------------------------------------------


class CompanyEarnings(BaseModel):
    company_id: uuid.UUID
    company_name: str
    total_orders: int
    revenue: float
    commission: float


class PlatformEarningsResponse(BaseModel):
    period: SummaryPeriod
    total_orders: int
    total_revenue: float
    total_commission: float
    companies: list[CompanyEarnings]
