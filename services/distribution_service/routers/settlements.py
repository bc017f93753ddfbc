"""Settlement endpoints."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin, require_settlement_access
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.distribution_service.routers._helpers import authorize_company
from services.distribution_service.schemas import (
    DailySettlementRequest,
    PlatformEarningsResponse,
    SettlementCreateRequest,
    SettlementDisputeRequest,
    SettlementListResponse,
    SettlementResponse,
    SettlementSettleRequest,
    SettlementSummaryResponse,
    SettlementVerifyRequest,
)
from services.distribution_service.services import settlement_service
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/settlements", tags=["settlements"])


# ---------------------------------------------------------------------------
# Compute
# ---------------------------------------------------------------------------


@router.post(
    "", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED
)
async def create_settlement(
    body: SettlementCreateRequest,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Compute the settlement for a company and period."""
    await authorize_company(db, current_user, body.company_id)
    return await settlement_service.create_settlement(
        db,
        company_id=body.company_id,
        period_start=body.period_start,
        period_end=body.period_end,
        created_by=current_user.user_id,
    )


@router.post("/daily", response_model=SettlementResponse)
async def process_daily_settlement(
    body: DailySettlementRequest,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Settle one local day (today by default) for a company."""
    await authorize_company(db, current_user, body.company_id)
    return await settlement_service.process_daily_settlement(
        db,
        company_id=body.company_id,
        day=body.day,
        created_by=current_user.user_id,
    )


@router.get("/platform-earnings", response_model=PlatformEarningsResponse)
async def platform_earnings(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Revenue and commission across all companies."""
    return await settlement_service.calculate_platform_earnings(
        db, start_date, end_date
    )


# ---------------------------------------------------------------------------
# Per-company reads
# ---------------------------------------------------------------------------


@router.get("/{company_id}/summary", response_model=SettlementSummaryResponse)
async def settlement_summary(
    company_id: uuid.UUID,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    await authorize_company(db, current_user, company_id)
    return await settlement_service.get_settlement_summary(
        db, company_id, start_date, end_date
    )


@router.get("/{company_id}/history", response_model=SettlementListResponse)
async def settlement_history(
    company_id: uuid.UUID,
    limit: int = Query(30, ge=1, le=365),
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    await authorize_company(db, current_user, company_id)
    settlements = await settlement_service.get_settlement_history(
        db, company_id, limit
    )
    return SettlementListResponse(
        settlements=[SettlementResponse.model_validate(s) for s in settlements],
        total=len(settlements),
    )


@router.get("/detail/{settlement_id}", response_model=SettlementResponse)
async def get_settlement(
    settlement_id: uuid.UUID,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    settlement = await settlement_service.get_settlement(db, settlement_id)
    await authorize_company(db, current_user, settlement.company_id)
    return settlement


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.patch("/{settlement_id}/verify", response_model=SettlementResponse)
async def verify_settlement(
    settlement_id: uuid.UUID,
    body: SettlementVerifyRequest = SettlementVerifyRequest(),
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Confirm a PENDING settlement's figures."""
    settlement = await settlement_service.get_settlement(db, settlement_id)
    await authorize_company(db, admin, settlement.company_id)
    return await settlement_service.verify_settlement(
        db,
        settlement_id=settlement_id,
        verified_by=admin.user_id,
        notes=body.notes,
    )


@router.patch("/{settlement_id}/settle", response_model=SettlementResponse)
async def settle_settlement(
    settlement_id: uuid.UUID,
    body: SettlementSettleRequest = SettlementSettleRequest(),
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Mark a VERIFIED settlement as paid out."""
    settlement = await settlement_service.get_settlement(db, settlement_id)
    await authorize_company(db, admin, settlement.company_id)
    return await settlement_service.mark_settlement_settled(
        db,
        settlement_id=settlement_id,
        settled_by=admin.user_id,
        notes=body.notes,
    )


@router.patch("/{settlement_id}/dispute", response_model=SettlementResponse)
async def dispute_settlement(
    settlement_id: uuid.UUID,
    body: SettlementDisputeRequest,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Flag a PENDING settlement as disputed."""
    settlement = await settlement_service.get_settlement(db, settlement_id)
    await authorize_company(db, current_user, settlement.company_id)
    return await settlement_service.dispute_settlement(
        db,
        settlement_id=settlement_id,
        raised_by=current_user.user_id,
        reason=body.reason,
    )
