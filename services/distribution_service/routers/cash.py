"""Cash reconciliation endpoints under /settlements."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_settlement_access
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.distribution_service.routers._helpers import (
    authorize_company,
    order_authorizer,
)
from services.distribution_service.schemas import (
    BulkCashCollectionRequest,
    BulkCashCollectionResponse,
    CashReconcileRequest,
    CashReconcileResponse,
    PendingCashResponse,
)
from services.distribution_service.services import cash_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/settlements", tags=["cash"])


@router.post("/cash/reconcile", response_model=CashReconcileResponse)
async def reconcile_cash(
    body: CashReconcileRequest,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Expected vs collected cash for each delivered cash order in range."""
    await authorize_company(db, current_user, body.company_id)
    return await cash_service.reconcile_cash(
        db,
        company_id=body.company_id,
        start=body.start_date,
        end=body.end_date,
    )


@router.post("/cash/collections/bulk", response_model=BulkCashCollectionResponse)
async def bulk_mark_cash_collected(
    body: BulkCashCollectionRequest,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Record several collections; failures are reported per order."""
    results = await cash_service.bulk_mark_cash_collected(
        db,
        items=body.collections,
        collected_by=current_user.user_id,
        authorize=order_authorizer(db, current_user),
    )
    succeeded = sum(1 for r in results if r["success"])
    return BulkCashCollectionResponse(
        results=results,
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )


@router.get("/{company_id}/pending-cash", response_model=PendingCashResponse)
async def pending_cash(
    company_id: uuid.UUID,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    await authorize_company(db, current_user, company_id)
    return await cash_service.get_pending_cash_collections(db, company_id)
