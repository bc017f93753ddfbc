"""Order endpoints: status transitions and cash collection."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_roles, require_settlement_access
from libs.auth.models import AuthUser, Role
from libs.db.session import get_async_db
from services.distribution_service.routers._helpers import order_authorizer
from services.distribution_service.schemas import (
    CashCollectedRequest,
    CashCollectedResponse,
    CashCollectionResponse,
    OrderResponse,
    OrderStatusUpdateRequest,
)
from services.distribution_service.services import cash_service, order_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["orders"])

require_order_access = require_roles(
    Role.SUPER_ADMIN, Role.ADMIN, Role.COMPANY_MANAGER, Role.VENDOR
)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdateRequest,
    current_user: AuthUser = Depends(require_order_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Advance an order along its status flow or cancel it."""
    return await order_service.update_order_status(
        db,
        order_id=order_id,
        new_status=body.status,
        changed_by=current_user.user_id,
        authorize=order_authorizer(db, current_user),
    )


@router.post(
    "/{order_id}/cash-collected",
    response_model=CashCollectedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def mark_cash_collected(
    order_id: uuid.UUID,
    body: CashCollectedRequest,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    """Record cash handed over for a delivered cash order."""
    collection, order, collected_total = await cash_service.mark_cash_collected(
        db,
        order_id=order_id,
        amount=body.amount,
        collected_by=current_user.user_id,
        notes=body.notes,
        authorize=order_authorizer(db, current_user),
    )
    return CashCollectedResponse(
        collection=CashCollectionResponse.model_validate(collection),
        order_id=order.id,
        payment_status=order.payment_status,
        collected_total=float(collected_total),
        outstanding=float(max(order.total - collected_total, 0)),
    )


@router.get("/{order_id}/cash-collections", response_model=list[CashCollectionResponse])
async def list_cash_collections(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_settlement_access),
    db: AsyncSession = Depends(get_async_db),
):
    order = await cash_service.get_order(db, order_id)
    await order_authorizer(db, current_user)(order)
    return await cash_service.list_cash_collections(db, order.id)
