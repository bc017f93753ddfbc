"""Shared access-control helpers for distribution routers."""

import uuid

from fastapi import HTTPException, status
from libs.auth.models import AuthUser, Role
from services.distribution_service.models import Company, Order
from services.distribution_service.services.settlement_service import get_company
from sqlalchemy.ext.asyncio import AsyncSession


def ensure_company_access(user: AuthUser, company: Company) -> None:
    """Super admins see everything, admins their zones, company staff their company."""
    if user.is_super_admin:
        return
    if user.role == Role.ADMIN:
        if set(user.zones) & set(company.zones or []):
            return
    elif user.role in (Role.COMPANY_MANAGER, Role.VENDOR):
        if user.company_id and user.company_id == str(company.id):
            return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You do not have access to this company",
    )


async def authorize_company(
    db: AsyncSession, user: AuthUser, company_id: uuid.UUID
) -> Company:
    company = await get_company(db, company_id)
    ensure_company_access(user, company)
    return company


def order_authorizer(db: AsyncSession, user: AuthUser):
    """Build a callback that checks ``user`` may act on an order's company."""

    async def _authorize(order: Order) -> None:
        await authorize_company(db, user, order.company_id)

    return _authorize
