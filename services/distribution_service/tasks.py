"""Background settlement tasks for the distribution service."""

from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException
from libs.common.config import get_settings
from libs.common.datetime_utils import local_today
from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.distribution_service.services.settlement_service import (
    list_active_company_ids,
    process_daily_settlement,
)
from sqlalchemy.exc import SQLAlchemyError

logger = get_logger(__name__)


async def run_daily_settlements(
    day: Optional[date] = None, session_factory=AsyncSessionLocal
) -> dict[str, int]:
    """Settle ``day`` (yesterday, local time, by default) for every active company.

    Each company is settled on its own; a failure is logged and the run moves
    on to the next company.
    """
    day = day or local_today(get_settings().TIMEZONE) - timedelta(days=1)
    settled = skipped = failed = 0

    async with session_factory() as db:
        company_ids = await list_active_company_ids(db)

    for company_id in company_ids:
        async with session_factory() as db:
            try:
                await process_daily_settlement(
                    db, company_id=company_id, day=day, created_by="system"
                )
                settled += 1
            except HTTPException as exc:
                # 409 means the day is already locked for this company
                await db.rollback()
                logger.warning(
                    "Daily settlement skipped for company %s on %s: %s",
                    company_id,
                    day.isoformat(),
                    exc.detail,
                )
                skipped += 1
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error(
                    "Daily settlement failed for company %s on %s: %s",
                    company_id,
                    day.isoformat(),
                    exc,
                )
                failed += 1

    logger.info(
        "Daily settlement run for %s: settled=%d skipped=%d failed=%d",
        day.isoformat(),
        settled,
        skipped,
        failed,
    )
    return {"settled": settled, "skipped": skipped, "failed": failed}
