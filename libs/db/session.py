from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal

logger = get_logger(__name__)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own work; anything left uncommitted when the
    handler raises is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error("Rolling back request session after database error: %s", e)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
