"""FastAPI application for the Distribution Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.redis import close_redis, ping_redis
from services.distribution_service.routers import (
    cash_router,
    orders_router,
    promotions_router,
    settlements_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the Distribution Service FastAPI app."""
    app = FastAPI(
        title="Lilium Distribution Service",
        version="0.1.0",
        description="Settlements, cash reconciliation and promotions for Lilium.",
        lifespan=lifespan,
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint. Redis is optional and reported, not required."""
        redis_ok = await ping_redis()
        return {
            "status": "ok",
            "service": "distribution",
            "redis": "ok" if redis_ok else "unavailable",
        }

    # Static /settlements paths first so they are not read as ids
    app.include_router(cash_router)
    app.include_router(settlements_router)

    app.include_router(orders_router)
    app.include_router(promotions_router)

    return app


app = create_app()
