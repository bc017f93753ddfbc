"""Distribution service routers package."""

from services.distribution_service.routers.cash import router as cash_router
from services.distribution_service.routers.orders import router as orders_router
from services.distribution_service.routers.promotions import (
    router as promotions_router,
)
from services.distribution_service.routers.settlements import (
    router as settlements_router,
)

__all__ = [
    "cash_router",
    "orders_router",
    "promotions_router",
    "settlements_router",
]
