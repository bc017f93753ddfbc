"""Distribution Service models package."""

from services.distribution_service.models.catalog import Category, Product
from services.distribution_service.models.company import Company
from services.distribution_service.models.enums import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    PromotionType,
    SettlementStatus,
    Zone,
)
from services.distribution_service.models.order import CashCollection, Order, OrderItem
from services.distribution_service.models.promotion import (
    Promotion,
    PromotionCategory,
    PromotionProduct,
)
from services.distribution_service.models.settlement import Settlement

__all__ = [
    "CashCollection",
    "Category",
    "Company",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "Promotion",
    "PromotionCategory",
    "PromotionProduct",
    "PromotionType",
    "Settlement",
    "SettlementStatus",
    "Zone",
]
