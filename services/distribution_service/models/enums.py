"""Enums for the Distribution Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class Zone(str, enum.Enum):
    KARKH = "KARKH"
    RUSAFA = "RUSAFA"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"  # cash on delivery
    ONLINE = "online"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class SettlementStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    SETTLED = "settled"
    DISPUTED = "disputed"


class PromotionType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    BUY_X_GET_Y = "buy_x_get_y"


# Orders still on their way; cash for these is "to collect".
IN_FLIGHT_ORDER_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
)

# Settlements that can no longer be recomputed.
LOCKED_SETTLEMENT_STATUSES = (
    SettlementStatus.VERIFIED,
    SettlementStatus.SETTLED,
    SettlementStatus.DISPUTED,
)
