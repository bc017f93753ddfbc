"""Distribution Service schemas package.

Re-exports all schemas so routers can import from
``services.distribution_service.schemas`` directly.
"""

from services.distribution_service.schemas.cash import (  # noqa: F401
    BulkCashCollectionItem,
    BulkCashCollectionRequest,
    BulkCashCollectionResponse,
    BulkCashCollectionResult,
    CashCollectedRequest,
    CashCollectedResponse,
    CashCollectionResponse,
    CashReconcileRequest,
    CashReconcileResponse,
    CashReconciliationItem,
    PendingCashOrder,
    PendingCashResponse,
)
from services.distribution_service.schemas.order import (  # noqa: F401
    OrderItemResponse,
    OrderResponse,
    OrderStatusUpdateRequest,
)
from services.distribution_service.schemas.promotion import (  # noqa: F401
    AppliedPromotionResponse,
    ApplyToCartRequest,
    ApplyToCartResponse,
    CartItemRequest,
    CartPreviewResponse,
    LineDiscountResponse,
    PromotionCreate,
    PromotionListResponse,
    PromotionResponse,
    PromotionUpdate,
)
from services.distribution_service.schemas.settlement import (  # noqa: F401
    CompanyEarnings,
    DailySettlementRequest,
    PlatformEarningsResponse,
    SettlementCreateRequest,
    SettlementDisputeRequest,
    SettlementListResponse,
    SettlementResponse,
    SettlementSettleRequest,
    SettlementSummaryResponse,
    SettlementVerifyRequest,
    SummaryCashFlow,
    SummaryFinancials,
    SummaryOrders,
    SummaryPeriod,
)

__all__ = [
    # Settlement
    "CompanyEarnings",
    "DailySettlementRequest",
    "PlatformEarningsResponse",
    "SettlementCreateRequest",
    "SettlementDisputeRequest",
    "SettlementListResponse",
    "SettlementResponse",
    "SettlementSettleRequest",
    "SettlementSummaryResponse",
    "SettlementVerifyRequest",
    "SummaryCashFlow",
    "SummaryFinancials",
    "SummaryOrders",
    "SummaryPeriod",
    # Cash
    "BulkCashCollectionItem",
    "BulkCashCollectionRequest",
    "BulkCashCollectionResponse",
    "BulkCashCollectionResult",
    "CashCollectedRequest",
    "CashCollectedResponse",
    "CashCollectionResponse",
    "CashReconcileRequest",
    "CashReconcileResponse",
    "CashReconciliationItem",
    "PendingCashOrder",
    "PendingCashResponse",
    # Order
    "OrderItemResponse",
    "OrderResponse",
    "OrderStatusUpdateRequest",
    # Promotion
    "AppliedPromotionResponse",
    "ApplyToCartRequest",
    "ApplyToCartResponse",
    "CartItemRequest",
    "CartPreviewResponse",
    "LineDiscountResponse",
    "PromotionCreate",
    "PromotionListResponse",
    "PromotionResponse",
    "PromotionUpdate",
]
