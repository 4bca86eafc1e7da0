from orders.domain.models import (
    CartItem,
    CheckoutSession,
    CustomerInfo,
    GatewayCallback,
    PendingOrder,
)
from orders.domain.value_objects import (
    CallbackOutcome,
    CallbackResult,
    FailureReason,
    OrderStatus,
)

__all__ = [
    "CartItem",
    "PendingOrder",
    "GatewayCallback",
    "CheckoutSession",
    "CustomerInfo",
    "OrderStatus",
    "FailureReason",
    "CallbackOutcome",
    "CallbackResult",
]
