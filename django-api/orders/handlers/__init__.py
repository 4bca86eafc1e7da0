from orders.handlers.views import (
    AdminOrderCompleteView,
    AdminOrderFailView,
    CartItemView,
    CartView,
    CheckoutView,
    OrderDetailView,
    PaymentWebhookView,
    PendingOrderListView,
)

__all__ = [
    "AdminOrderCompleteView",
    "AdminOrderFailView",
    "CartItemView",
    "CartView",
    "CheckoutView",
    "OrderDetailView",
    "PaymentWebhookView",
    "PendingOrderListView",
]
