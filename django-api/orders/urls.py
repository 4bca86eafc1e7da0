from django.urls import path

from orders.handlers import (
    AdminOrderCompleteView,
    AdminOrderFailView,
    CartItemView,
    CartView,
    CheckoutView,
    OrderDetailView,
    PaymentWebhookView,
    PendingOrderListView,
)

urlpatterns = [
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/<str:item_id>/", CartItemView.as_view(), name="cart-item"),
    path("orders/checkout/", CheckoutView.as_view(), name="order-checkout"),
    path("orders/pending/", PendingOrderListView.as_view(), name="order-pending"),
    path("orders/<str:merchant_order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("payments/webhook", PaymentWebhookView.as_view(), name="payment-webhook"),
    path(
        "admin/orders/<str:order_id>/complete/",
        AdminOrderCompleteView.as_view(),
        name="admin-order-complete",
    ),
    path(
        "admin/orders/<str:order_id>/fail/",
        AdminOrderFailView.as_view(),
        name="admin-order-fail",
    ),
]
