"""HTTP handlers for carts, checkout, orders and payment callbacks.

Cart responses always carry the canonical server copy of the items; cart
rejections add it as `current` so the client can roll back.
"""

import logging
from uuid import UUID

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response

from common.views import DomainAPIView
from events.stores.django_store import DjangoEventStore
from orders.domain import CartItem, CustomerInfo
from orders.domain.errors import InvalidIdError, OrderNotFoundError
from orders.gateway import get_gateway
from orders.handlers.serializers import (
    CartItemCreateSerializer,
    CartItemPatchSerializer,
    CartItemSerializer,
    CheckoutSerializer,
    ForceCompleteSerializer,
    PendingOrderSerializer,
)
from orders.services.cart_service import CartItemInput, CartService
from orders.services.checkout_service import CheckoutService
from orders.services.order_ledger import OrderLedger
from orders.services.webhook_processor import WebhookProcessor
from orders.stores.django_store import DjangoCartStore, DjangoOrderStore

logger = logging.getLogger("orders")

SIGNATURE_HEADER = "X-Gateway-Signature"


def get_cart_service() -> CartService:
    return CartService(DjangoCartStore(), DjangoOrderStore())


def get_order_ledger() -> OrderLedger:
    return OrderLedger(DjangoOrderStore(), DjangoCartStore())


def get_checkout_service() -> CheckoutService:
    return CheckoutService(get_order_ledger(), get_gateway())


def get_webhook_processor() -> WebhookProcessor:
    orders = DjangoOrderStore()
    return WebhookProcessor(
        ledger=OrderLedger(orders, DjangoCartStore()),
        orders=orders,
        cart=get_cart_service(),
        events=DjangoEventStore(),
        gateway=get_gateway(),
    )


def _validated(serializer_class, request: Request) -> dict:
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _parse_order_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise InvalidIdError("order") from exc


class CartAPIView(DomainAPIView):
    """Base for cart handlers: errors carry the canonical item."""

    def serialize_current(self, current):
        if not isinstance(current, CartItem):
            return None
        locked = get_cart_service().locked_item_ids(str(self.request.user.pk))
        return CartItemSerializer(current, context={"locked_ids": locked}).data

    def cart_response(self, service: CartService, user_id: str, items=None) -> Response:
        items = service.list_items(user_id) if items is None else items
        locked = service.locked_item_ids(user_id)
        data = CartItemSerializer(items, many=True, context={"locked_ids": locked}).data
        return Response({"results": data, "count": len(items)})


class CartView(CartAPIView):
    """Handler for /api/cart/"""

    def get(self, request: Request) -> Response:
        return self.cart_response(get_cart_service(), str(request.user.pk))

    def post(self, request: Request) -> Response:
        data = _validated(CartItemCreateSerializer, request)
        item = get_cart_service().add_item(str(request.user.pk), CartItemInput(**data))
        return Response(CartItemSerializer(item).data, status=status.HTTP_201_CREATED)

    def delete(self, request: Request) -> Response:
        service = get_cart_service()
        user_id = str(request.user.pk)
        remaining = service.clear(user_id)
        return self.cart_response(service, user_id, remaining)


class CartItemView(CartAPIView):
    """Handler for /api/cart/{item_id}/"""

    def patch(self, request: Request, item_id: str) -> Response:
        data = _validated(CartItemPatchSerializer, request)
        service = get_cart_service()
        user_id = str(request.user.pk)
        item = service.patch_field(
            user_id,
            item_id,
            data["field"],
            data["value"],
            expected_updated_at=data.get("expected_updated_at"),
        )
        locked = service.locked_item_ids(user_id)
        return Response(CartItemSerializer(item, context={"locked_ids": locked}).data)

    def delete(self, request: Request, item_id: str) -> Response:
        service = get_cart_service()
        user_id = str(request.user.pk)
        service.remove_item(user_id, item_id)
        return self.cart_response(service, user_id)


class CheckoutView(DomainAPIView):
    """Handler for POST /api/orders/checkout/"""

    def post(self, request: Request) -> Response:
        data = _validated(CheckoutSerializer, request)
        user = request.user
        given = data.get("customer", {})
        customer = CustomerInfo(
            first_name=given.get("first_name") or user.first_name,
            last_name=given.get("last_name") or user.last_name,
            email=given.get("email") or user.email,
            phone=given.get("phone", ""),
        )
        result = get_checkout_service().checkout(
            str(user.pk), data["cart_item_ids"], customer, supersede=data["supersede"]
        )
        body = {
            "order": PendingOrderSerializer(result.order).data,
            "checkout_url": result.checkout_url,
        }
        return Response(body, status=status.HTTP_201_CREATED)


class PendingOrderListView(DomainAPIView):
    def get(self, request: Request) -> Response:
        orders = get_order_ledger().list_pending(str(request.user.pk))
        return Response({"results": PendingOrderSerializer(orders, many=True).data})


class OrderDetailView(DomainAPIView):
    """Handler for GET /api/orders/{merchant_order_id}/"""

    def get(self, request: Request, merchant_order_id: str) -> Response:
        order = get_order_ledger().find_by_merchant_order_id(merchant_order_id)
        if order is None or (order.user_id != str(request.user.pk) and not request.user.is_staff):
            raise OrderNotFoundError(merchant_order_id)
        return Response(PendingOrderSerializer(order).data)


class PaymentWebhookView(DomainAPIView):
    """Gateway callbacks. Authenticated by the payload signature only."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        raw_payload = request.body
        signature = request.headers.get(SIGNATURE_HEADER) or request.query_params.get("hmac")
        result = get_webhook_processor().handle_callback(raw_payload, signature)
        return Response({"result": result.value})


# Admin


class AdminOrderCompleteView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def post(self, request: Request, order_id: str) -> Response:
        data = _validated(ForceCompleteSerializer, request)
        oid = _parse_order_id(order_id)
        result = get_webhook_processor().force_complete(oid, data.get("transaction_id"))
        logger.info("Admin %s completed order %s: %s", request.user.pk, oid, result.value)
        order = get_order_ledger().get(oid)
        return Response({"result": result.value, "order": PendingOrderSerializer(order).data})


class AdminOrderFailView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def post(self, request: Request, order_id: str) -> Response:
        oid = _parse_order_id(order_id)
        result = get_webhook_processor().force_fail(oid)
        logger.info("Admin %s failed order %s: %s", request.user.pk, oid, result.value)
        order = get_order_ledger().get(oid)
        return Response({"result": result.value, "order": PendingOrderSerializer(order).data})
