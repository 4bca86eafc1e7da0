"""Payment callback processing.

Gateways deliver callbacks at least once, in any order. The order row lock
plus the conditional `created -> paid` write make fulfillment happen once:
a redelivery finds the order terminal and does nothing, and a delivery that
loses the conditional write rolls back the events it created.

Storage errors during fulfillment roll everything back and surface as
TransientPersistenceError; the order stays `created` so the gateway's
redelivery can retry.
"""

import logging
from collections.abc import Callable
from uuid import UUID

from django.db import DatabaseError
from django.utils import timezone

from events.domain.errors import DuplicateEventError
from events.notifications import EVENT_PENDING_APPROVAL
from events.services.event_factory import EventFactory
from events.stores.interfaces import EventStore
from events.tasks import enqueue_notification
from orders.domain import (
    CallbackOutcome,
    CallbackResult,
    FailureReason,
    GatewayCallback,
    OrderStatus,
    PendingOrder,
)
from orders.domain.errors import (
    OrderNotFoundError,
    TransientPersistenceError,
    UnknownOrderError,
    UntrustedCallbackError,
)
from orders.gateway import PaymentGateway
from orders.services.cart_service import CartService
from orders.services.order_ledger import OrderLedger
from orders.stores.interfaces import OrderStore

logger = logging.getLogger("orders")


class _LostTransition(Exception):
    """The conditional paid write matched no row; undo this delivery's work."""


class WebhookProcessor:
    def __init__(
        self,
        ledger: OrderLedger,
        orders: OrderStore,
        cart: CartService,
        events: EventStore,
        gateway: PaymentGateway,
        factory: EventFactory | None = None,
        notify: Callable[..., None] = enqueue_notification,
        clock: Callable = timezone.now,
    ) -> None:
        self._ledger = ledger
        self._orders = orders
        self._cart = cart
        self._events = events
        self._gateway = gateway
        self._factory = factory or EventFactory()
        self._notify = notify
        self._clock = clock

    def handle_callback(self, raw_payload: bytes, signature: str | None) -> CallbackResult:
        """Verify and apply one gateway callback.

        Raises:
            UntrustedCallbackError: If the signature does not match. Nothing changes.
            MalformedCallbackError: If the body is not a valid callback.
            TransientPersistenceError: If storage failed while fulfilling.
        """
        if not self._gateway.verify_signature(raw_payload, signature):
            logger.warning("Rejected payment callback with an invalid signature")
            raise UntrustedCallbackError()

        callback = self._gateway.parse_callback(raw_payload)
        order = self._resolve(callback)
        if order is None:
            error = UnknownOrderError(callback.gateway_order_id)
            logger.warning("%s (gateway order %s)", error, callback.gateway_order_id)
            return CallbackResult.IGNORED

        if callback.outcome is CallbackOutcome.PENDING:
            logger.info("Payment pending for order %s", order.merchant_order_id)
            return CallbackResult.PENDING
        if callback.outcome is CallbackOutcome.FAILURE:
            return self._fail(order.id, FailureReason.GATEWAY_DECLINED)
        if callback.amount != order.total_amount.amount:
            logger.warning(
                "Amount mismatch for order %s: callback %s, order %s",
                order.merchant_order_id,
                callback.amount,
                order.total_amount,
            )
            return self._fail(order.id, FailureReason.AMOUNT_MISMATCH)
        return self._fulfill(order.id, callback.transaction_id)

    def force_complete(self, order_id: UUID, transaction_id: str | None = None) -> CallbackResult:
        """Admin resolution: run the success path without signature or amount checks."""
        if self._orders.get_order(order_id) is None:
            raise OrderNotFoundError(str(order_id))
        logger.info("Manual completion requested for order %s", order_id)
        return self._fulfill(order_id, transaction_id or "manual")

    def force_fail(self, order_id: UUID) -> CallbackResult:
        if self._orders.get_order(order_id) is None:
            raise OrderNotFoundError(str(order_id))
        return self._fail(order_id, FailureReason.ADMIN)

    def _resolve(self, callback: GatewayCallback) -> PendingOrder | None:
        order = self._ledger.find_by_gateway_order_id(callback.gateway_order_id)
        if order is None and callback.merchant_order_id:
            order = self._ledger.find_by_merchant_order_id(callback.merchant_order_id)
        return order

    def _fail(self, order_id: UUID, reason: FailureReason) -> CallbackResult:
        with self._orders.locked(order_id) as order:
            if order.is_terminal or not self._ledger.mark_failed(order_id, reason):
                return CallbackResult.DUPLICATE
        return CallbackResult.FAILED

    def _fulfill(self, order_id: UUID, transaction_id: str) -> CallbackResult:
        try:
            with self._orders.locked(order_id) as order:
                if order.is_terminal:
                    if order.status is OrderStatus.FAILED:
                        logger.warning(
                            "Success callback for failed order %s needs manual reconciliation",
                            order.merchant_order_id,
                        )
                    return CallbackResult.DUPLICATE

                now = self._clock()
                created = [
                    self._events.create_event(self._factory.materialize(item, order, now=now))
                    for item in order.items
                ]
                event_ids = [str(event.id) for event in created]
                if not self._ledger.mark_paid(order.id, transaction_id, event_ids):
                    raise _LostTransition()
                self._cart.remove_items(list(order.cart_item_ids))
                for event in created:
                    self._notify(EVENT_PENDING_APPROVAL, event.id)
        except _LostTransition:
            logger.info("Order %s was resolved concurrently; events rolled back", order_id)
            return CallbackResult.DUPLICATE
        except DuplicateEventError as exc:
            logger.error(
                "Cart item %s of order %s already has an event; order left open",
                exc.cart_item_id,
                order_id,
            )
            return CallbackResult.DUPLICATE
        except DatabaseError as exc:
            logger.exception("Storage failure while fulfilling order %s", order_id)
            raise TransientPersistenceError(str(order_id)) from exc

        logger.info(
            "Order %s paid, %s events created: %s",
            order.merchant_order_id,
            len(event_ids),
            ", ".join(event_ids),
        )
        return CallbackResult.PAID
