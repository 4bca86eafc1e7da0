"""Checkout: cart selection -> PendingOrder -> hosted gateway session."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from orders.domain import CustomerInfo, FailureReason, PendingOrder
from orders.domain.errors import GatewayUnavailableError
from orders.gateway import PaymentGateway
from orders.services.order_ledger import OrderLedger

logger = logging.getLogger("orders")


@dataclass(frozen=True)
class CheckoutResult:
    order: PendingOrder
    checkout_url: str


class CheckoutService:
    def __init__(self, ledger: OrderLedger, gateway: PaymentGateway) -> None:
        self._ledger = ledger
        self._gateway = gateway

    def checkout(
        self,
        user_id: str,
        cart_item_ids: Iterable[str],
        customer: CustomerInfo,
        *,
        supersede: bool = False,
    ) -> CheckoutResult:
        """Create the order and its gateway session.

        The order total is the sum of the selected items' prices as stored in
        the cart. If the gateway is unreachable the order is failed right away
        so the items are free for another attempt.
        """
        order = self._ledger.create_order(user_id, cart_item_ids, None, supersede=supersede)
        try:
            session = self._gateway.create_session(
                order.total_amount, order.merchant_order_id, customer
            )
        except GatewayUnavailableError:
            self._ledger.mark_failed(order.id, FailureReason.GATEWAY_UNAVAILABLE)
            logger.warning("Gateway unavailable for order %s", order.merchant_order_id)
            raise

        self._ledger.attach_gateway_order(order.id, session.gateway_order_id)
        logger.info(
            "Checkout session %s opened for order %s",
            session.gateway_order_id,
            order.merchant_order_id,
        )
        return CheckoutResult(order=self._ledger.get(order.id), checkout_url=session.checkout_url)
