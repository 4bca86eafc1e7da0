"""Order ledger: one PendingOrder per checkout attempt.

`merchant_order_id` is the idempotency key. Every status change is a
conditional write guarded by `status='created'`, so an order leaves
`created` exactly once and re-applying a terminal transition is a no-op.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from django.db import transaction
from django.utils import timezone

from events.domain import Money
from orders.domain import FailureReason, OrderStatus, PendingOrder
from orders.domain.errors import (
    CartItemNotFoundError,
    ConflictingOrderError,
    EmptySelectionError,
    InvalidCartFieldError,
    InvalidIdError,
    OrderNotFoundError,
)
from orders.stores.interfaces import CartStore, OrderStore

logger = logging.getLogger("orders")


def new_merchant_order_id() -> str:
    return f"ORD-{uuid4().hex}"


def _parse_ids(values: Iterable[str]) -> list[UUID]:
    try:
        return list(dict.fromkeys(UUID(str(v)) for v in values))
    except ValueError as exc:
        raise InvalidIdError("cart item") from exc


class OrderLedger:
    def __init__(self, orders: OrderStore, carts: CartStore, clock: Callable = timezone.now) -> None:
        self._orders = orders
        self._carts = carts
        self._clock = clock

    def create_order(
        self,
        user_id: str,
        selected_cart_item_ids: Iterable[str],
        total_amount=None,
        *,
        supersede: bool = False,
    ) -> PendingOrder:
        """Create a `created` order over the selected cart items.

        `total_amount` defaults to the sum of the items' cart prices.

        The items are locked for the duration so two checkouts of the same
        items cannot both pass the overlap check.

        Raises:
            EmptySelectionError: If no items are selected.
            CartItemNotFoundError: If a selected item is not in the user's cart.
            ConflictingOrderError: If an unresolved order already holds any of
                the items and `supersede` is False.
        """
        item_ids = _parse_ids(selected_cart_item_ids)
        if not item_ids:
            raise EmptySelectionError()

        with transaction.atomic():
            items = self._carts.get_items(user_id, item_ids, lock=True)
            found = {item.id for item in items}
            missing = [str(i) for i in item_ids if i not in found]
            if missing:
                raise CartItemNotFoundError(missing[0])
            amount = self._total(items, total_amount)

            selected = set(item_ids)
            conflicting = [
                order
                for order in self._orders.list_for_user(user_id, status=OrderStatus.CREATED)
                if order.cart_item_ids & selected
            ]
            if conflicting and not supersede:
                overlap = set().union(*(o.cart_item_ids for o in conflicting)) & selected
                raise ConflictingOrderError(sorted(str(i) for i in overlap))
            for order in conflicting:
                if self.mark_failed(order.id, FailureReason.SUPERSEDED):
                    logger.info("Order %s superseded by a new checkout", order.merchant_order_id)

            by_id = {item.id: item for item in items}
            order = self._orders.create_order(
                PendingOrder(
                    id=uuid4(),
                    user_id=user_id,
                    merchant_order_id=new_merchant_order_id(),
                    items=tuple(by_id[i] for i in item_ids),
                    total_amount=amount,
                )
            )

        logger.info(
            "Order %s created for user %s with %s items, total %s",
            order.merchant_order_id,
            user_id,
            len(order.items),
            order.total_amount,
        )
        return order

    def attach_gateway_order(self, order_id: UUID, gateway_order_id: str) -> None:
        self._orders.attach_gateway_order(order_id, gateway_order_id)

    def get(self, order_id: UUID) -> PendingOrder:
        order = self._orders.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    def find_by_merchant_order_id(self, merchant_order_id: str) -> PendingOrder | None:
        return self._orders.find_by_merchant_order_id(merchant_order_id)

    def find_by_gateway_order_id(self, gateway_order_id: str) -> PendingOrder | None:
        return self._orders.find_by_gateway_order_id(gateway_order_id)

    def list_pending(self, user_id: str) -> list[PendingOrder]:
        return self._orders.list_for_user(user_id, status=OrderStatus.CREATED)

    def list_for_user(self, user_id: str, limit: int = 20) -> list[PendingOrder]:
        return self._orders.list_for_user(user_id, limit=limit)

    def mark_paid(self, order_id: UUID, transaction_id: str, event_ids: Iterable[str]) -> bool:
        """Move the order to `paid`. False when it was already terminal."""
        return self._orders.transition(
            order_id,
            OrderStatus.PAID,
            transaction_id=transaction_id or "",
            events_created=[str(e) for e in event_ids],
            completed_at=self._clock(),
        )

    def mark_failed(self, order_id: UUID, reason: FailureReason) -> bool:
        """Move the order to `failed`. False when it was already terminal."""
        changed = self._orders.transition(
            order_id, OrderStatus.FAILED, failure_reason=reason, failed_at=self._clock()
        )
        if changed:
            logger.info("Order %s failed: %s", order_id, reason.value)
        return changed

    def release_abandoned(self, older_than: datetime) -> list[UUID]:
        """Fail `created` orders opened before `older_than`, freeing their cart items."""
        released = []
        for order in self._orders.list_created_before(older_than):
            if self.mark_failed(order.id, FailureReason.ABANDONED):
                released.append(order.id)
        if released:
            logger.info("Released %s abandoned orders", len(released))
        return released

    def _total(self, items, total_amount) -> Money:
        if total_amount is None:
            return Money.of(sum((item.total_price.amount for item in items), Decimal("0")))
        try:
            return Money.of(total_amount)
        except (ValueError, ArithmeticError) as exc:
            raise InvalidCartFieldError("Order total must be a non-negative amount") from exc
