"""Cart service.

The server copy of a cart item is authoritative. Clients apply field edits
optimistically; every rejection carries the canonical item as `current`
so the client can roll back to it.

Items referenced by an unresolved (`created`) order are locked: they cannot
be edited or removed until that order is paid, failed or abandoned.
"""

import logging
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from events.domain import EventDetails, Money, PackageType
from orders.domain import CartItem, OrderStatus
from orders.domain.errors import (
    CartFullError,
    CartItemNotFoundError,
    ConflictingOrderError,
    DuplicateCartItemError,
    InvalidCartFieldError,
    InvalidIdError,
    StaleCartItemError,
)
from orders.stores.interfaces import CartStore, OrderStore

logger = logging.getLogger("orders")

DETAIL_FIELDS = frozenset(f.name for f in fields(EventDetails))
INT_DETAIL_FIELDS = frozenset({"invite_count", "additional_cards", "gate_supervisors", "extra_hours"})


def cart_cache_key(user_id: str) -> str:
    return f"cart:{user_id}"


def parse_item_id(value: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise InvalidIdError("cart item") from exc


@dataclass(frozen=True)
class CartItemInput:
    design_id: str
    package_type: str
    details: dict[str, Any]
    total_price: Any


def _package_type(value: Any) -> PackageType:
    try:
        return PackageType(value)
    except ValueError as exc:
        raise InvalidCartFieldError(f"Unknown package type: {value}") from exc


def _price(value: Any) -> Money:
    try:
        return Money.of(value)
    except (ValueError, ArithmeticError) as exc:
        raise InvalidCartFieldError("Total price must be a non-negative amount") from exc


def _details(data: dict[str, Any]) -> EventDetails:
    unknown = set(data) - DETAIL_FIELDS
    if unknown:
        raise InvalidCartFieldError(f"Unknown detail fields: {', '.join(sorted(unknown))}")
    values = dict(data)
    try:
        for name in INT_DETAIL_FIELDS & set(values):
            values[name] = int(values[name])
        return EventDetails.from_dict(values)
    except (TypeError, ValueError) as exc:
        raise InvalidCartFieldError(str(exc)) from exc


class CartService:
    def __init__(self, carts: CartStore, orders: OrderStore) -> None:
        self._carts = carts
        self._orders = orders

    def list_items(self, user_id: str) -> list[CartItem]:
        key = cart_cache_key(user_id)
        items = cache.get(key)
        if items is None:
            items = self._carts.list_items(user_id)
            cache.set(key, items, settings.CART_CACHE_TTL_SECONDS)
        return items

    def count(self, user_id: str) -> int:
        return self._carts.count(user_id)

    def locked_item_ids(self, user_id: str) -> frozenset[UUID]:
        """Ids of the user's cart items held by an unresolved order."""
        pending = self._orders.list_for_user(user_id, status=OrderStatus.CREATED)
        return frozenset().union(*(order.cart_item_ids for order in pending))

    def add_item(self, user_id: str, data: CartItemInput) -> CartItem:
        """Add a package configuration to the cart.

        Raises:
            CartFullError: If the cart already holds CART_MAX_ITEMS items.
            InvalidCartFieldError: If any field is out of range.
            DuplicateCartItemError: If the design/package pair is already in the cart.
        """
        if self._carts.count(user_id) >= settings.CART_MAX_ITEMS:
            raise CartFullError(settings.CART_MAX_ITEMS)
        item = CartItem(
            id=uuid4(),
            user_id=user_id,
            design_id=data.design_id,
            package_type=_package_type(data.package_type),
            details=_details(data.details),
            total_price=_price(data.total_price),
        )
        stored = self._carts.add_item(item)
        logger.info("Cart item %s added for user %s", stored.id, user_id)
        return stored

    def patch_field(
        self,
        user_id: str,
        item_id: str,
        field: str,
        value: Any,
        expected_updated_at: datetime | None = None,
    ) -> CartItem:
        """Apply one field edit and return the canonical item.

        `field` is `package_type`, `total_price` or `details.<name>`. When
        `expected_updated_at` is given and no longer matches, the edit is
        rejected with StaleCartItemError.
        """
        iid = parse_item_id(item_id)
        with transaction.atomic():
            items = self._carts.get_items(user_id, [iid], lock=True)
            if not items:
                raise CartItemNotFoundError(str(iid))
            item = items[0]
            if iid in self.locked_item_ids(user_id):
                raise ConflictingOrderError([str(iid)], current=item)
            if expected_updated_at is not None and expected_updated_at != item.updated_at:
                raise StaleCartItemError(current=item)

            try:
                updated = self._apply(item, field, value)
            except InvalidCartFieldError as exc:
                raise InvalidCartFieldError(exc.message, current=item) from exc
            try:
                stored = self._carts.save_item(updated)
            except DuplicateCartItemError as exc:
                raise DuplicateCartItemError(current=item) from exc

        logger.info("Cart item %s field %s updated", iid, field)
        return stored

    def remove_item(self, user_id: str, item_id: str) -> None:
        iid = parse_item_id(item_id)
        with transaction.atomic():
            items = self._carts.get_items(user_id, [iid], lock=True)
            if not items:
                raise CartItemNotFoundError(str(iid))
            if iid in self.locked_item_ids(user_id):
                raise ConflictingOrderError([str(iid)], current=items[0])
            self._carts.delete_items([iid])
        logger.info("Cart item %s removed for user %s", iid, user_id)

    def clear(self, user_id: str) -> list[CartItem]:
        """Remove every item not held by an unresolved order; return what is left."""
        locked = self.locked_item_ids(user_id)
        removable = [item.id for item in self._carts.list_items(user_id) if item.id not in locked]
        if removable:
            self._carts.delete_items(removable)
        return self._carts.list_items(user_id)

    def remove_items(self, item_ids: list[UUID]) -> int:
        """Drop items that have been turned into events."""
        return self._carts.delete_items(item_ids)

    def _apply(self, item: CartItem, field: str, value: Any) -> CartItem:
        if field == "package_type":
            return replace(item, package_type=_package_type(value))
        if field == "total_price":
            return replace(item, total_price=_price(value))
        if field.startswith("details."):
            name = field.removeprefix("details.")
            if name not in DETAIL_FIELDS:
                raise InvalidCartFieldError(f"Unknown field: {field}")
            data = item.details.to_dict()
            data[name] = value
            return replace(item, details=_details(data))
        raise InvalidCartFieldError(f"Unknown field: {field}")
