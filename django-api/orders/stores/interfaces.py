"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any
from uuid import UUID

from orders.domain import CartItem, OrderStatus, PendingOrder


class CartStore(ABC):
    """Interface for cart persistence operations."""

    @abstractmethod
    def list_items(self, user_id: str) -> list[CartItem]:
        """Return the user's cart items, oldest first."""
        ...

    @abstractmethod
    def get_items(self, user_id: str, item_ids: Iterable[UUID], lock: bool = False) -> list[CartItem]:
        """Return the user's items among `item_ids`; `lock` holds their rows until commit."""
        ...

    @abstractmethod
    def count(self, user_id: str) -> int:
        ...

    @abstractmethod
    def add_item(self, item: CartItem) -> CartItem:
        """Persist a new item.

        Raises:
            DuplicateCartItemError: If the design/package pair is already in the cart.
        """
        ...

    @abstractmethod
    def save_item(self, item: CartItem) -> CartItem:
        """Persist the mutable fields of an existing item and return it refreshed."""
        ...

    @abstractmethod
    def delete_items(self, item_ids: Iterable[UUID]) -> int:
        """Delete items by id regardless of owner; returns the number removed."""
        ...


class OrderStore(ABC):
    """Interface for pending order persistence operations."""

    @abstractmethod
    def create_order(self, order: PendingOrder) -> PendingOrder:
        ...

    @abstractmethod
    def get_order(self, order_id: UUID) -> PendingOrder | None:
        ...

    @abstractmethod
    def find_by_merchant_order_id(self, merchant_order_id: str) -> PendingOrder | None:
        ...

    @abstractmethod
    def find_by_gateway_order_id(self, gateway_order_id: str) -> PendingOrder | None:
        ...

    @abstractmethod
    def locked(self, order_id: UUID) -> AbstractContextManager[PendingOrder | None]:
        """Hold the order row for the duration of the block and yield its state."""
        ...

    @abstractmethod
    def list_for_user(
        self, user_id: str, status: OrderStatus | None = None, limit: int | None = None
    ) -> list[PendingOrder]:
        """Return the user's orders, newest first."""
        ...

    @abstractmethod
    def list_created_before(self, cutoff: datetime) -> list[PendingOrder]:
        ...

    @abstractmethod
    def attach_gateway_order(self, order_id: UUID, gateway_order_id: str) -> None:
        ...

    @abstractmethod
    def transition(self, order_id: UUID, new: OrderStatus, **changes: Any) -> bool:
        """Move a `created` order to `new`.

        Returns False and changes nothing when the order is already terminal.
        """
        ...
