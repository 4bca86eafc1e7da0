"""Domain error codes for the cart and order pipeline."""

from enum import Enum
from typing import Any

from common.errors import DomainError


class ErrorCode(Enum):
    """Domain error codes."""

    CONFLICTING_ORDER = "CONFLICTING_ORDER"
    UNTRUSTED_CALLBACK = "UNTRUSTED_CALLBACK"
    MALFORMED_CALLBACK = "MALFORMED_CALLBACK"
    UNKNOWN_ORDER = "UNKNOWN_ORDER"
    TRANSIENT_PERSISTENCE = "TRANSIENT_PERSISTENCE"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    CART_ITEM_NOT_FOUND = "CART_ITEM_NOT_FOUND"
    EMPTY_SELECTION = "EMPTY_SELECTION"
    CART_FULL = "CART_FULL"
    DUPLICATE_CART_ITEM = "DUPLICATE_CART_ITEM"
    INVALID_CART_FIELD = "INVALID_CART_FIELD"
    STALE_CART_ITEM = "STALE_CART_ITEM"
    GATEWAY_UNAVAILABLE = "GATEWAY_UNAVAILABLE"
    INVALID_ID = "INVALID_ID"


class ConflictingOrderError(DomainError):
    """Raised when cart items already belong to an unresolved order.

    `current` carries the canonical cart item when the rejection came from an
    edit, so the client can roll back its optimistic change.
    """

    def __init__(self, cart_item_ids: list[str] | None = None, current: Any = None) -> None:
        super().__init__(
            code=ErrorCode.CONFLICTING_ORDER,
            message="These cart items are part of a checkout that has not finished yet",
        )
        self.cart_item_ids = cart_item_ids or []
        self.current = current


class UntrustedCallbackError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.UNTRUSTED_CALLBACK,
            message="Callback signature verification failed",
        )


class MalformedCallbackError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.MALFORMED_CALLBACK, message=message)


class UnknownOrderError(DomainError):
    """Raised when a callback references an order this system never created."""

    def __init__(self, reference: str) -> None:
        super().__init__(code=ErrorCode.UNKNOWN_ORDER, message="Order not found")
        self.reference = reference


class TransientPersistenceError(DomainError):
    """Storage failed mid-fulfillment; the order is still `created` and retryable."""

    def __init__(self, order_id: str) -> None:
        super().__init__(
            code=ErrorCode.TRANSIENT_PERSISTENCE,
            message="Temporary storage failure, please retry",
        )
        self.order_id = order_id


class OrderNotFoundError(DomainError):
    def __init__(self, reference: str) -> None:
        super().__init__(code=ErrorCode.ORDER_NOT_FOUND, message="Order not found")
        self.reference = reference


class CartItemNotFoundError(DomainError):
    def __init__(self, item_id: str) -> None:
        super().__init__(code=ErrorCode.CART_ITEM_NOT_FOUND, message="Cart item not found")
        self.item_id = item_id


class EmptySelectionError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_SELECTION,
            message="Select at least one cart item to check out",
        )


class CartFullError(DomainError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            code=ErrorCode.CART_FULL,
            message=f"The cart cannot hold more than {limit} items",
        )


class DuplicateCartItemError(DomainError):
    def __init__(self, current: Any = None) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_CART_ITEM,
            message="This design and package are already in the cart",
        )
        self.current = current


class InvalidCartFieldError(DomainError):
    def __init__(self, message: str, current: Any = None) -> None:
        super().__init__(code=ErrorCode.INVALID_CART_FIELD, message=message)
        self.current = current


class StaleCartItemError(DomainError):
    def __init__(self, current: Any) -> None:
        super().__init__(
            code=ErrorCode.STALE_CART_ITEM,
            message="The cart item changed since it was loaded",
        )
        self.current = current


class GatewayUnavailableError(DomainError):
    def __init__(self, message: str = "Payment gateway is unavailable") -> None:
        super().__init__(code=ErrorCode.GATEWAY_UNAVAILABLE, message=message)


class InvalidIdError(DomainError):
    def __init__(self, kind: str = "order") -> None:
        super().__init__(code=ErrorCode.INVALID_ID, message=f"Invalid {kind} ID format")
