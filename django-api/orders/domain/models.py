"""Domain models for carts and orders.

Cart items reuse the event detail types, since a paid item becomes an
event with exactly those details.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Self
from uuid import UUID

from events.domain import EventDetails, Money, PackageType
from orders.domain.value_objects import CallbackOutcome, FailureReason, OrderStatus


@dataclass(frozen=True)
class CartItem:
    id: UUID
    user_id: str
    design_id: str
    package_type: PackageType
    details: EventDetails
    total_price: Money
    added_at: datetime | None = None
    updated_at: datetime | None = None

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-safe copy stored on the order at checkout time."""
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "design_id": self.design_id,
            "package_type": self.package_type.value,
            "details": self.details.to_dict(),
            "total_price": str(self.total_price),
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=UUID(data["id"]),
            user_id=data["user_id"],
            design_id=data["design_id"],
            package_type=PackageType(data["package_type"]),
            details=EventDetails.from_dict(data["details"]),
            total_price=Money.of(data["total_price"]),
        )


@dataclass(frozen=True)
class PendingOrder:
    """One checkout attempt. Moves from `created` to a terminal state exactly once."""

    id: UUID
    user_id: str
    merchant_order_id: str
    items: tuple[CartItem, ...]
    total_amount: Money
    status: OrderStatus = OrderStatus.CREATED
    gateway_order_id: str | None = None
    failure_reason: FailureReason | None = None
    transaction_id: str = ""
    events_created: tuple[str, ...] = field(default=())
    created_at: datetime | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def cart_item_ids(self) -> frozenset[UUID]:
        return frozenset(item.id for item in self.items)


@dataclass(frozen=True)
class GatewayCallback:
    gateway_order_id: str
    outcome: CallbackOutcome
    amount: Decimal
    transaction_id: str
    merchant_order_id: str | None = None


@dataclass(frozen=True)
class CheckoutSession:
    checkout_url: str
    gateway_order_id: str


@dataclass(frozen=True)
class CustomerInfo:
    first_name: str
    last_name: str
    email: str
    phone: str = ""
