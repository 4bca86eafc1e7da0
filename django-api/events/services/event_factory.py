"""Turns a paid cart item into an Event.

Construction only. Persisting the result is the caller's job, inside the
transaction that marks the order paid.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4

from events.domain import (
    ApprovalStatus,
    Event,
    EventDetails,
    EventId,
    EventStatus,
    Money,
    PackageType,
    RefundableSlots,
)


class PaidCartItem(Protocol):
    id: UUID
    user_id: str
    design_id: str
    package_type: PackageType
    details: EventDetails
    total_price: Money


class PaidOrder(Protocol):
    id: UUID


class EventFactory:
    def materialize(self, cart_item: PaidCartItem, order: PaidOrder, *, now: datetime) -> Event:
        invite_budget = cart_item.details.invite_budget
        slots = RefundableSlots(total=cart_item.package_type.refundable_slots_for(invite_budget))
        return Event(
            id=EventId(uuid4()),
            user_id=cart_item.user_id,
            design_id=cart_item.design_id,
            package_type=cart_item.package_type,
            details=cart_item.details,
            total_price=cart_item.total_price,
            invite_budget=invite_budget,
            refundable_slots=slots,
            payment_completed_at=now,
            order_id=order.id,
            cart_item_id=cart_item.id,
            status=EventStatus.UPCOMING,
            approval_status=ApprovalStatus.PENDING,
        )
