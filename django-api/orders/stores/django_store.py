"""Django ORM implementation of the cart and order stores."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from django.db import IntegrityError, transaction

from events.domain import EventDetails, Money, PackageType
from orders import models as orm
from orders.domain import CartItem, FailureReason, OrderStatus, PendingOrder
from orders.domain.errors import DuplicateCartItemError
from orders.stores.interfaces import CartStore, OrderStore


def _to_cart_item(obj: orm.CartItem) -> CartItem:
    return CartItem(
        id=obj.id,
        user_id=obj.user_id,
        design_id=obj.design_id,
        package_type=PackageType(obj.package_type),
        details=EventDetails.from_dict(obj.details),
        total_price=Money(obj.total_price),
        added_at=obj.added_at,
        updated_at=obj.updated_at,
    )


def _to_order(obj: orm.PendingOrder) -> PendingOrder:
    return PendingOrder(
        id=obj.id,
        user_id=obj.user_id,
        merchant_order_id=obj.merchant_order_id,
        items=tuple(CartItem.from_snapshot(i.snapshot) for i in obj.items.all()),
        total_amount=Money(obj.total_amount),
        status=OrderStatus(obj.status),
        gateway_order_id=obj.gateway_order_id,
        failure_reason=FailureReason(obj.failure_reason) if obj.failure_reason else None,
        transaction_id=obj.transaction_id,
        events_created=tuple(obj.events_created),
        created_at=obj.created_at,
        completed_at=obj.completed_at,
        failed_at=obj.failed_at,
    )


def _db_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return list(value)
    return value


class DjangoCartStore(CartStore):
    """Cart persistence. Writes go through model instances so that the
    cache-invalidation signals fire."""

    def list_items(self, user_id: str) -> list[CartItem]:
        return [_to_cart_item(obj) for obj in orm.CartItem.objects.filter(user_id=user_id)]

    def get_items(self, user_id: str, item_ids: Iterable[UUID], lock: bool = False) -> list[CartItem]:
        qs = orm.CartItem.objects.filter(user_id=user_id, pk__in=list(item_ids))
        if lock:
            qs = qs.select_for_update()
        return [_to_cart_item(obj) for obj in qs]

    def count(self, user_id: str) -> int:
        return orm.CartItem.objects.filter(user_id=user_id).count()

    def add_item(self, item: CartItem) -> CartItem:
        try:
            with transaction.atomic():
                obj = orm.CartItem.objects.create(
                    id=item.id,
                    user_id=item.user_id,
                    design_id=item.design_id,
                    package_type=item.package_type.value,
                    details=item.details.to_dict(),
                    total_price=item.total_price.amount,
                )
        except IntegrityError as exc:
            raise DuplicateCartItemError() from exc
        return _to_cart_item(obj)

    def save_item(self, item: CartItem) -> CartItem:
        obj = orm.CartItem.objects.get(pk=item.id)
        obj.package_type = item.package_type.value
        obj.details = item.details.to_dict()
        obj.total_price = item.total_price.amount
        try:
            with transaction.atomic():
                obj.save()
        except IntegrityError as exc:
            raise DuplicateCartItemError() from exc
        return _to_cart_item(obj)

    def delete_items(self, item_ids: Iterable[UUID]) -> int:
        deleted, _ = orm.CartItem.objects.filter(pk__in=list(item_ids)).delete()
        return deleted


class DjangoOrderStore(OrderStore):
    """PostgreSQL-backed order store using Django ORM."""

    def _queryset(self):
        return orm.PendingOrder.objects.prefetch_related("items")

    def create_order(self, order: PendingOrder) -> PendingOrder:
        with transaction.atomic():
            obj = orm.PendingOrder.objects.create(
                id=order.id,
                user_id=order.user_id,
                merchant_order_id=order.merchant_order_id,
                gateway_order_id=order.gateway_order_id,
                total_amount=order.total_amount.amount,
                status=order.status.value,
            )
            orm.PendingOrderItem.objects.bulk_create(
                orm.PendingOrderItem(order=obj, cart_item_id=item.id, snapshot=item.to_snapshot())
                for item in order.items
            )
        return self.get_order(order.id)

    def get_order(self, order_id: UUID) -> PendingOrder | None:
        obj = self._queryset().filter(pk=order_id).first()
        return _to_order(obj) if obj else None

    def find_by_merchant_order_id(self, merchant_order_id: str) -> PendingOrder | None:
        obj = self._queryset().filter(merchant_order_id=merchant_order_id).first()
        return _to_order(obj) if obj else None

    def find_by_gateway_order_id(self, gateway_order_id: str) -> PendingOrder | None:
        obj = self._queryset().filter(gateway_order_id=gateway_order_id).first()
        return _to_order(obj) if obj else None

    @contextmanager
    def locked(self, order_id: UUID) -> Iterator[PendingOrder | None]:
        with transaction.atomic():
            obj = orm.PendingOrder.objects.select_for_update().filter(pk=order_id).first()
            yield _to_order(obj) if obj else None

    def list_for_user(
        self, user_id: str, status: OrderStatus | None = None, limit: int | None = None
    ) -> list[PendingOrder]:
        qs = self._queryset().filter(user_id=user_id)
        if status is not None:
            qs = qs.filter(status=status.value)
        if limit is not None:
            qs = qs[:limit]
        return [_to_order(obj) for obj in qs]

    def list_created_before(self, cutoff: datetime) -> list[PendingOrder]:
        qs = self._queryset().filter(status=OrderStatus.CREATED.value, created_at__lt=cutoff)
        return [_to_order(obj) for obj in qs.order_by("created_at")]

    def attach_gateway_order(self, order_id: UUID, gateway_order_id: str) -> None:
        orm.PendingOrder.objects.filter(pk=order_id).update(gateway_order_id=gateway_order_id)

    def transition(self, order_id: UUID, new: OrderStatus, **changes: Any) -> bool:
        values = {key: _db_value(value) for key, value in changes.items()}
        updated = orm.PendingOrder.objects.filter(
            pk=order_id, status=OrderStatus.CREATED.value
        ).update(status=new.value, **values)
        return updated == 1
