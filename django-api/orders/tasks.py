import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger("orders")


@shared_task
def release_abandoned_orders() -> int:
    """Periodic sweep: fail orders left `created` past the abandon window."""
    from orders.services.order_ledger import OrderLedger
    from orders.stores.django_store import DjangoCartStore, DjangoOrderStore

    cutoff = timezone.now() - timedelta(minutes=settings.ORDER_ABANDON_AFTER_MINUTES)
    released = OrderLedger(DjangoOrderStore(), DjangoCartStore()).release_abandoned(cutoff)
    logger.info("Abandoned-order sweep released %s orders", len(released))
    return len(released)
