"""Tests for the Celery tasks.

Celery runs eagerly under the test settings.
Run with: pytest tests/test_tasks.py -v
"""

from dataclasses import replace
from datetime import date, timedelta

import pytest
from django.utils import timezone

from events.domain import EventStatus
from events.notifications import GUEST_ADDED, RecordingNotificationDispatcher
from events.stores.django_store import DjangoEventStore
from events.tasks import advance_event_status, dispatch_notification, enqueue_notification
from orders import models as orm
from orders.domain import FailureReason, OrderStatus
from orders.services.order_ledger import OrderLedger
from orders.stores.django_store import DjangoCartStore, DjangoOrderStore
from orders.tasks import release_abandoned_orders


@pytest.mark.django_db
class TestReleaseAbandonedOrders:
    def test_only_old_created_orders_are_released(self, make_cart_item):
        carts = DjangoCartStore()
        ledger = OrderLedger(DjangoOrderStore(), carts)
        old = ledger.create_order("owner-1", [str(carts.add_item(make_cart_item()).id)])
        recent = ledger.create_order("owner-1", [str(carts.add_item(make_cart_item()).id)])
        orm.PendingOrder.objects.filter(pk=old.id).update(
            created_at=timezone.now() - timedelta(hours=3)
        )

        assert release_abandoned_orders() == 1

        assert ledger.get(old.id).failure_reason is FailureReason.ABANDONED
        assert ledger.get(recent.id).status is OrderStatus.CREATED
        assert release_abandoned_orders() == 0


@pytest.mark.django_db
class TestAdvanceEventStatus:
    def test_past_events_move_to_done(self, make_event, details):
        store = DjangoEventStore()
        past = make_event(store, details=replace(details, event_date=date.today() - timedelta(days=2)))
        future = make_event(store)

        assert advance_event_status() == 1

        assert store.get_event(past.id).status is EventStatus.DONE
        assert store.get_event(future.id).status is EventStatus.UPCOMING


class TestNotifications:
    """Notifications reach the configured dispatcher after commit."""

    def test_dispatch_calls_dispatcher(self):
        dispatch_notification.delay(GUEST_ADDED, "event-1", "guest-1")
        assert RecordingNotificationDispatcher.sent == [(GUEST_ADDED, "event-1", "guest-1")]

    @pytest.mark.django_db
    def test_enqueue_waits_for_commit(self, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            enqueue_notification(GUEST_ADDED, "event-1")
        assert RecordingNotificationDispatcher.sent == []

        callbacks[0]()
        assert RecordingNotificationDispatcher.sent == [(GUEST_ADDED, "event-1", None)]
