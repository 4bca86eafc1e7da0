"""Pytest configuration and shared fixtures."""

from dataclasses import replace
from datetime import date, timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from events.domain import EventDetails, Money, PackageType
from events.notifications import RecordingNotificationDispatcher
from events.services.event_factory import EventFactory
from events.stores.memory_store import InMemoryEventStore
from orders.domain import CartItem
from orders.gateway import FakeGateway


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def reset_fakes():
    RecordingNotificationDispatcher.sent.clear()
    FakeGateway.sessions.clear()
    FakeGateway.fail_next = False
    yield
    RecordingNotificationDispatcher.sent.clear()
    FakeGateway.sessions.clear()
    FakeGateway.fail_next = False


@pytest.fixture
def owner(django_user_model):
    return django_user_model.objects.create_user(
        username="noura", password="pw", first_name="Noura", last_name="Alharbi", email="noura@example.com"
    )


@pytest.fixture
def helper_user(django_user_model):
    return django_user_model.objects.create_user(username="faisal", password="pw")


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(username="staff", password="pw", is_staff=True)


@pytest.fixture
def details() -> EventDetails:
    return EventDetails(
        event_date=date.today() + timedelta(days=30),
        start_time="18:00",
        end_time="23:00",
        event_location="Riyadh Front Hall B",
        host_name="Noura Alharbi",
        invitation_text="Join us to celebrate our wedding night",
        invite_count=100,
    )


@pytest.fixture
def make_cart_item(details):
    def _make(
        user_id: str = "owner-1",
        package_type: PackageType = PackageType.VIP,
        invite_count: int = 100,
        additional_cards: int = 0,
        price: str = "1500.00",
    ) -> CartItem:
        return CartItem(
            id=uuid4(),
            user_id=user_id,
            design_id=f"design-{uuid4().hex[:8]}",
            package_type=package_type,
            details=replace(details, invite_count=invite_count, additional_cards=additional_cards),
            total_price=Money.of(price),
        )

    return _make


@pytest.fixture
def make_event(make_cart_item):
    """Persist a freshly paid event in the given store."""

    def _make(
        store,
        user_id: str = "owner-1",
        package_type: PackageType = PackageType.VIP,
        invite_count: int = 100,
        additional_cards: int = 0,
        **changes,
    ):
        item = make_cart_item(
            user_id=user_id,
            package_type=package_type,
            invite_count=invite_count,
            additional_cards=additional_cards,
        )
        event = EventFactory().materialize(item, SimpleNamespace(id=uuid4()), now=timezone.now())
        if changes:
            event = replace(event, **changes)
        return store.create_event(event)

    return _make


@pytest.fixture
def memory_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def notified() -> list:
    return []


@pytest.fixture
def notify(notified):
    def _notify(kind, event_id, guest_id=None):
        notified.append((kind, str(event_id), str(guest_id) if guest_id is not None else None))

    return _notify
