"""Tests for the order ledger, checkout and cart service.

Run with: pytest tests/test_orders.py -v
"""

import re
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
import requests
from django.core.cache import cache
from django.utils import timezone

from events.domain import Money, PackageType
from orders import models as orm
from orders.domain import CustomerInfo, FailureReason, OrderStatus
from orders.domain.errors import (
    CartFullError,
    CartItemNotFoundError,
    ConflictingOrderError,
    DuplicateCartItemError,
    EmptySelectionError,
    GatewayUnavailableError,
    InvalidCartFieldError,
    InvalidIdError,
    StaleCartItemError,
)
from orders.gateway import FakeGateway, PaymobGateway
from orders.services.cart_service import CartItemInput, CartService, cart_cache_key
from orders.services.checkout_service import CheckoutService
from orders.services.order_ledger import OrderLedger
from orders.stores.django_store import DjangoCartStore, DjangoOrderStore

USER = "owner-1"
CUSTOMER = CustomerInfo(first_name="Noura", last_name="Alharbi", email="noura@example.com")


@pytest.fixture
def carts() -> DjangoCartStore:
    return DjangoCartStore()


@pytest.fixture
def ledger(carts) -> OrderLedger:
    return OrderLedger(DjangoOrderStore(), carts)


@pytest.fixture
def cart_service(carts) -> CartService:
    return CartService(carts, DjangoOrderStore())


@pytest.fixture
def stored_item(carts, make_cart_item):
    def _stored(**kwargs):
        return carts.add_item(make_cart_item(**kwargs))

    return _stored


class PaymobReply:
    def __init__(self, body=None, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.body is None:
            raise ValueError("Expecting value")
        return self.body


@pytest.fixture
def paymob(settings, monkeypatch):
    """Route Paymob calls to scripted replies, one per request, and record what was sent."""
    settings.PAYMOB = {
        "API_KEY": "key-1",
        "INTEGRATION_ID": "4242",
        "IFRAME_ID": "777",
        "BASE_URL": "https://paymob.test/api/",
        "TIMEOUT_SECONDS": 7,
    }
    calls = []
    replies = [
        PaymobReply({"token": "auth-token"}),
        PaymobReply({"id": 9001}),
        PaymobReply({"token": "pay-key"}),
    ]

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr("orders.gateway.requests.post", fake_post)
    return calls, replies


@pytest.mark.django_db
class TestCreateOrder:
    """OrderLedger.create_order"""

    def test_total_is_sum_of_item_prices(self, ledger, stored_item):
        a = stored_item(price="1500.00")
        b = stored_item(price="2250.50")

        order = ledger.create_order(USER, [str(a.id), str(b.id)])

        assert order.status is OrderStatus.CREATED
        assert order.total_amount.amount == Decimal("3750.50")
        assert order.cart_item_ids == {a.id, b.id}
        assert re.fullmatch(r"ORD-[0-9a-f]{32}", order.merchant_order_id)

    def test_items_are_snapshotted(self, ledger, stored_item, carts):
        item = stored_item(invite_count=200)
        order = ledger.create_order(USER, [str(item.id)])
        carts.delete_items([item.id])
        assert ledger.get(order.id).items[0].details.invite_count == 200

    def test_overlapping_order_is_rejected(self, ledger, stored_item):
        a = stored_item()
        b = stored_item()
        ledger.create_order(USER, [str(a.id)])

        with pytest.raises(ConflictingOrderError) as exc_info:
            ledger.create_order(USER, [str(a.id), str(b.id)])
        assert exc_info.value.cart_item_ids == [str(a.id)]

    def test_supersede_fails_the_older_order(self, ledger, stored_item):
        item = stored_item()
        first = ledger.create_order(USER, [str(item.id)])

        second = ledger.create_order(USER, [str(item.id)], supersede=True)

        old = ledger.get(first.id)
        assert old.status is OrderStatus.FAILED
        assert old.failure_reason is FailureReason.SUPERSEDED
        assert ledger.list_pending(USER) == [second]

    def test_empty_selection(self, ledger):
        with pytest.raises(EmptySelectionError):
            ledger.create_order(USER, [])

    def test_items_of_another_user_are_not_found(self, ledger, stored_item):
        item = stored_item(user_id="someone-else")
        with pytest.raises(CartItemNotFoundError):
            ledger.create_order(USER, [str(item.id)])

    def test_malformed_item_id(self, ledger):
        with pytest.raises(InvalidIdError):
            ledger.create_order(USER, ["not-a-uuid"])


@pytest.mark.django_db
class TestTransitions:
    """Orders leave `created` exactly once."""

    def test_paid_order_cannot_fail(self, ledger, stored_item):
        order = ledger.create_order(USER, [str(stored_item().id)])

        assert ledger.mark_paid(order.id, "tx-1", ["e-1"])
        assert not ledger.mark_failed(order.id, FailureReason.GATEWAY_DECLINED)
        assert not ledger.mark_paid(order.id, "tx-2", ["e-2"])

        stored = ledger.get(order.id)
        assert stored.status is OrderStatus.PAID
        assert stored.transaction_id == "tx-1"
        assert stored.events_created == ("e-1",)
        assert stored.failure_reason is None

    def test_release_abandoned_frees_items(self, ledger, stored_item):
        item = stored_item()
        stale = ledger.create_order(USER, [str(item.id)])
        orm.PendingOrder.objects.filter(pk=stale.id).update(
            created_at=timezone.now() - timedelta(hours=2)
        )
        fresh_item = stored_item()
        fresh = ledger.create_order(USER, [str(fresh_item.id)])

        released = ledger.release_abandoned(timezone.now() - timedelta(minutes=60))

        assert released == [stale.id]
        assert ledger.get(stale.id).failure_reason is FailureReason.ABANDONED
        assert ledger.get(fresh.id).status is OrderStatus.CREATED
        ledger.create_order(USER, [str(item.id)])


@pytest.mark.django_db
class TestCheckout:
    """CheckoutService opens a gateway session per order."""

    def test_checkout_attaches_gateway_order(self, ledger, stored_item):
        item = stored_item(price="999.99")
        result = CheckoutService(ledger, FakeGateway()).checkout(USER, [str(item.id)], CUSTOMER)

        assert result.order.gateway_order_id.startswith("fake-")
        assert result.checkout_url.endswith(result.order.gateway_order_id)
        assert FakeGateway.sessions == [(result.order.total_amount, result.order.merchant_order_id)]
        assert ledger.find_by_gateway_order_id(result.order.gateway_order_id) == result.order

    def test_gateway_outage_fails_order_and_frees_items(self, ledger, stored_item):
        item = stored_item()
        FakeGateway.fail_next = True

        with pytest.raises(GatewayUnavailableError):
            CheckoutService(ledger, FakeGateway()).checkout(USER, [str(item.id)], CUSTOMER)

        failed = ledger.list_for_user(USER)[0]
        assert failed.failure_reason is FailureReason.GATEWAY_UNAVAILABLE
        assert ledger.list_pending(USER) == []
        CheckoutService(ledger, FakeGateway()).checkout(USER, [str(item.id)], CUSTOMER)

    def test_unexpected_gateway_reply_frees_items(self, ledger, stored_item, paymob):
        _, replies = paymob
        replies[0] = PaymobReply({"detail": "bad api key"})
        item = stored_item()

        with pytest.raises(GatewayUnavailableError):
            CheckoutService(ledger, PaymobGateway()).checkout(USER, [str(item.id)], CUSTOMER)

        assert ledger.list_pending(USER) == []
        assert ledger.list_for_user(USER)[0].failure_reason is FailureReason.GATEWAY_UNAVAILABLE


class TestPaymobGateway:
    """Auth token, order registration and payment key, in that order."""

    def test_session_from_three_calls(self, paymob):
        calls, _ = paymob

        session = PaymobGateway().create_session(Money.of("1500.50"), "INV-1", CUSTOMER)

        assert [url for url, _, _ in calls] == [
            "https://paymob.test/api/auth/tokens",
            "https://paymob.test/api/ecommerce/orders",
            "https://paymob.test/api/acceptance/payment_keys",
        ]
        assert all(timeout == 7 for _, _, timeout in calls)
        assert calls[0][1] == {"api_key": "key-1"}

        order_body = calls[1][1]
        assert order_body["auth_token"] == "auth-token"
        assert order_body["amount_cents"] == 150050
        assert order_body["merchant_order_id"] == "INV-1"
        assert order_body["currency"] == "SAR"

        key_body = calls[2][1]
        assert key_body["order_id"] == 9001
        assert key_body["integration_id"] == "4242"
        assert key_body["billing_data"]["first_name"] == "Noura"
        assert key_body["billing_data"]["phone_number"] == "NA"
        assert key_body["billing_data"]["city"] == "NA"

        assert session.checkout_url == "https://paymob.test/api/acceptance/iframes/777?payment_token=pay-key"
        assert session.gateway_order_id == "9001"

    @pytest.mark.parametrize(
        "step,reply",
        [
            (0, requests.ConnectionError("refused")),
            (0, requests.Timeout("slow")),
            (1, PaymobReply({"detail": "server error"}, status_code=502)),
            (1, PaymobReply(None)),
            (1, PaymobReply(["not", "an", "object"])),
            (2, PaymobReply({"detail": "integration disabled"})),
        ],
    )
    def test_failures_become_gateway_unavailable(self, paymob, step, reply):
        calls, replies = paymob
        replies[step] = reply

        with pytest.raises(GatewayUnavailableError):
            PaymobGateway().create_session(Money.of("100"), "INV-2", CUSTOMER)
        assert len(calls) == step + 1


@pytest.mark.django_db
class TestCartService:
    """Server side of the optimistic cart contract."""

    def _input(self, details, design_id="rose-gold", package_type="vip", price="1500.00"):
        return CartItemInput(
            design_id=design_id, package_type=package_type, details=details.to_dict(), total_price=price
        )

    def test_add_and_list(self, cart_service, details):
        item = cart_service.add_item(USER, self._input(details))
        assert item.package_type is PackageType.VIP
        assert [i.id for i in cart_service.list_items(USER)] == [item.id]

    def test_duplicate_design_and_package(self, cart_service, details):
        cart_service.add_item(USER, self._input(details))
        with pytest.raises(DuplicateCartItemError):
            cart_service.add_item(USER, self._input(details))

    def test_cart_limit(self, cart_service, details, settings):
        settings.CART_MAX_ITEMS = 2
        cart_service.add_item(USER, self._input(details, design_id="a"))
        cart_service.add_item(USER, self._input(details, design_id="b"))
        with pytest.raises(CartFullError):
            cart_service.add_item(USER, self._input(details, design_id="c"))

    def test_invalid_details_rejected(self, cart_service, details):
        data = details.to_dict()
        data["invite_count"] = 20
        with pytest.raises(InvalidCartFieldError):
            cart_service.add_item(
                USER, CartItemInput(design_id="x", package_type="vip", details=data, total_price="10")
            )

    def test_patch_returns_canonical_item(self, cart_service, details):
        item = cart_service.add_item(USER, self._input(details))
        updated = cart_service.patch_field(
            USER, str(item.id), "details.invite_count", 250, expected_updated_at=item.updated_at
        )
        assert updated.details.invite_count == 250
        assert updated.details.invite_budget == 250

    def test_rejected_patch_carries_current_item(self, cart_service, details):
        item = cart_service.add_item(USER, self._input(details))
        with pytest.raises(InvalidCartFieldError) as exc_info:
            cart_service.patch_field(USER, str(item.id), "details.extra_hours", 9)
        assert exc_info.value.current.id == item.id
        assert exc_info.value.current.details.extra_hours == 0

    @pytest.mark.parametrize("field,value", [("package_type", "gold"), ("details.colour", "red"), ("id", "x")])
    def test_unknown_values_and_fields(self, cart_service, details, field, value):
        item = cart_service.add_item(USER, self._input(details))
        with pytest.raises(InvalidCartFieldError):
            cart_service.patch_field(USER, str(item.id), field, value)

    def test_stale_patch_rejected(self, cart_service, details):
        item = cart_service.add_item(USER, self._input(details))
        with pytest.raises(StaleCartItemError) as exc_info:
            cart_service.patch_field(
                USER,
                str(item.id),
                "total_price",
                "2000",
                expected_updated_at=item.updated_at - timedelta(seconds=5),
            )
        assert exc_info.value.current.total_price.amount == Decimal("1500.00")

    def test_locked_item_rejects_edit_and_removal(self, cart_service, ledger, details):
        item = cart_service.add_item(USER, self._input(details))
        ledger.create_order(USER, [str(item.id)])

        with pytest.raises(ConflictingOrderError) as exc_info:
            cart_service.patch_field(USER, str(item.id), "total_price", "1")
        assert exc_info.value.current.id == item.id
        with pytest.raises(ConflictingOrderError):
            cart_service.remove_item(USER, str(item.id))

    def test_clear_keeps_locked_items(self, cart_service, ledger, details):
        locked = cart_service.add_item(USER, self._input(details, design_id="a"))
        cart_service.add_item(USER, self._input(details, design_id="b"))
        ledger.create_order(USER, [str(locked.id)])

        remaining = cart_service.clear(USER)

        assert [i.id for i in remaining] == [locked.id]
        assert cart_service.locked_item_ids(USER) == {locked.id}

    def test_cart_cached_before_commit_is_dropped_on_commit(
        self, cart_service, details, django_capture_on_commit_callbacks
    ):
        item = cart_service.add_item(USER, self._input(details))
        stale = cart_service.list_items(USER)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            cart_service.remove_item(USER, str(item.id))
            cache.set(cart_cache_key(USER), stale)

        assert callbacks
        assert cache.get(cart_cache_key(USER)) is None
        assert cart_service.list_items(USER) == []

    def test_writes_invalidate_cached_cart(self, cart_service, details):
        item = cart_service.add_item(USER, self._input(details))
        cart_service.list_items(USER)
        assert cache.get(cart_cache_key(USER)) is not None

        cart_service.patch_field(USER, str(item.id), "total_price", "1750")
        assert cache.get(cart_cache_key(USER)) is None
        assert cart_service.list_items(USER)[0].total_price.amount == Decimal("1750.00")

        cart_service.remove_item(USER, str(item.id))
        assert cart_service.list_items(USER) == []

    def test_remove_unknown_item(self, cart_service):
        with pytest.raises(CartItemNotFoundError):
            cart_service.remove_item(USER, str(uuid4()))
