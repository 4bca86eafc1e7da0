"""Payment gateway adapters.

The active adapter is named by `PAYMENT_GATEWAY_CLASS`. Every adapter shares
the callback contract: an HMAC-SHA512 hex digest of the raw body, keyed with
`PAYMENT_WEBHOOK_SECRET`, and a JSON body of
`{gatewayOrderId, status, amount, transactionId, merchantOrderId?}`.
"""

import hashlib
import hmac
import json
import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from uuid import uuid4

import requests
from django.conf import settings
from django.utils.module_loading import import_string

from events.domain import Money
from orders.domain import CallbackOutcome, CheckoutSession, CustomerInfo, GatewayCallback
from orders.domain.errors import GatewayUnavailableError, MalformedCallbackError

logger = logging.getLogger("orders")


def sign_payload(raw_payload: bytes, secret: str | None = None) -> str:
    key = (secret if secret is not None else settings.PAYMENT_WEBHOOK_SECRET).encode()
    return hmac.new(key, raw_payload, hashlib.sha512).hexdigest()


class PaymentGateway(ABC):
    @abstractmethod
    def create_session(
        self, amount: Money, merchant_order_id: str, customer: CustomerInfo
    ) -> CheckoutSession:
        """Open a hosted checkout for the order.

        Raises:
            GatewayUnavailableError: If the gateway cannot be reached or refuses.
        """
        ...

    def verify_signature(self, raw_payload: bytes, signature: str | None) -> bool:
        if not signature or not settings.PAYMENT_WEBHOOK_SECRET:
            return False
        return hmac.compare_digest(sign_payload(raw_payload), signature.strip().lower())

    def parse_callback(self, raw_payload: bytes) -> GatewayCallback:
        try:
            data = json.loads(raw_payload)
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedCallbackError("Callback body is not valid JSON") from exc
        if not isinstance(data, dict):
            raise MalformedCallbackError("Callback body must be a JSON object")

        gateway_order_id = data.get("gatewayOrderId")
        if gateway_order_id in (None, ""):
            raise MalformedCallbackError("gatewayOrderId is required")
        try:
            outcome = CallbackOutcome(str(data.get("status", "")).lower())
        except ValueError as exc:
            raise MalformedCallbackError("status must be success, failure or pending") from exc
        try:
            amount = Decimal(str(data["amount"]))
        except (KeyError, InvalidOperation) as exc:
            raise MalformedCallbackError("amount must be a number") from exc
        if not amount.is_finite():
            raise MalformedCallbackError("amount must be a number")

        merchant_order_id = data.get("merchantOrderId")
        return GatewayCallback(
            gateway_order_id=str(gateway_order_id),
            outcome=outcome,
            amount=amount,
            transaction_id=str(data.get("transactionId") or ""),
            merchant_order_id=str(merchant_order_id) if merchant_order_id else None,
        )


class PaymobGateway(PaymentGateway):
    """Paymob accept API: auth token, order registration, payment key, iframe URL."""

    def __init__(self) -> None:
        config = settings.PAYMOB
        self.base_url = config["BASE_URL"].rstrip("/")
        self.api_key = config["API_KEY"]
        self.integration_id = config["INTEGRATION_ID"]
        self.iframe_id = config["IFRAME_ID"]
        self.timeout = config["TIMEOUT_SECONDS"]

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = requests.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            logger.error("Paymob request to %s failed: %s", path, exc)
            raise GatewayUnavailableError() from exc
        except ValueError as exc:
            logger.error("Paymob returned a non-JSON body for %s", path)
            raise GatewayUnavailableError() from exc

    @staticmethod
    def _field(reply, key: str, path: str):
        try:
            return reply[key]
        except (KeyError, TypeError) as exc:
            logger.error("Paymob reply from %s is missing %s", path, key)
            raise GatewayUnavailableError() from exc

    def create_session(
        self, amount: Money, merchant_order_id: str, customer: CustomerInfo
    ) -> CheckoutSession:
        amount_cents = int(amount.amount * 100)
        token = self._field(
            self._post("/auth/tokens", {"api_key": self.api_key}), "token", "/auth/tokens"
        )
        gateway_order = self._post(
            "/ecommerce/orders",
            {
                "auth_token": token,
                "delivery_needed": False,
                "amount_cents": amount_cents,
                "currency": settings.PAYMENT_CURRENCY,
                "merchant_order_id": merchant_order_id,
                "items": [],
            },
        )
        gateway_order_id = self._field(gateway_order, "id", "/ecommerce/orders")
        reply = self._post(
            "/acceptance/payment_keys",
            {
                "auth_token": token,
                "amount_cents": amount_cents,
                "expiration": 3600,
                "order_id": gateway_order_id,
                "currency": settings.PAYMENT_CURRENCY,
                "integration_id": self.integration_id,
                "billing_data": {
                    "first_name": customer.first_name or "NA",
                    "last_name": customer.last_name or "NA",
                    "email": customer.email or "NA",
                    "phone_number": customer.phone or "NA",
                    "apartment": "NA",
                    "floor": "NA",
                    "street": "NA",
                    "building": "NA",
                    "city": "NA",
                    "country": "SA",
                    "state": "NA",
                },
            },
        )
        payment_key = self._field(reply, "token", "/acceptance/payment_keys")
        checkout_url = (
            f"{self.base_url}/acceptance/iframes/{self.iframe_id}?payment_token={payment_key}"
        )
        return CheckoutSession(checkout_url=checkout_url, gateway_order_id=str(gateway_order_id))


class FakeGateway(PaymentGateway):
    """In-process gateway for tests and local development."""

    sessions: list[tuple[Money, str]] = []
    fail_next = False

    def create_session(
        self, amount: Money, merchant_order_id: str, customer: CustomerInfo
    ) -> CheckoutSession:
        if FakeGateway.fail_next:
            FakeGateway.fail_next = False
            raise GatewayUnavailableError()
        FakeGateway.sessions.append((amount, merchant_order_id))
        gateway_order_id = f"fake-{uuid4().hex[:12]}"
        return CheckoutSession(
            checkout_url=f"https://gateway.invalid/checkout/{gateway_order_id}",
            gateway_order_id=gateway_order_id,
        )


def get_gateway() -> PaymentGateway:
    return import_string(settings.PAYMENT_GATEWAY_CLASS)()
