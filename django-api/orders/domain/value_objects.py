"""Order and payment primitives."""

from enum import Enum


class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.CREATED


class FailureReason(str, Enum):
    GATEWAY_DECLINED = "gateway_declined"
    AMOUNT_MISMATCH = "amount_mismatch"
    ABANDONED = "abandoned"
    SUPERSEDED = "superseded"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    ADMIN = "admin"


class CallbackOutcome(str, Enum):
    """Outcome declared by the gateway."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


class CallbackResult(str, Enum):
    """What processing a callback did."""

    PAID = "paid"
    FAILED = "failed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    PENDING = "pending"
