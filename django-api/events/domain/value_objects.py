"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import asdict, dataclass, replace
from datetime import date, datetime, time, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Self
from uuid import UUID

_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class CollaboratorId:
    """Unique identifier for a Collaborator."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class GuestId:
    """Unique identifier for a Guest."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def of(cls, value: Any) -> Self:
        return cls(amount=Decimal(str(value)).quantize(Decimal("0.01")))

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")


class PackageType(str, Enum):
    CLASSIC = "classic"
    PREMIUM = "premium"
    VIP = "vip"

    @property
    def refund_rate(self) -> Decimal:
        return REFUND_RATES[self]

    @property
    def max_collaborators(self) -> int:
        return MAX_COLLABORATORS[self]

    def refundable_slots_for(self, invite_budget: int) -> int:
        """Round half up, so a 0.5 share of a slot still counts as one."""
        share = Decimal(invite_budget) * self.refund_rate
        return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


REFUND_RATES = {
    PackageType.CLASSIC: Decimal("0"),
    PackageType.PREMIUM: Decimal("0.20"),
    PackageType.VIP: Decimal("0.50"),
}

MAX_COLLABORATORS = {
    PackageType.CLASSIC: 0,
    PackageType.PREMIUM: 2,
    PackageType.VIP: 10,
}


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    CANCELLED = "cancelled"
    DONE = "done"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RsvpStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


@dataclass(frozen=True)
class RefundableSlots:
    """Refundable-slot counters of an event.

    `used` counts credits granted by declines (never above `total`);
    `reassigned` counts the granted credits already consumed by new guests.
    """

    total: int
    used: int = 0
    reassigned: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.reassigned <= self.used <= self.total:
            raise ValueError("Refundable slots must satisfy 0 <= reassigned <= used <= total")

    @property
    def available(self) -> int:
        """Reclaimed but not yet reassigned."""
        return self.used - self.reassigned

    @property
    def remaining(self) -> int:
        return self.total - self.used

    def grant(self) -> Self:
        if self.remaining == 0:
            return self
        return replace(self, used=self.used + 1)

    def reassign(self, count: int) -> Self:
        return replace(self, reassigned=self.reassigned + count)

    def release(self, count: int) -> Self:
        return replace(self, reassigned=self.reassigned - count)


@dataclass(frozen=True)
class CollaboratorPermissions:
    can_add_guests: bool = True
    can_edit_guests: bool = False
    can_delete_guests: bool = False
    can_view_full_event: bool = False

    @classmethod
    def defaults_for(cls, package_type: PackageType) -> Self:
        vip = package_type is PackageType.VIP
        return cls(can_add_guests=True, can_edit_guests=vip, can_delete_guests=vip)

    def merged(self, overrides: dict[str, bool] | None) -> Self:
        if not overrides:
            return self
        return replace(self, **{k: bool(v) for k, v in overrides.items() if hasattr(self, k)})


@dataclass(frozen=True)
class EventDetails:
    """What the shopper configured for one invitation package."""

    event_date: date
    start_time: str
    end_time: str
    event_location: str
    host_name: str
    invitation_text: str
    invite_count: int
    additional_cards: int = 0
    gate_supervisors: int = 0
    extra_hours: int = 0
    fast_delivery: bool = False
    event_name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.event_date, date):
            raise ValueError("Event date is required")
        if not 100 <= self.invite_count <= 700:
            raise ValueError("Invite count must be between 100 and 700")
        if not 0 <= self.additional_cards <= 100:
            raise ValueError("Additional cards must be between 0 and 100")
        if not 0 <= self.gate_supervisors <= 10:
            raise ValueError("Gate supervisors must be between 0 and 10")
        if not 0 <= self.extra_hours <= 3:
            raise ValueError("Extra hours must be between 0 and 3")
        for name in ("start_time", "end_time"):
            if not _TIME_RE.match(getattr(self, name)):
                raise ValueError(f"{name} must use HH:MM format")
        if not 2 <= len(self.host_name) <= 100:
            raise ValueError("Host name must be between 2 and 100 characters")
        if not 10 <= len(self.invitation_text) <= 1000:
            raise ValueError("Invitation text must be between 10 and 1000 characters")
        if not 1 <= len(self.event_location) <= 200:
            raise ValueError("Event location must be between 1 and 200 characters")
        if len(self.event_name) > 100:
            raise ValueError("Event name cannot exceed 100 characters")

    @property
    def invite_budget(self) -> int:
        return self.invite_count + self.additional_cards

    def ends_at(self, tz: tzinfo) -> datetime:
        hours, minutes = (int(part) for part in self.end_time.split(":"))
        return datetime.combine(self.event_date, time(hours, minutes), tzinfo=tz)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event_date"] = self.event_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        values = dict(data)
        if isinstance(values.get("event_date"), str):
            values["event_date"] = date.fromisoformat(values["event_date"])
        return cls(**values)


_PHONE_DIGITS_RE = re.compile(r"[\s\-()]")
_SAUDI_MOBILE_RE = re.compile(r"^5[0-9]{8}$")


@dataclass(frozen=True)
class PhoneNumber:
    """Saudi mobile number normalised to +9665XXXXXXXX."""

    value: str

    def __post_init__(self) -> None:
        if not re.match(r"^\+9665[0-9]{8}$", self.value):
            raise ValueError("Phone number must be a Saudi mobile number")

    @classmethod
    def parse(cls, raw: str) -> Self:
        digits = _PHONE_DIGITS_RE.sub("", raw or "")
        for prefix in ("+966", "00966", "966", "0"):
            if digits.startswith(prefix):
                digits = digits[len(prefix):]
                break
        if not _SAUDI_MOBILE_RE.match(digits):
            raise ValueError("Phone number must be a Saudi mobile number")
        return cls(value=f"+966{digits}")

    def __str__(self) -> str:
        return self.value
