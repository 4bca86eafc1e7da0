"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from events.domain import (
    Capacity,
    CollaboratorPermissions,
    EventId,
    Money,
    PackageType,
    PhoneNumber,
    RefundableSlots,
)


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_positive_amount(self):
        assert Money(Decimal("10.50")).amount == Decimal("10.50")

    def test_money_accepts_zero(self):
        assert Money(Decimal("0")).amount == 0

    def test_money_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            Money(Decimal("-1"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money.of("10000")) == "10000.00"

    def test_of_quantizes_to_cents(self):
        assert Money.of("12.345").amount == Decimal("12.35")


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_zero(self):
        assert Capacity(0).value == 0

    def test_capacity_rejects_negative_value(self):
        with pytest.raises(ValueError):
            Capacity(-1)


class TestEventId:
    """Tests for EventId value object."""

    def test_from_string_valid_uuid(self):
        raw = uuid4()
        assert EventId.from_string(str(raw)).value == raw

    def test_from_string_invalid_uuid(self):
        with pytest.raises(ValueError):
            EventId.from_string("not-a-uuid")


class TestPackageType:
    """Refund rates and collaborator caps per package tier."""

    @pytest.mark.parametrize(
        "package_type,budget,expected",
        [
            (PackageType.CLASSIC, 300, 0),
            (PackageType.PREMIUM, 200, 40),
            (PackageType.PREMIUM, 102, 20),
            (PackageType.PREMIUM, 103, 21),
            (PackageType.VIP, 100, 50),
            (PackageType.VIP, 101, 51),
        ],
    )
    def test_refundable_slots_round_half_up(self, package_type, budget, expected):
        assert package_type.refundable_slots_for(budget) == expected

    def test_collaborator_caps(self):
        assert PackageType.CLASSIC.max_collaborators == 0
        assert PackageType.PREMIUM.max_collaborators == 2
        assert PackageType.VIP.max_collaborators == 10


class TestRefundableSlots:
    """Counters for reclaimed and reassigned invites."""

    def test_grant_stops_at_total(self):
        slots = RefundableSlots(total=1).grant().grant()
        assert slots.used == 1
        assert slots.remaining == 0

    def test_available_excludes_reassigned(self):
        slots = RefundableSlots(total=5, used=3, reassigned=1)
        assert slots.available == 2

    def test_rejects_reassigned_above_used(self):
        with pytest.raises(ValueError):
            RefundableSlots(total=5, used=1, reassigned=2)

    def test_rejects_used_above_total(self):
        with pytest.raises(ValueError):
            RefundableSlots(total=1, used=2)


class TestCollaboratorPermissions:
    def test_vip_defaults_allow_edit_and_delete(self):
        perms = CollaboratorPermissions.defaults_for(PackageType.VIP)
        assert perms.can_edit_guests and perms.can_delete_guests
        assert not perms.can_view_full_event

    def test_premium_defaults_only_add(self):
        perms = CollaboratorPermissions.defaults_for(PackageType.PREMIUM)
        assert perms.can_add_guests
        assert not perms.can_edit_guests

    def test_merged_ignores_unknown_keys(self):
        perms = CollaboratorPermissions().merged({"can_view_full_event": True, "is_admin": True})
        assert perms.can_view_full_event
        assert not hasattr(perms, "is_admin")


class TestEventDetails:
    """Validation ranges of a package configuration."""

    def test_invite_budget_includes_additional_cards(self, details):
        assert replace(details, additional_cards=25).invite_budget == 125

    @pytest.mark.parametrize(
        "changes",
        [
            {"invite_count": 99},
            {"invite_count": 701},
            {"additional_cards": 101},
            {"gate_supervisors": 11},
            {"extra_hours": 4},
            {"start_time": "25:00"},
            {"host_name": "N"},
            {"invitation_text": "Too short"},
            {"event_location": ""},
        ],
    )
    def test_rejects_out_of_range_values(self, details, changes):
        with pytest.raises(ValueError):
            replace(details, **changes)

    def test_dict_round_trip_keeps_date(self, details):
        data = details.to_dict()
        assert data["event_date"] == details.event_date.isoformat()
        assert type(details).from_dict(data) == details

    def test_ends_at_uses_event_timezone(self, details):
        tz = ZoneInfo("Asia/Riyadh")
        ends = replace(details, event_date=date(2026, 3, 1)).ends_at(tz)
        assert (ends.hour, ends.minute, ends.tzinfo) == (23, 0, tz)


class TestPhoneNumber:
    """Saudi mobile normalisation."""

    @pytest.mark.parametrize(
        "raw",
        ["0501234567", "+966 50 123 4567", "00966501234567", "966501234567", "(050) 123-4567"],
    )
    def test_parse_normalises_local_and_international_forms(self, raw):
        assert PhoneNumber.parse(raw).value == "+966501234567"

    @pytest.mark.parametrize("raw", ["", "0401234567", "+9665012345", "12345678901"])
    def test_parse_rejects_non_mobile_numbers(self, raw):
        with pytest.raises(ValueError):
            PhoneNumber.parse(raw)
