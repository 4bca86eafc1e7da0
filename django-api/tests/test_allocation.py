"""Unit tests for InviteAllocator.

The allocator is a pure snapshot; these tests build it directly.
Run with: pytest tests/test_allocation.py -v
"""

from uuid import uuid4

import pytest

from events.domain import (
    AllocationShare,
    CollaboratorId,
    EventId,
    Guest,
    GuestId,
    InviteAllocator,
    RefundableSlots,
    RsvpStatus,
)
from events.domain.errors import (
    AllocationBelowUsageError,
    AllocationExceedsBudgetError,
    CollaboratorNotFoundError,
)


def _allocator(budget=300, shares=(), owner_used=0, slots=None) -> InviteAllocator:
    return InviteAllocator(
        invite_budget=budget,
        shares=tuple(shares),
        owner_used=owner_used,
        slots=slots or RefundableSlots(total=0),
    )


def _share(allocated, used=0) -> AllocationShare:
    return AllocationShare(CollaboratorId(uuid4()), allocated, used)


class TestPool:
    """The pool is always budget minus the sum of allocations."""

    def test_pool_remaining_is_computed(self):
        allocator = _allocator(shares=[_share(100), _share(50)])
        assert allocator.allocated_total == 150
        assert allocator.pool_remaining == 150

    def test_owner_available_adds_reclaimed_credits(self):
        slots = RefundableSlots(total=10, used=3, reassigned=1)
        allocator = _allocator(budget=100, owner_used=40, slots=slots)
        # owner_free = 100 - (40 - 1) = 61, plus 2 unassigned credits
        assert allocator.owner_free == 61
        assert allocator.owner_available == 63


class TestNewAllocation:
    """Scenario B from the allocation rules."""

    def test_second_allocation_over_budget_is_rejected(self):
        allocator = _allocator(budget=300, shares=[_share(150)])
        with pytest.raises(AllocationExceedsBudgetError) as exc_info:
            allocator.check_new_allocation(200)
        assert exc_info.value.remaining == 150
        assert "150" in exc_info.value.message

    def test_allocation_exactly_at_budget_is_accepted(self):
        allocator = _allocator(budget=300, shares=[_share(150)])
        allocator.check_new_allocation(150)

    def test_owner_usage_is_not_available_to_collaborators(self):
        allocator = _allocator(budget=300, owner_used=200)
        with pytest.raises(AllocationExceedsBudgetError):
            allocator.check_new_allocation(101)


class TestReallocation:
    def test_cannot_drop_below_usage(self):
        """Scenario C: allocated 50, used 50, new allocation 30."""
        share = _share(50, used=50)
        allocator = _allocator(shares=[share])
        with pytest.raises(AllocationBelowUsageError):
            allocator.check_reallocation(share.collaborator_id, 30)

    def test_growth_limited_by_owner_free(self):
        share = _share(100)
        allocator = _allocator(budget=300, shares=[share], owner_used=150)
        with pytest.raises(AllocationExceedsBudgetError) as exc_info:
            allocator.check_reallocation(share.collaborator_id, 151)
        assert exc_info.value.remaining == 150

    def test_shrinking_is_always_allowed_above_usage(self):
        share = _share(100, used=20)
        allocator = _allocator(budget=100, shares=[share])
        allocator.check_reallocation(share.collaborator_id, 20)

    def test_unknown_collaborator(self):
        with pytest.raises(CollaboratorNotFoundError):
            _allocator().check_reallocation(CollaboratorId(uuid4()), 10)


class TestGuestFit:
    """Guest parties against their attributor's allocation."""

    def test_collaborator_party_must_fit_remaining_share(self):
        share = _share(10, used=8)
        allocator = _allocator(shares=[share])
        assert allocator.check_guest(share.collaborator_id, 2) == 0
        with pytest.raises(AllocationExceedsBudgetError):
            allocator.check_guest(share.collaborator_id, 3)

    def test_owner_party_uses_credits_for_shortfall(self):
        slots = RefundableSlots(total=10, used=2)
        allocator = _allocator(budget=100, owner_used=99, slots=slots)
        assert allocator.check_guest(None, 3) == 2

    def test_owner_party_beyond_credits_is_rejected(self):
        slots = RefundableSlots(total=10, used=1)
        allocator = _allocator(budget=100, owner_used=100, slots=slots)
        with pytest.raises(AllocationExceedsBudgetError):
            allocator.check_guest(None, 2)

    def test_without_guest_releases_party_and_credits(self):
        share = _share(10, used=4)
        event_id = EventId(uuid4())
        guest = Guest(
            id=GuestId(uuid4()),
            event_id=event_id,
            name="Sara",
            phone="+966501234567",
            party_size=4,
            collaborator_id=share.collaborator_id,
            added_by="helper",
        )
        allocator = _allocator(shares=[share]).without_guest(guest)
        assert allocator.share(share.collaborator_id).used == 0

    def test_without_declined_guest_changes_nothing(self):
        guest = Guest(
            id=GuestId(uuid4()),
            event_id=EventId(uuid4()),
            name="Sara",
            phone="+966501234567",
            party_size=4,
            collaborator_id=None,
            added_by="owner",
            rsvp_status=RsvpStatus.DECLINED,
        )
        allocator = _allocator(owner_used=10)
        assert allocator.without_guest(guest) == allocator
