"""Invite allocation rules for one event.

The shared pool is never stored: it is always `invite_budget - sum(allocated)`
computed from the current collaborator rows. The owner's allocation is that
pool. Refundable-slot credits widen the owner's side only.

This module is tier-agnostic: collaborator caps per package live in the
permission layer of CollaborationService.
"""

from dataclasses import dataclass, replace
from typing import Self

from events.domain.errors import (
    AllocationBelowUsageError,
    AllocationExceedsBudgetError,
    CollaboratorNotFoundError,
)
from events.domain.models import Event, Guest
from events.domain.value_objects import CollaboratorId, RefundableSlots


@dataclass(frozen=True)
class AllocationShare:
    collaborator_id: CollaboratorId
    allocated: int
    used: int

    @property
    def remaining(self) -> int:
        return self.allocated - self.used


@dataclass(frozen=True)
class InviteAllocator:
    """Snapshot of an event's allocation state with the checks that guard it."""

    invite_budget: int
    shares: tuple[AllocationShare, ...]
    owner_used: int
    slots: RefundableSlots

    @classmethod
    def for_event(cls, event: Event) -> Self:
        shares = tuple(
            AllocationShare(c.id, c.allocated_invites, c.used_invites) for c in event.collaborators
        )
        owner_used = sum(
            g.party_size for g in event.guests if g.is_active and g.collaborator_id is None
        )
        return cls(
            invite_budget=event.invite_budget,
            shares=shares,
            owner_used=owner_used,
            slots=event.refundable_slots,
        )

    @property
    def allocated_total(self) -> int:
        return sum(s.allocated for s in self.shares)

    @property
    def pool_remaining(self) -> int:
        return self.invite_budget - self.allocated_total

    @property
    def owner_allocation(self) -> int:
        return self.pool_remaining

    @property
    def owner_base_used(self) -> int:
        """Owner usage funded by the pool itself, excluding reassigned credits."""
        return self.owner_used - self.slots.reassigned

    @property
    def owner_free(self) -> int:
        return self.owner_allocation - self.owner_base_used

    @property
    def owner_available(self) -> int:
        return max(self.owner_free, 0) + self.slots.available

    def share(self, collaborator_id: CollaboratorId) -> AllocationShare:
        for share in self.shares:
            if share.collaborator_id == collaborator_id:
                return share
        raise CollaboratorNotFoundError(str(collaborator_id))

    def check_new_allocation(self, requested: int) -> None:
        """A new collaborator may only take invites the owner has not used."""
        if requested > self.owner_free:
            raise AllocationExceedsBudgetError(requested, self.owner_free)

    def check_reallocation(self, collaborator_id: CollaboratorId, new_allocation: int) -> None:
        share = self.share(collaborator_id)
        if new_allocation < share.used:
            raise AllocationBelowUsageError(new_allocation, share.used)
        growth = new_allocation - share.allocated
        if growth > 0 and growth > self.owner_free:
            raise AllocationExceedsBudgetError(new_allocation, share.allocated + self.owner_free)

    def check_guest(self, collaborator_id: CollaboratorId | None, party_size: int) -> int:
        """Validate that a party fits its attributor.

        Returns the number of refundable-slot credits the party consumes;
        always 0 for collaborator-attributed guests.
        """
        if collaborator_id is not None:
            share = self.share(collaborator_id)
            if party_size > share.remaining:
                raise AllocationExceedsBudgetError(party_size, share.remaining)
            return 0

        free = max(self.owner_free, 0)
        if party_size <= free:
            return 0
        shortfall = party_size - free
        if shortfall > self.slots.available:
            raise AllocationExceedsBudgetError(party_size, self.owner_available)
        return shortfall

    def without_guest(self, guest: Guest) -> Self:
        """State after the guest stops counting (declined, removed or being edited)."""
        if not guest.is_active:
            return self
        slots = self.slots.release(guest.credits_used)
        if guest.collaborator_id is None:
            return replace(self, owner_used=self.owner_used - guest.party_size, slots=slots)
        shares = tuple(
            replace(s, used=s.used - guest.party_size) if s.collaborator_id == guest.collaborator_id else s
            for s in self.shares
        )
        return replace(self, shares=shares, slots=slots)
