"""Collaborators and guests over an event's invite budget.

Every operation that reads remaining capacity and then writes runs inside
`store.locked(event_id)`. Collaborator usage is additionally moved with a
conditional increment, so even a store without a real row lock cannot push
`used_invites` past `allocated_invites`.

Package tier caps on collaborators are enforced here; the numeric budget
checks belong to InviteAllocator.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from uuid import uuid4

from django.utils import timezone

from events.domain import (
    AllocationShare,
    Capacity,
    Collaborator,
    CollaboratorId,
    CollaboratorPermissions,
    Event,
    EventStatus,
    Guest,
    GuestId,
    InviteAllocator,
    PhoneNumber,
    RefundableSlots,
    RsvpStatus,
)
from events.domain.errors import (
    AllocationExceedsBudgetError,
    CollaboratorLimitError,
    DuplicateCollaboratorError,
    DuplicateGuestError,
    GuestListLockedError,
    GuestNotFoundError,
    InvalidAllocationError,
    InvalidGuestError,
    PermissionDeniedError,
)
from events.notifications import GUEST_ADDED
from events.permissions import Actor, EventAccess, resolve_access
from events.services.lookups import (
    parse_collaborator_id,
    parse_event_id,
    parse_guest_id,
    require_collaborator,
    require_event,
    require_guest,
)
from events.stores.interfaces import EventStore
from events.tasks import enqueue_notification

logger = logging.getLogger("events")

MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 10


def _allocation(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAllocationError()
    try:
        return Capacity(value).value
    except ValueError as exc:
        raise InvalidAllocationError() from exc


@dataclass(frozen=True)
class CollaboratorInput:
    user_id: str
    name: str
    email: str
    allocated_invites: int
    phone: str = ""
    permissions: dict[str, bool] | None = None


@dataclass(frozen=True)
class GuestInput:
    name: str
    phone: str
    party_size: int


@dataclass(frozen=True)
class AllocationSummary:
    invite_budget: int
    allocated_to_collaborators: int
    pool_remaining: int
    owner_used: int
    owner_available: int
    refundable_slots: RefundableSlots
    shares: tuple[AllocationShare, ...] = field(default=())


def _validated_guest(name: str, phone: str, party_size: int) -> tuple[str, str, int]:
    name = (name or "").strip()
    if not 1 <= len(name) <= 100:
        raise InvalidGuestError("Guest name must be between 1 and 100 characters")
    try:
        normalized = PhoneNumber.parse(phone).value
    except ValueError as exc:
        raise InvalidGuestError(str(exc)) from exc
    if not MIN_PARTY_SIZE <= party_size <= MAX_PARTY_SIZE:
        raise InvalidGuestError(
            f"Party size must be between {MIN_PARTY_SIZE} and {MAX_PARTY_SIZE}"
        )
    return name, normalized, party_size


def _ensure_guest_list_open(event: Event) -> None:
    if event.status is not EventStatus.UPCOMING:
        raise GuestListLockedError(f"The event is {event.status.value}")
    if event.guest_list_confirmed:
        raise GuestListLockedError()


class CollaborationService:
    """Runtime API over InviteAllocator for collaborators and guests."""

    def __init__(
        self,
        store: EventStore,
        notify: Callable[..., None] = enqueue_notification,
        clock: Callable = timezone.now,
    ) -> None:
        self._store = store
        self._notify = notify
        self._clock = clock

    # Collaborators

    def add_collaborator(self, event_id: str, actor: Actor, data: CollaboratorInput) -> Collaborator:
        """Add a collaborator with a share of the owner's unused invites.

        Raises:
            PermissionDeniedError: If the actor is not the owner.
            CollaboratorLimitError: If the package tier allows no more collaborators.
            InvalidAllocationError: If the share is negative or not a whole number.
            DuplicateCollaboratorError: If the user already collaborates on the event.
            AllocationExceedsBudgetError: If the share does not fit the remaining pool.
        """
        eid = parse_event_id(event_id)
        allocated = _allocation(data.allocated_invites)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            resolve_access(event, actor).require_owner()

            limit = event.package_type.max_collaborators
            if len(event.collaborators) >= limit:
                raise CollaboratorLimitError(event.package_type.value, limit)
            if data.user_id == event.user_id or event.collaborator_for_user(data.user_id):
                raise DuplicateCollaboratorError()

            InviteAllocator.for_event(event).check_new_allocation(allocated)

            collaborator = Collaborator(
                id=CollaboratorId(uuid4()),
                event_id=eid,
                user_id=data.user_id,
                name=data.name,
                email=data.email,
                phone=data.phone,
                allocated_invites=allocated,
                used_invites=0,
                permissions=CollaboratorPermissions.defaults_for(event.package_type).merged(
                    data.permissions
                ),
                added_by=actor.user_id,
                added_at=self._clock(),
            )
            stored = self._store.add_collaborator(collaborator)

        logger.info("Collaborator %s added to event %s with %s invites", stored.id, eid, allocated)
        return stored

    def update_collaborator(
        self,
        event_id: str,
        actor: Actor,
        collaborator_id: str,
        allocated_invites: int | None = None,
        permissions: dict[str, bool] | None = None,
    ) -> Collaborator:
        eid = parse_event_id(event_id)
        cid = parse_collaborator_id(collaborator_id)
        if allocated_invites is not None:
            allocated_invites = _allocation(allocated_invites)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            resolve_access(event, actor).require_owner()
            collaborator = require_collaborator(event, cid)

            if allocated_invites is not None:
                InviteAllocator.for_event(event).check_reallocation(cid, allocated_invites)
                collaborator = replace(collaborator, allocated_invites=allocated_invites)
            collaborator = replace(
                collaborator, permissions=collaborator.permissions.merged(permissions)
            )
            stored = self._store.update_collaborator(collaborator)

        logger.info("Collaborator %s on event %s updated", cid, eid)
        return stored

    def remove_collaborator(self, event_id: str, actor: Actor, collaborator_id: str) -> None:
        """Delete the collaborator; their share returns to the pool and their
        guests become the owner's."""
        eid = parse_event_id(event_id)
        cid = parse_collaborator_id(collaborator_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            resolve_access(event, actor).require_owner()
            collaborator = require_collaborator(event, cid)
            self._store.delete_collaborator(cid)

        logger.info(
            "Collaborator %s removed from event %s, %s unused invites released",
            cid,
            eid,
            collaborator.remaining_invites,
        )

    def list_collaborators(self, event_id: str, actor: Actor) -> list[Collaborator]:
        eid = parse_event_id(event_id)
        event = require_event(self._store.get_event(eid), eid)
        access = resolve_access(event, actor)
        if not access.can_view_full_event:
            return [access.collaborator]
        return list(event.collaborators)

    # Guests

    def record_guest_added(self, event_id: str, actor: Actor, data: GuestInput) -> Guest:
        """Add a guest attributed to the actor (owner or collaborator).

        The capacity check and the usage increment happen under the event lock.
        An owner guest that does not fit the owner's free invites consumes
        refundable-slot credits for the shortfall.
        """
        eid = parse_event_id(event_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            access = resolve_access(event, actor)
            access.require_can_add_guests()
            _ensure_guest_list_open(event)

            name, phone, party_size = _validated_guest(data.name, data.phone, data.party_size)
            if any(g.phone == phone for g in event.guests):
                raise DuplicateGuestError()

            attributor = access.collaborator.id if access.collaborator else None
            credits = InviteAllocator.for_event(event).check_guest(attributor, party_size)
            if attributor is not None:
                self._move_usage(event, attributor, party_size)
            if credits:
                self._store.save_refundable_slots(eid, event.refundable_slots.reassign(credits))

            now = self._clock()
            guest = self._store.add_guest(
                Guest(
                    id=GuestId(uuid4()),
                    event_id=eid,
                    name=name,
                    phone=phone,
                    party_size=party_size,
                    collaborator_id=attributor,
                    added_by=actor.user_id,
                    credits_used=credits,
                    added_at=now,
                    updated_at=now,
                )
            )
            self._notify(GUEST_ADDED, eid, guest.id)

        logger.info(
            "Guest %s (party of %s) added to event %s by %s",
            guest.id,
            party_size,
            eid,
            actor.user_id,
        )
        return guest

    def update_guest(self, event_id: str, actor: Actor, guest_id: str, changes: dict) -> Guest:
        eid = parse_event_id(event_id)
        gid = parse_guest_id(guest_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            access = resolve_access(event, actor)
            guest = self._visible_guest(event, access, gid)
            access.require_can_edit(guest)
            _ensure_guest_list_open(event)

            name, phone, party_size = _validated_guest(
                changes.get("name", guest.name),
                changes.get("phone", guest.phone),
                changes.get("party_size", guest.party_size),
            )
            if any(g.phone == phone and g.id != gid for g in event.guests):
                raise DuplicateGuestError()

            credits = guest.credits_used
            if guest.is_active and party_size != guest.party_size:
                allocator = InviteAllocator.for_event(event).without_guest(guest)
                credits = allocator.check_guest(guest.collaborator_id, party_size)
                if guest.collaborator_id is not None:
                    self._move_usage(event, guest.collaborator_id, party_size - guest.party_size)
                slots = event.refundable_slots.release(guest.credits_used).reassign(credits)
                if slots != event.refundable_slots:
                    self._store.save_refundable_slots(eid, slots)

            stored = self._store.update_guest(
                replace(guest, name=name, phone=phone, party_size=party_size, credits_used=credits)
            )

        logger.info("Guest %s on event %s updated by %s", gid, eid, actor.user_id)
        return stored

    def remove_guest(self, event_id: str, actor: Actor, guest_id: str) -> None:
        eid = parse_event_id(event_id)
        gid = parse_guest_id(guest_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            access = resolve_access(event, actor)
            guest = self._visible_guest(event, access, gid)
            access.require_can_delete(guest)
            _ensure_guest_list_open(event)

            self._release_guest(event, guest)
            self._store.delete_guest(gid)

        logger.info("Guest %s removed from event %s by %s", gid, eid, actor.user_id)

    def mark_whatsapp_sent(self, event_id: str, actor: Actor, guest_id: str) -> Guest:
        """Flag the guest's invitation as sent. Repeating the call changes nothing."""
        eid = parse_event_id(event_id)
        gid = parse_guest_id(guest_id)
        event = require_event(self._store.get_event(eid), eid)
        self._visible_guest(event, resolve_access(event, actor), gid)

        if self._store.mark_guest_whatsapp_sent(gid, self._clock()):
            logger.info("WhatsApp invitation sent to guest %s on event %s", gid, eid)
        return require_guest(self._store.get_event(eid), gid)

    def reclaim_on_decline(self, event_id: str, guest_id: str, actor: Actor | None = None) -> Guest:
        """Record a declined RSVP and give the guest's invites back.

        The attributor's usage drops by the party size, credits the guest
        consumed are released, and for premium/vip one refundable-slot credit
        is granted while any remain. A guest already declined is returned
        unchanged. A human actor needs permission to edit the guest; `actor`
        is None for trusted system triggers such as the RSVP channel.
        """
        eid = parse_event_id(event_id)
        gid = parse_guest_id(guest_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            if actor is not None:
                access = resolve_access(event, actor)
                guest = self._visible_guest(event, access, gid)
                access.require_can_edit(guest)
            else:
                guest = require_guest(event, gid)
            if guest.rsvp_status is RsvpStatus.DECLINED:
                return guest

            slots = self._release_guest(event, guest, save=False).grant()
            if slots != event.refundable_slots:
                self._store.save_refundable_slots(eid, slots)
            stored = self._store.update_guest(
                replace(guest, rsvp_status=RsvpStatus.DECLINED, credits_used=0)
            )

        logger.info(
            "Guest %s on event %s declined, %s invites reclaimed (credits %s/%s)",
            gid,
            eid,
            guest.party_size,
            slots.used,
            slots.total,
        )
        return stored

    def allocation_summary(self, event_id: str, actor: Actor) -> AllocationSummary:
        eid = parse_event_id(event_id)
        event = require_event(self._store.get_event(eid), eid)
        if not resolve_access(event, actor).can_view_full_event:
            raise PermissionDeniedError("Only the event owner can view the allocation")
        allocator = InviteAllocator.for_event(event)
        return AllocationSummary(
            invite_budget=allocator.invite_budget,
            allocated_to_collaborators=allocator.allocated_total,
            pool_remaining=allocator.pool_remaining,
            owner_used=allocator.owner_used,
            owner_available=allocator.owner_available,
            refundable_slots=allocator.slots,
            shares=allocator.shares,
        )

    def _visible_guest(self, event: Event, access: EventAccess, guest_id: GuestId) -> Guest:
        guest = require_guest(event, guest_id)
        if not access.can_see_guest(guest):
            raise GuestNotFoundError(str(guest_id))
        return guest

    def _move_usage(self, event: Event, collaborator_id: CollaboratorId, delta: int) -> None:
        if delta == 0:
            return
        if not self._store.increment_collaborator_usage(collaborator_id, delta):
            share = InviteAllocator.for_event(event).share(collaborator_id)
            raise AllocationExceedsBudgetError(delta, share.remaining)

    def _release_guest(self, event: Event, guest: Guest, save: bool = True) -> RefundableSlots:
        """Stop counting an active guest against its attributor."""
        slots = event.refundable_slots
        if not guest.is_active:
            return slots
        if guest.collaborator_id is not None:
            self._move_usage(event, guest.collaborator_id, -guest.party_size)
        if guest.credits_used:
            slots = slots.release(guest.credits_used)
            if save:
                self._store.save_refundable_slots(event.id, slots)
        return slots
