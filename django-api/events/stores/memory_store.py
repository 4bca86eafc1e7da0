"""In-process EventStore.

Keeps domain objects in a dict guarded by one re-entrant lock per event, so
threads working on different events never wait on each other. Used by the
concurrency tests and for scripting against the services without a database.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from django.utils import timezone

from events.domain import (
    ApprovalStatus,
    Collaborator,
    CollaboratorId,
    Event,
    EventId,
    EventStatus,
    Guest,
    GuestId,
    RefundableSlots,
)
from events.domain.errors import DuplicateEventError
from events.stores.interfaces import EventStore


class InMemoryEventStore(EventStore):
    def __init__(self) -> None:
        self._events: dict[EventId, Event] = {}
        self._locks: dict[EventId, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, event_id: EventId) -> threading.RLock:
        with self._registry_lock:
            return self._locks.setdefault(event_id, threading.RLock())

    def _event_of_collaborator(self, collaborator_id: CollaboratorId) -> EventId:
        for event in list(self._events.values()):
            if event.collaborator(collaborator_id) is not None:
                return event.id
        raise KeyError(collaborator_id)

    def _event_of_guest(self, guest_id: GuestId) -> EventId:
        for event in list(self._events.values()):
            if event.guest(guest_id) is not None:
                return event.id
        raise KeyError(guest_id)

    def _update(self, event_id: EventId, **changes: Any) -> Event:
        event = replace(self._events[event_id], updated_at=timezone.now(), **changes)
        self._events[event_id] = event
        return event

    def create_event(self, event: Event) -> Event:
        with self._registry_lock:
            if event.cart_item_id is not None and any(
                e.cart_item_id == event.cart_item_id for e in self._events.values()
            ):
                raise DuplicateEventError(str(event.cart_item_id))
            now = timezone.now()
            stored = replace(event, created_at=now, updated_at=now)
            self._events[event.id] = stored
            self._locks.setdefault(event.id, threading.RLock())
        return stored

    def get_event(self, event_id: EventId) -> Event | None:
        return self._events.get(event_id)

    @contextmanager
    def locked(self, event_id: EventId) -> Iterator[Event | None]:
        with self._lock_for(event_id):
            yield self._events.get(event_id)

    def list_for_user(self, user_id: str) -> list[Event]:
        events = [
            e
            for e in self._events.values()
            if e.user_id == user_id or e.collaborator_for_user(user_id) is not None
        ]
        return sorted(events, key=lambda e: e.created_at, reverse=True)

    def list_by_approval_status(self, approval_status: ApprovalStatus) -> list[Event]:
        events = [e for e in self._events.values() if e.approval_status is approval_status]
        return sorted(events, key=lambda e: e.created_at)

    def list_upcoming_on_or_before(self, day: date) -> list[Event]:
        return [
            e
            for e in self._events.values()
            if e.status is EventStatus.UPCOMING and e.details.event_date <= day
        ]

    def transition_approval(
        self,
        event_id: EventId,
        expected: ApprovalStatus,
        new: ApprovalStatus,
        **changes: Any,
    ) -> bool:
        with self._lock_for(event_id):
            event = self._events.get(event_id)
            if event is None or event.approval_status is not expected:
                return False
            self._update(event_id, approval_status=new, **changes)
            return True

    def transition_status(self, event_id: EventId, expected: EventStatus, new: EventStatus) -> bool:
        with self._lock_for(event_id):
            event = self._events.get(event_id)
            if event is None or event.status is not expected:
                return False
            self._update(event_id, status=new)
            return True

    def update_event_fields(self, event_id: EventId, **changes: Any) -> None:
        with self._lock_for(event_id):
            self._update(event_id, **changes)

    def save_refundable_slots(self, event_id: EventId, slots: RefundableSlots) -> None:
        with self._lock_for(event_id):
            self._update(event_id, refundable_slots=slots)

    def add_collaborator(self, collaborator: Collaborator) -> Collaborator:
        stored = replace(collaborator, added_at=collaborator.added_at or timezone.now())
        with self._lock_for(collaborator.event_id):
            event = self._events[collaborator.event_id]
            self._update(event.id, collaborators=event.collaborators + (stored,))
        return stored

    def update_collaborator(self, collaborator: Collaborator) -> Collaborator:
        with self._lock_for(collaborator.event_id):
            event = self._events[collaborator.event_id]
            current = event.collaborator(collaborator.id)
            stored = replace(
                current,
                allocated_invites=collaborator.allocated_invites,
                permissions=collaborator.permissions,
            )
            self._update(
                event.id,
                collaborators=tuple(stored if c.id == stored.id else c for c in event.collaborators),
            )
        return stored

    def delete_collaborator(self, collaborator_id: CollaboratorId) -> None:
        event_id = self._event_of_collaborator(collaborator_id)
        with self._lock_for(event_id):
            event = self._events[event_id]
            self._update(
                event_id,
                collaborators=tuple(c for c in event.collaborators if c.id != collaborator_id),
                guests=tuple(
                    replace(g, collaborator_id=None) if g.collaborator_id == collaborator_id else g
                    for g in event.guests
                ),
            )

    def increment_collaborator_usage(self, collaborator_id: CollaboratorId, delta: int) -> bool:
        event_id = self._event_of_collaborator(collaborator_id)
        with self._lock_for(event_id):
            event = self._events[event_id]
            current = event.collaborator(collaborator_id)
            new_used = current.used_invites + delta
            if not 0 <= new_used <= current.allocated_invites:
                return False
            stored = replace(current, used_invites=new_used)
            self._update(
                event_id,
                collaborators=tuple(stored if c.id == stored.id else c for c in event.collaborators),
            )
            return True

    def add_guest(self, guest: Guest) -> Guest:
        now = timezone.now()
        stored = replace(guest, added_at=guest.added_at or now, updated_at=now)
        with self._lock_for(guest.event_id):
            event = self._events[guest.event_id]
            self._update(event.id, guests=event.guests + (stored,))
        return stored

    def update_guest(self, guest: Guest) -> Guest:
        stored = replace(guest, updated_at=timezone.now())
        with self._lock_for(guest.event_id):
            event = self._events[guest.event_id]
            self._update(
                event.id, guests=tuple(stored if g.id == stored.id else g for g in event.guests)
            )
        return stored

    def delete_guest(self, guest_id: GuestId) -> None:
        event_id = self._event_of_guest(guest_id)
        with self._lock_for(event_id):
            event = self._events[event_id]
            self._update(event_id, guests=tuple(g for g in event.guests if g.id != guest_id))

    def mark_guest_whatsapp_sent(self, guest_id: GuestId, sent_at: datetime) -> bool:
        event_id = self._event_of_guest(guest_id)
        with self._lock_for(event_id):
            event = self._events[event_id]
            guest = event.guest(guest_id)
            if guest.whatsapp_message_sent:
                return False
            stored = replace(guest, whatsapp_message_sent=True, whatsapp_sent_at=sent_at, updated_at=sent_at)
            self._update(
                event_id, guests=tuple(stored if g.id == guest_id else g for g in event.guests)
            )
            return True
