"""Event status lifecycle and read access.

Status moves are conditional writes: upcoming -> done (scheduler) and
upcoming -> cancelled (owner). Neither touches approval_status.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

from events.domain import Event, EventId, EventStatus
from events.domain.errors import InvalidTransitionError, PermissionDeniedError
from events.permissions import Actor, resolve_access
from events.services.lookups import parse_event_id, require_event
from events.stores.interfaces import EventStore

logger = logging.getLogger("events")


def _visible_to(event: Event, actor: Actor) -> Event:
    access = resolve_access(event, actor)
    if access.can_view_full_event:
        return event
    return replace(event, guests=tuple(g for g in event.guests if access.can_see_guest(g)))


class EventLifecycle:
    def __init__(self, store: EventStore, clock: Callable = timezone.now) -> None:
        self._store = store
        self._clock = clock

    def get_event(self, event_id: str, actor: Actor) -> Event:
        """Return the event as the actor may see it.

        Collaborators without full-event access only see their own guests.
        """
        eid = parse_event_id(event_id)
        event = require_event(self._store.get_event(eid), eid)
        return _visible_to(event, actor)

    def list_for_user(self, actor: Actor) -> list[Event]:
        """Events the actor owns or collaborates on, newest first."""
        return [_visible_to(e, actor) for e in self._store.list_for_user(actor.user_id)]

    def advance_finished(self, now: datetime) -> list[EventId]:
        """Mark upcoming events whose end time is before `now` as done."""
        tz = ZoneInfo(settings.TIME_ZONE)
        today = now.astimezone(tz).date()
        finished = []
        for event in self._store.list_upcoming_on_or_before(today):
            if event.details.ends_at(tz) >= now:
                continue
            if self._store.transition_status(event.id, EventStatus.UPCOMING, EventStatus.DONE):
                finished.append(event.id)
        return finished

    def cancel(self, event_id: str, actor: Actor) -> Event:
        eid = parse_event_id(event_id)
        event = require_event(self._store.get_event(eid), eid)
        resolve_access(event, actor).require_owner()
        if not self._store.transition_status(eid, EventStatus.UPCOMING, EventStatus.CANCELLED):
            current = require_event(self._store.get_event(eid), eid)
            raise InvalidTransitionError(f"Cannot cancel an event that is {current.status.value}")
        logger.info("Event %s cancelled by owner %s", eid, actor.user_id)
        return self._store.get_event(eid)

    def confirm_guest_list(self, event_id: str, actor: Actor) -> Event:
        """Lock the guest list. Only the owner confirms, and only a non-empty list."""
        eid = parse_event_id(event_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            resolve_access(event, actor).require_owner()
            if event.guest_list_confirmed:
                return event
            if not event.guests:
                raise InvalidTransitionError("Add at least one guest before confirming the list")
            self._store.update_event_fields(eid, guest_list_confirmed_at=self._clock())
        logger.info("Guest list for event %s confirmed", eid)
        return self._store.get_event(eid)

    def reopen_guest_list(self, event_id: str, actor: Actor) -> Event:
        if not actor.is_admin:
            raise PermissionDeniedError("Only administrators can reopen a guest list")
        eid = parse_event_id(event_id)
        with self._store.locked(eid) as event:
            event = require_event(event, eid)
            if not event.guest_list_confirmed:
                raise InvalidTransitionError("The guest list is not confirmed")
            self._store.update_event_fields(
                eid,
                guest_list_confirmed_at=None,
                guest_list_reopen_count=event.guest_list_reopen_count + 1,
            )
        logger.info("Guest list for event %s reopened by %s", eid, actor.user_id)
        return self._store.get_event(eid)
