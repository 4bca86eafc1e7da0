"""Identifier parsing shared by the event services."""

from events.domain import CollaboratorId, Event, EventId, GuestId
from events.domain.errors import (
    CollaboratorNotFoundError,
    EventNotFoundError,
    GuestNotFoundError,
    InvalidIdError,
)
from events.domain.models import Collaborator, Guest


def parse_event_id(value: str) -> EventId:
    try:
        return EventId.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError("event") from exc


def parse_collaborator_id(value: str) -> CollaboratorId:
    try:
        return CollaboratorId.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError("collaborator") from exc


def parse_guest_id(value: str) -> GuestId:
    try:
        return GuestId.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError("guest") from exc


def require_event(event: Event | None, event_id: EventId) -> Event:
    if event is None:
        raise EventNotFoundError(str(event_id))
    return event


def require_collaborator(event: Event, collaborator_id: CollaboratorId) -> Collaborator:
    collaborator = event.collaborator(collaborator_id)
    if collaborator is None:
        raise CollaboratorNotFoundError(str(collaborator_id))
    return collaborator


def require_guest(event: Event, guest_id: GuestId) -> Guest:
    guest = event.guest(guest_id)
    if guest is None:
        raise GuestNotFoundError(str(guest_id))
    return guest
