"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
Every mutation that depends on current allocation state must run inside
`locked(event_id)`, which serialises writers per event and never blocks
other events.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Any

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


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def create_event(self, event: Event) -> Event:
        """Persist a freshly materialized event.

        Raises:
            DuplicateEventError: If an event already exists for the cart item.
        """
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event with its collaborators and guests, or None."""
        ...

    @abstractmethod
    def locked(self, event_id: EventId) -> AbstractContextManager[Event | None]:
        """Lock the event for the duration of the block and yield its current state."""
        ...

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Event]:
        """Return events the user owns or collaborates on, newest first."""
        ...

    @abstractmethod
    def list_by_approval_status(self, approval_status: ApprovalStatus) -> list[Event]:
        """Return events in the given approval state, oldest first."""
        ...

    @abstractmethod
    def list_upcoming_on_or_before(self, day: date) -> list[Event]:
        """Return upcoming events whose date is on or before `day`."""
        ...

    @abstractmethod
    def transition_approval(
        self,
        event_id: EventId,
        expected: ApprovalStatus,
        new: ApprovalStatus,
        **changes: Any,
    ) -> bool:
        """Move approval_status from `expected` to `new` and apply `changes`.

        Returns False and changes nothing when the current state is not `expected`.
        """
        ...

    @abstractmethod
    def transition_status(self, event_id: EventId, expected: EventStatus, new: EventStatus) -> bool:
        """Conditional status move; False when the event is not in `expected`."""
        ...

    @abstractmethod
    def update_event_fields(self, event_id: EventId, **changes: Any) -> None:
        """Overwrite plain event fields (deliverables, guest list confirmation)."""
        ...

    @abstractmethod
    def save_refundable_slots(self, event_id: EventId, slots: RefundableSlots) -> None:
        ...

    @abstractmethod
    def add_collaborator(self, collaborator: Collaborator) -> Collaborator:
        ...

    @abstractmethod
    def update_collaborator(self, collaborator: Collaborator) -> Collaborator:
        """Persist allocation and permissions; usage is only changed by increments."""
        ...

    @abstractmethod
    def delete_collaborator(self, collaborator_id: CollaboratorId) -> None:
        """Delete the collaborator; its guests become owner-attributed."""
        ...

    @abstractmethod
    def increment_collaborator_usage(self, collaborator_id: CollaboratorId, delta: int) -> bool:
        """Atomically apply `used += delta` only if `0 <= used + delta <= allocated`.

        Returns False and changes nothing when the bound would be violated.
        """
        ...

    @abstractmethod
    def add_guest(self, guest: Guest) -> Guest:
        ...

    @abstractmethod
    def update_guest(self, guest: Guest) -> Guest:
        ...

    @abstractmethod
    def delete_guest(self, guest_id: GuestId) -> None:
        ...

    @abstractmethod
    def mark_guest_whatsapp_sent(self, guest_id: GuestId, sent_at: datetime) -> bool:
        """Set the WhatsApp flag once; False when it was already set."""
        ...
