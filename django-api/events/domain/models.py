"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from events.domain.value_objects import (
    ApprovalStatus,
    CollaboratorId,
    CollaboratorPermissions,
    EventDetails,
    EventId,
    EventStatus,
    GuestId,
    Money,
    PackageType,
    RefundableSlots,
    RsvpStatus,
)


@dataclass(frozen=True)
class Collaborator:
    """A person holding a sub-allocation of an event's invite budget."""

    id: CollaboratorId
    event_id: EventId
    user_id: str
    name: str
    email: str
    phone: str
    allocated_invites: int
    used_invites: int
    permissions: CollaboratorPermissions
    added_by: str
    added_at: datetime

    @property
    def remaining_invites(self) -> int:
        return self.allocated_invites - self.used_invites


@dataclass(frozen=True)
class Guest:
    """A guest on an event's list.

    `collaborator_id` is None when the owner added the guest.
    `party_size` counts the guest plus everyone accompanying them.
    """

    id: GuestId
    event_id: EventId
    name: str
    phone: str
    party_size: int
    collaborator_id: CollaboratorId | None
    added_by: str
    rsvp_status: RsvpStatus = RsvpStatus.PENDING
    credits_used: int = 0
    whatsapp_message_sent: bool = False
    whatsapp_sent_at: datetime | None = None
    added_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.rsvp_status is not RsvpStatus.DECLINED


@dataclass(frozen=True)
class Event:
    """Domain representation of a paid invitation campaign."""

    id: EventId
    user_id: str
    design_id: str
    package_type: PackageType
    details: EventDetails
    total_price: Money
    invite_budget: int
    refundable_slots: RefundableSlots
    payment_completed_at: datetime
    order_id: UUID | None = None
    cart_item_id: UUID | None = None
    status: EventStatus = EventStatus.UPCOMING
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    admin_notes: str = ""
    invitation_card_url: str = ""
    qr_code_reader_url: str = ""
    approved_by: str = ""
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    guest_list_confirmed_at: datetime | None = None
    guest_list_reopen_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    collaborators: tuple[Collaborator, ...] = field(default=())
    guests: tuple[Guest, ...] = field(default=())

    @property
    def guest_list_confirmed(self) -> bool:
        return self.guest_list_confirmed_at is not None

    def collaborator_for_user(self, user_id: str) -> Collaborator | None:
        return next((c for c in self.collaborators if c.user_id == user_id), None)

    def collaborator(self, collaborator_id: CollaboratorId) -> Collaborator | None:
        return next((c for c in self.collaborators if c.id == collaborator_id), None)

    def guest(self, guest_id: GuestId) -> Guest | None:
        return next((g for g in self.guests if g.id == guest_id), None)
