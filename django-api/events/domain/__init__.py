from events.domain.allocation import AllocationShare, InviteAllocator
from events.domain.models import Collaborator, Event, Guest
from events.domain.value_objects import (
    ApprovalStatus,
    Capacity,
    CollaboratorId,
    CollaboratorPermissions,
    EventDetails,
    EventId,
    EventStatus,
    GuestId,
    Money,
    PackageType,
    PhoneNumber,
    RefundableSlots,
    RsvpStatus,
)

__all__ = [
    "Event",
    "Collaborator",
    "Guest",
    "EventId",
    "CollaboratorId",
    "GuestId",
    "Money",
    "Capacity",
    "PackageType",
    "PhoneNumber",
    "EventStatus",
    "ApprovalStatus",
    "RsvpStatus",
    "RefundableSlots",
    "CollaboratorPermissions",
    "EventDetails",
    "InviteAllocator",
    "AllocationShare",
]
