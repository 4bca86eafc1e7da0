"""Domain error codes for the events module."""

from enum import Enum

from common.errors import DomainError


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    COLLABORATOR_NOT_FOUND = "COLLABORATOR_NOT_FOUND"
    GUEST_NOT_FOUND = "GUEST_NOT_FOUND"
    INVALID_ID = "INVALID_ID"
    INVALID_GUEST = "INVALID_GUEST"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ALREADY_FINALIZED = "ALREADY_FINALIZED"
    REJECTION_NOTES_REQUIRED = "REJECTION_NOTES_REQUIRED"
    ALLOCATION_EXCEEDS_BUDGET = "ALLOCATION_EXCEEDS_BUDGET"
    ALLOCATION_BELOW_USAGE = "ALLOCATION_BELOW_USAGE"
    INVALID_ALLOCATION = "INVALID_ALLOCATION"
    COLLABORATOR_LIMIT = "COLLABORATOR_LIMIT"
    DUPLICATE_COLLABORATOR = "DUPLICATE_COLLABORATOR"
    DUPLICATE_GUEST = "DUPLICATE_GUEST"
    GUEST_LIST_LOCKED = "GUEST_LIST_LOCKED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    TRANSIENT_PERSISTENCE = "TRANSIENT_PERSISTENCE"


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(code=ErrorCode.EVENT_NOT_FOUND, message="Event not found")
        self.event_id = event_id


class CollaboratorNotFoundError(DomainError):
    def __init__(self, collaborator_id: str) -> None:
        super().__init__(code=ErrorCode.COLLABORATOR_NOT_FOUND, message="Collaborator not found")
        self.collaborator_id = collaborator_id


class GuestNotFoundError(DomainError):
    def __init__(self, guest_id: str) -> None:
        super().__init__(code=ErrorCode.GUEST_NOT_FOUND, message="Guest not found")
        self.guest_id = guest_id


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str = "event") -> None:
        super().__init__(code=ErrorCode.INVALID_ID, message=f"Invalid {kind} ID format")


class InvalidGuestError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_GUEST, message=message)


class InvalidTransitionError(DomainError):
    """Raised when an event status change is not allowed from its current state."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_TRANSITION, message=message)


class AlreadyFinalizedError(DomainError):
    """Raised when approving or rejecting an event that is no longer pending."""

    def __init__(self, event_id: str, approval_status: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_FINALIZED,
            message=f"Event is already {approval_status}",
        )
        self.event_id = event_id


class RejectionNotesRequiredError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.REJECTION_NOTES_REQUIRED,
            message="A rejection reason is required",
        )


class AllocationExceedsBudgetError(DomainError):
    """Raised when a requested allocation does not fit in the remaining budget."""

    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(
            code=ErrorCode.ALLOCATION_EXCEEDS_BUDGET,
            message=f"Allocation of {requested} exceeds remaining budget of {max(remaining, 0)}",
        )
        self.requested = requested
        self.remaining = max(remaining, 0)


class AllocationBelowUsageError(DomainError):
    def __init__(self, requested: int, used: int) -> None:
        super().__init__(
            code=ErrorCode.ALLOCATION_BELOW_USAGE,
            message=f"Allocation of {requested} is below the {used} invites already used",
        )
        self.requested = requested
        self.used = used


class InvalidAllocationError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ALLOCATION,
            message="Allocated invites must be a non-negative whole number",
        )


class CollaboratorLimitError(DomainError):
    def __init__(self, package_type: str, limit: int) -> None:
        super().__init__(
            code=ErrorCode.COLLABORATOR_LIMIT,
            message=f"The {package_type} package allows at most {limit} collaborators",
        )


class DuplicateCollaboratorError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_COLLABORATOR,
            message="This user is already a collaborator on the event",
        )


class DuplicateGuestError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_GUEST,
            message="A guest with this phone number is already on the list",
        )


class GuestListLockedError(DomainError):
    def __init__(
        self, message: str = "The guest list has been confirmed and can no longer change"
    ) -> None:
        super().__init__(code=ErrorCode.GUEST_LIST_LOCKED, message=message)


class PermissionDeniedError(DomainError):
    def __init__(self, message: str = "You do not have permission for this action") -> None:
        super().__init__(code=ErrorCode.PERMISSION_DENIED, message=message)


class DuplicateEventError(DomainError):
    """Raised when a cart item has already been materialized into an event."""

    def __init__(self, cart_item_id: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_EVENT,
            message="An event already exists for this cart item",
        )
        self.cart_item_id = cart_item_id


class TransientPersistenceError(DomainError):
    """Storage failed while writing the event; nothing changed and the call can be retried."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.TRANSIENT_PERSISTENCE,
            message="Temporary storage failure, please retry",
        )
        self.event_id = event_id
