"""Event-level access resolution.

Authentication happens outside this app; callers hand in an `Actor` built
from the authenticated principal.
"""

from dataclasses import dataclass

from events.domain import Collaborator, Event, Guest
from events.domain.errors import EventNotFoundError, PermissionDeniedError


@dataclass(frozen=True)
class Actor:
    user_id: str
    is_admin: bool = False


@dataclass(frozen=True)
class EventAccess:
    """What one actor may do on one event."""

    actor: Actor
    is_owner: bool
    collaborator: Collaborator | None = None

    @property
    def can_view_full_event(self) -> bool:
        if self.is_owner or self.actor.is_admin:
            return True
        return self.collaborator is not None and self.collaborator.permissions.can_view_full_event

    def can_see_guest(self, guest: Guest) -> bool:
        if self.can_view_full_event:
            return True
        return self.collaborator is not None and guest.collaborator_id == self.collaborator.id

    def require_owner(self) -> None:
        if not self.is_owner:
            raise PermissionDeniedError("Only the event owner can do this")

    def _granted(self, permission: str) -> bool:
        if self.is_owner:
            return True
        return self.collaborator is not None and getattr(self.collaborator.permissions, permission)

    def require_can_add_guests(self) -> None:
        if not self._granted("can_add_guests"):
            raise PermissionDeniedError("You do not have permission to add guests")

    def require_can_edit(self, guest: Guest) -> None:
        if not (self._granted("can_edit_guests") and self.can_see_guest(guest)):
            raise PermissionDeniedError("You do not have permission to edit this guest")

    def require_can_delete(self, guest: Guest) -> None:
        if not (self._granted("can_delete_guests") and self.can_see_guest(guest)):
            raise PermissionDeniedError("You do not have permission to delete this guest")


def resolve_access(event: Event, actor: Actor) -> EventAccess:
    """Resolve the actor's role on the event.

    Admins get read access to every event but manage guests only as owner
    or collaborator. Anyone else is told the event does not exist.
    """
    if event.user_id == actor.user_id:
        return EventAccess(actor=actor, is_owner=True)
    collaborator = event.collaborator_for_user(actor.user_id)
    if collaborator is not None:
        return EventAccess(actor=actor, is_owner=False, collaborator=collaborator)
    if actor.is_admin:
        return EventAccess(actor=actor, is_owner=False)
    raise EventNotFoundError(str(event.id))


def actor_for(user) -> Actor:
    """Build the actor for an authenticated Django user."""
    return Actor(user_id=str(user.pk), is_admin=bool(user.is_staff))
