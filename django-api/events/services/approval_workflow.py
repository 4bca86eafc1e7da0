"""Admin approval state machine: pending -> approved | rejected.

Both transitions are conditional writes on `approval_status='pending'`, so
two admins acting at once cannot both succeed.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from django.db import DatabaseError
from django.utils import timezone

from common.errors import DomainError
from events.domain import ApprovalStatus, Event, EventId
from events.domain.errors import (
    AlreadyFinalizedError,
    RejectionNotesRequiredError,
    TransientPersistenceError,
)
from events.notifications import EVENT_APPROVED, EVENT_REJECTED
from events.services.lookups import parse_event_id, require_event
from events.stores.interfaces import EventStore
from events.tasks import enqueue_notification

logger = logging.getLogger("events")


@dataclass(frozen=True)
class BulkApprovalItem:
    event_id: str
    approved: bool
    error_code: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class BulkApprovalResult:
    items: tuple[BulkApprovalItem, ...]

    @property
    def approved_count(self) -> int:
        return sum(1 for item in self.items if item.approved)

    @property
    def failed_count(self) -> int:
        return len(self.items) - self.approved_count


class ApprovalWorkflow:
    def __init__(
        self,
        store: EventStore,
        notify: Callable[..., None] = enqueue_notification,
        clock: Callable = timezone.now,
    ) -> None:
        self._store = store
        self._notify = notify
        self._clock = clock

    def list_pending(self) -> list[Event]:
        return self._store.list_by_approval_status(ApprovalStatus.PENDING)

    def approve(
        self,
        event_id: str,
        admin_id: str,
        notes: str | None = None,
        invitation_card_url: str | None = None,
        qr_code_reader_url: str | None = None,
    ) -> Event:
        """Approve a pending event.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            AlreadyFinalizedError: If the event is no longer pending.
            TransientPersistenceError: If storage fails mid-write; safe to retry.
        """
        eid = parse_event_id(event_id)
        changes = {"approved_by": admin_id, "approved_at": self._clock()}
        if notes:
            changes["admin_notes"] = notes
        if invitation_card_url:
            changes["invitation_card_url"] = invitation_card_url
        if qr_code_reader_url:
            changes["qr_code_reader_url"] = qr_code_reader_url

        self._transition(eid, ApprovalStatus.APPROVED, changes)
        logger.info("Event %s approved by %s", eid, admin_id)
        self._notify(EVENT_APPROVED, eid)
        return self._store.get_event(eid)

    def reject(self, event_id: str, admin_id: str, notes: str) -> Event:
        """Reject a pending event. The notes are shown to the owner."""
        eid = parse_event_id(event_id)
        if not notes or not notes.strip():
            raise RejectionNotesRequiredError()

        changes = {"admin_notes": notes.strip(), "rejected_at": self._clock()}
        self._transition(eid, ApprovalStatus.REJECTED, changes)
        logger.info("Event %s rejected by %s", eid, admin_id)
        self._notify(EVENT_REJECTED, eid)
        return self._store.get_event(eid)

    def bulk_approve(
        self, event_ids: Iterable[str], admin_id: str, notes: str | None = None
    ) -> BulkApprovalResult:
        """Approve each id on its own; one id failing never stops or undoes the rest."""
        items = []
        for event_id in event_ids:
            try:
                self.approve(event_id, admin_id, notes=notes)
            except DomainError as exc:
                items.append(
                    BulkApprovalItem(str(event_id), False, exc.code.value, exc.message)
                )
            else:
                items.append(BulkApprovalItem(str(event_id), True))
        result = BulkApprovalResult(items=tuple(items))
        logger.info(
            "Bulk approval by %s: %s approved, %s failed",
            admin_id,
            result.approved_count,
            result.failed_count,
        )
        return result

    def update_deliverables(
        self,
        event_id: str,
        admin_id: str,
        invitation_card_url: str | None = None,
        qr_code_reader_url: str | None = None,
        notes: str | None = None,
    ) -> Event:
        """Update admin-authored fields; allowed in any approval state."""
        eid = parse_event_id(event_id)
        require_event(self._store.get_event(eid), eid)
        changes = {}
        if invitation_card_url is not None:
            changes["invitation_card_url"] = invitation_card_url
        if qr_code_reader_url is not None:
            changes["qr_code_reader_url"] = qr_code_reader_url
        if notes is not None:
            changes["admin_notes"] = notes
        if changes:
            self._store.update_event_fields(eid, **changes)
            logger.info("Event %s deliverables updated by %s", eid, admin_id)
        return self._store.get_event(eid)

    def _transition(self, eid: EventId, new: ApprovalStatus, changes: dict) -> None:
        try:
            moved = self._store.transition_approval(eid, ApprovalStatus.PENDING, new, **changes)
        except DatabaseError as exc:
            logger.exception("Storage failure moving event %s to %s", eid, new.value)
            raise TransientPersistenceError(str(eid)) from exc
        if moved:
            return
        event = require_event(self._store.get_event(eid), eid)
        raise AlreadyFinalizedError(str(eid), event.approval_status.value)
