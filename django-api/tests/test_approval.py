"""Tests for the admin approval workflow and event lifecycle.

Run with: pytest tests/test_approval.py -v
"""

from dataclasses import replace
from datetime import date, datetime
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
from django.db import OperationalError

from events.domain import ApprovalStatus, EventStatus
from events.domain.errors import (
    AlreadyFinalizedError,
    EventNotFoundError,
    InvalidIdError,
    InvalidTransitionError,
    PermissionDeniedError,
    RejectionNotesRequiredError,
    TransientPersistenceError,
)
from events.notifications import EVENT_APPROVED, EVENT_REJECTED
from events.permissions import Actor
from events.services.approval_workflow import ApprovalWorkflow
from events.services.collaboration_service import (
    CollaborationService,
    CollaboratorInput,
    GuestInput,
)
from events.services.event_lifecycle import EventLifecycle
from events.stores.memory_store import InMemoryEventStore

OWNER = Actor("owner-1")
ADMIN = Actor("admin-1", is_admin=True)
RIYADH = ZoneInfo("Asia/Riyadh")


class FlakyEventStore(InMemoryEventStore):
    """Fails approval writes for the listed events."""

    def __init__(self, failing=()):
        super().__init__()
        self.failing = set(failing)

    def transition_approval(self, event_id, expected, new, **changes):
        if event_id in self.failing:
            raise OperationalError("database is locked")
        return super().transition_approval(event_id, expected, new, **changes)


@pytest.fixture
def workflow(memory_store, notify) -> ApprovalWorkflow:
    return ApprovalWorkflow(memory_store, notify=notify)


@pytest.fixture
def lifecycle(memory_store) -> EventLifecycle:
    return EventLifecycle(memory_store)


class TestApprove:
    """pending -> approved is a one-way conditional move."""

    def test_approve_sets_admin_fields_and_notifies(self, workflow, memory_store, make_event, notified):
        event = make_event(memory_store)
        approved = workflow.approve(
            str(event.id),
            "admin-1",
            notes="Looks good",
            invitation_card_url="https://cdn.example.com/card.png",
        )
        assert approved.approval_status is ApprovalStatus.APPROVED
        assert approved.approved_by == "admin-1"
        assert approved.admin_notes == "Looks good"
        assert approved.invitation_card_url == "https://cdn.example.com/card.png"
        assert notified == [(EVENT_APPROVED, str(event.id), None)]

    def test_approving_twice_is_rejected(self, workflow, memory_store, make_event):
        event = make_event(memory_store)
        workflow.approve(str(event.id), "admin-1")
        with pytest.raises(AlreadyFinalizedError) as exc_info:
            workflow.approve(str(event.id), "admin-2")
        assert "approved" in exc_info.value.message
        assert memory_store.get_event(event.id).approved_by == "admin-1"

    def test_rejected_event_cannot_be_approved(self, workflow, memory_store, make_event):
        event = make_event(memory_store)
        workflow.reject(str(event.id), "admin-1", "Wrong date on the card")
        with pytest.raises(AlreadyFinalizedError):
            workflow.approve(str(event.id), "admin-1")

    def test_unknown_and_malformed_ids(self, workflow):
        with pytest.raises(EventNotFoundError):
            workflow.approve(str(uuid4()), "admin-1")
        with pytest.raises(InvalidIdError):
            workflow.approve("nope", "admin-1")

    def test_approval_does_not_touch_status(self, workflow, memory_store, make_event):
        event = make_event(memory_store)
        assert workflow.approve(str(event.id), "admin-1").status is EventStatus.UPCOMING


class TestReject:
    def test_reject_requires_notes(self, workflow, memory_store, make_event):
        event = make_event(memory_store)
        with pytest.raises(RejectionNotesRequiredError):
            workflow.reject(str(event.id), "admin-1", "   ")
        assert memory_store.get_event(event.id).approval_status is ApprovalStatus.PENDING

    def test_reject_records_notes_and_notifies(self, workflow, memory_store, make_event, notified):
        event = make_event(memory_store)
        rejected = workflow.reject(str(event.id), "admin-1", " Wrong date ")
        assert rejected.approval_status is ApprovalStatus.REJECTED
        assert rejected.admin_notes == "Wrong date"
        assert rejected.rejected_at is not None
        assert notified[-1] == (EVENT_REJECTED, str(event.id), None)


class TestBulkApprove:
    """Bulk approval reports one result per id."""

    def test_partial_success(self, workflow, memory_store, make_event):
        pending = make_event(memory_store)
        done = make_event(memory_store)
        workflow.approve(str(done.id), "admin-1")
        missing = str(uuid4())

        result = workflow.bulk_approve([str(pending.id), str(done.id), missing, "bad"], "admin-2")

        assert result.approved_count == 1
        assert result.failed_count == 3
        codes = {item.event_id: item.error_code for item in result.items}
        assert codes == {
            str(pending.id): None,
            str(done.id): "ALREADY_FINALIZED",
            missing: "EVENT_NOT_FOUND",
            "bad": "INVALID_ID",
        }

    def test_deliverables_allowed_after_approval(self, workflow, memory_store, make_event):
        event = make_event(memory_store)
        workflow.approve(str(event.id), "admin-1")
        updated = workflow.update_deliverables(
            str(event.id), "admin-1", qr_code_reader_url="https://cdn.example.com/qr"
        )
        assert updated.qr_code_reader_url == "https://cdn.example.com/qr"
        assert updated.approval_status is ApprovalStatus.APPROVED

    def test_storage_failure_on_one_id_keeps_the_rest(self, make_event, notify):
        store = FlakyEventStore()
        first, broken, last = (make_event(store) for _ in range(3))
        store.failing.add(broken.id)
        workflow = ApprovalWorkflow(store, notify=notify)

        result = workflow.bulk_approve([str(first.id), str(broken.id), str(last.id)], "admin-1")

        assert [item.approved for item in result.items] == [True, False, True]
        assert result.items[1].error_code == "TRANSIENT_PERSISTENCE"
        assert store.get_event(first.id).approval_status is ApprovalStatus.APPROVED
        assert store.get_event(broken.id).approval_status is ApprovalStatus.PENDING
        assert store.get_event(last.id).approval_status is ApprovalStatus.APPROVED

    def test_single_approve_storage_failure_is_retryable(self, make_event, notify):
        store = FlakyEventStore()
        event = make_event(store)
        store.failing.add(event.id)
        workflow = ApprovalWorkflow(store, notify=notify)

        with pytest.raises(TransientPersistenceError):
            workflow.approve(str(event.id), "admin-1")

        store.failing.clear()
        assert workflow.approve(str(event.id), "admin-1").approval_status is ApprovalStatus.APPROVED


class TestLifecycle:
    """Status moves: upcoming -> done | cancelled."""

    def test_sweep_only_moves_finished_upcoming_events(self, lifecycle, memory_store, make_event, details):
        yesterday = replace(details, event_date=date(2026, 5, 1))
        finished = make_event(memory_store, details=yesterday)
        later_today = make_event(
            memory_store, details=replace(details, event_date=date(2026, 5, 2), end_time="23:30")
        )
        cancelled = make_event(memory_store, details=yesterday, status=EventStatus.CANCELLED)

        now = datetime(2026, 5, 2, 12, 0, tzinfo=RIYADH)
        moved = lifecycle.advance_finished(now)

        assert moved == [finished.id]
        assert memory_store.get_event(finished.id).status is EventStatus.DONE
        assert memory_store.get_event(later_today.id).status is EventStatus.UPCOMING
        assert memory_store.get_event(cancelled.id).status is EventStatus.CANCELLED

    def test_owner_cancels_once(self, lifecycle, memory_store, make_event):
        event = make_event(memory_store)
        cancelled = lifecycle.cancel(str(event.id), OWNER)
        assert cancelled.status is EventStatus.CANCELLED
        assert cancelled.approval_status is ApprovalStatus.PENDING
        with pytest.raises(InvalidTransitionError):
            lifecycle.cancel(str(event.id), OWNER)

    def test_only_owner_cancels(self, lifecycle, memory_store, make_event):
        event = make_event(memory_store)
        with pytest.raises(PermissionDeniedError):
            lifecycle.cancel(str(event.id), ADMIN)

    def test_confirm_and_reopen_guest_list(self, lifecycle, memory_store, make_event, notify):
        event = make_event(memory_store)
        with pytest.raises(InvalidTransitionError):
            lifecycle.confirm_guest_list(str(event.id), OWNER)

        CollaborationService(memory_store, notify=notify).record_guest_added(
            str(event.id), OWNER, GuestInput(name="Sara", phone="0501234567", party_size=2)
        )
        assert lifecycle.confirm_guest_list(str(event.id), OWNER).guest_list_confirmed

        with pytest.raises(PermissionDeniedError):
            lifecycle.reopen_guest_list(str(event.id), OWNER)
        reopened = lifecycle.reopen_guest_list(str(event.id), ADMIN)
        assert not reopened.guest_list_confirmed
        assert reopened.guest_list_reopen_count == 1

    def test_list_for_user_includes_collaborations(self, lifecycle, memory_store, make_event, notify):
        own = make_event(memory_store, user_id="helper-1")
        other = make_event(memory_store)
        make_event(memory_store, user_id="someone-else")
        CollaborationService(memory_store, notify=notify).add_collaborator(
            str(other.id),
            OWNER,
            CollaboratorInput(user_id="helper-1", name="Faisal", email="f@example.com", allocated_invites=5),
        )

        ids = {e.id for e in lifecycle.list_for_user(Actor("helper-1"))}
        assert ids == {own.id, other.id}
