"""Django ORM implementation of the EventStore.

Per-event locking uses `select_for_update` on the event row inside
`transaction.atomic`. Usage counters and state transitions are conditional
`UPDATE`s so a lost race shows up as a zero row count instead of an overwrite.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from events import models as orm
from events.domain import (
    ApprovalStatus,
    Collaborator,
    CollaboratorId,
    CollaboratorPermissions,
    Event,
    EventDetails,
    EventId,
    EventStatus,
    Guest,
    GuestId,
    Money,
    PackageType,
    RefundableSlots,
    RsvpStatus,
)
from events.domain.errors import DuplicateEventError
from events.stores.interfaces import EventStore


def _to_collaborator(obj: orm.Collaborator) -> Collaborator:
    return Collaborator(
        id=CollaboratorId(obj.id),
        event_id=EventId(obj.event_id),
        user_id=obj.user_id,
        name=obj.name,
        email=obj.email,
        phone=obj.phone,
        allocated_invites=obj.allocated_invites,
        used_invites=obj.used_invites,
        permissions=CollaboratorPermissions(
            can_add_guests=obj.can_add_guests,
            can_edit_guests=obj.can_edit_guests,
            can_delete_guests=obj.can_delete_guests,
            can_view_full_event=obj.can_view_full_event,
        ),
        added_by=obj.added_by,
        added_at=obj.added_at,
    )


def _to_guest(obj: orm.Guest) -> Guest:
    return Guest(
        id=GuestId(obj.id),
        event_id=EventId(obj.event_id),
        name=obj.name,
        phone=obj.phone,
        party_size=obj.party_size,
        collaborator_id=CollaboratorId(obj.collaborator_id) if obj.collaborator_id else None,
        added_by=obj.added_by,
        rsvp_status=RsvpStatus(obj.rsvp_status),
        credits_used=obj.credits_used,
        whatsapp_message_sent=obj.whatsapp_message_sent,
        whatsapp_sent_at=obj.whatsapp_sent_at,
        added_at=obj.added_at,
        updated_at=obj.updated_at,
    )


def _to_event(obj: orm.Event) -> Event:
    details = EventDetails(
        event_date=obj.event_date,
        start_time=obj.start_time,
        end_time=obj.end_time,
        event_location=obj.event_location,
        host_name=obj.host_name,
        invitation_text=obj.invitation_text,
        invite_count=obj.invite_count,
        additional_cards=obj.additional_cards,
        gate_supervisors=obj.gate_supervisors,
        extra_hours=obj.extra_hours,
        fast_delivery=obj.fast_delivery,
        event_name=obj.event_name,
    )
    return Event(
        id=EventId(obj.id),
        user_id=obj.user_id,
        design_id=obj.design_id,
        package_type=PackageType(obj.package_type),
        details=details,
        total_price=Money(obj.total_price),
        invite_budget=obj.invite_budget,
        refundable_slots=RefundableSlots(
            total=obj.refundable_slots_total,
            used=obj.refundable_slots_used,
            reassigned=obj.refundable_slots_reassigned,
        ),
        payment_completed_at=obj.payment_completed_at,
        order_id=obj.order_id,
        cart_item_id=obj.cart_item_id,
        status=EventStatus(obj.status),
        approval_status=ApprovalStatus(obj.approval_status),
        admin_notes=obj.admin_notes,
        invitation_card_url=obj.invitation_card_url,
        qr_code_reader_url=obj.qr_code_reader_url,
        approved_by=obj.approved_by,
        approved_at=obj.approved_at,
        rejected_at=obj.rejected_at,
        guest_list_confirmed_at=obj.guest_list_confirmed_at,
        guest_list_reopen_count=obj.guest_list_reopen_count,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
        collaborators=tuple(_to_collaborator(c) for c in obj.collaborators.all()),
        guests=tuple(_to_guest(g) for g in obj.guests.all()),
    )


class DjangoEventStore(EventStore):
    """PostgreSQL-backed event store using Django ORM."""

    def _queryset(self):
        return orm.Event.objects.prefetch_related("collaborators", "guests")

    def create_event(self, event: Event) -> Event:
        details = event.details
        try:
            with transaction.atomic():
                obj = orm.Event.objects.create(
                    id=event.id.value,
                    user_id=event.user_id,
                    design_id=event.design_id,
                    package_type=event.package_type.value,
                    event_name=details.event_name,
                    event_date=details.event_date,
                    start_time=details.start_time,
                    end_time=details.end_time,
                    event_location=details.event_location,
                    host_name=details.host_name,
                    invitation_text=details.invitation_text,
                    invite_count=details.invite_count,
                    additional_cards=details.additional_cards,
                    gate_supervisors=details.gate_supervisors,
                    extra_hours=details.extra_hours,
                    fast_delivery=details.fast_delivery,
                    total_price=event.total_price.amount,
                    invite_budget=event.invite_budget,
                    refundable_slots_total=event.refundable_slots.total,
                    refundable_slots_used=event.refundable_slots.used,
                    refundable_slots_reassigned=event.refundable_slots.reassigned,
                    status=event.status.value,
                    approval_status=event.approval_status.value,
                    order_id=event.order_id,
                    cart_item_id=event.cart_item_id,
                    payment_completed_at=event.payment_completed_at,
                )
        except IntegrityError as exc:
            raise DuplicateEventError(str(event.cart_item_id)) from exc
        return _to_event(obj)

    def get_event(self, event_id: EventId) -> Event | None:
        obj = self._queryset().filter(pk=event_id.value).first()
        return _to_event(obj) if obj else None

    @contextmanager
    def locked(self, event_id: EventId) -> Iterator[Event | None]:
        with transaction.atomic():
            obj = orm.Event.objects.select_for_update().filter(pk=event_id.value).first()
            yield _to_event(obj) if obj else None

    def list_for_user(self, user_id: str) -> list[Event]:
        qs = (
            self._queryset()
            .filter(Q(user_id=user_id) | Q(collaborators__user_id=user_id))
            .distinct()
            .order_by("-created_at")
        )
        return [_to_event(obj) for obj in qs]

    def list_by_approval_status(self, approval_status: ApprovalStatus) -> list[Event]:
        qs = self._queryset().filter(approval_status=approval_status.value).order_by("created_at")
        return [_to_event(obj) for obj in qs]

    def list_upcoming_on_or_before(self, day: date) -> list[Event]:
        qs = self._queryset().filter(status=EventStatus.UPCOMING.value, event_date__lte=day)
        return [_to_event(obj) for obj in qs]

    def transition_approval(
        self,
        event_id: EventId,
        expected: ApprovalStatus,
        new: ApprovalStatus,
        **changes: Any,
    ) -> bool:
        with transaction.atomic():
            updated = orm.Event.objects.filter(
                pk=event_id.value, approval_status=expected.value
            ).update(approval_status=new.value, updated_at=timezone.now(), **changes)
        return updated == 1

    def transition_status(self, event_id: EventId, expected: EventStatus, new: EventStatus) -> bool:
        updated = orm.Event.objects.filter(pk=event_id.value, status=expected.value).update(
            status=new.value, updated_at=timezone.now()
        )
        return updated == 1

    def update_event_fields(self, event_id: EventId, **changes: Any) -> None:
        orm.Event.objects.filter(pk=event_id.value).update(updated_at=timezone.now(), **changes)

    def save_refundable_slots(self, event_id: EventId, slots: RefundableSlots) -> None:
        orm.Event.objects.filter(pk=event_id.value).update(
            refundable_slots_total=slots.total,
            refundable_slots_used=slots.used,
            refundable_slots_reassigned=slots.reassigned,
            updated_at=timezone.now(),
        )

    def add_collaborator(self, collaborator: Collaborator) -> Collaborator:
        perms = collaborator.permissions
        obj = orm.Collaborator.objects.create(
            id=collaborator.id.value,
            event_id=collaborator.event_id.value,
            user_id=collaborator.user_id,
            name=collaborator.name,
            email=collaborator.email,
            phone=collaborator.phone,
            allocated_invites=collaborator.allocated_invites,
            used_invites=collaborator.used_invites,
            can_add_guests=perms.can_add_guests,
            can_edit_guests=perms.can_edit_guests,
            can_delete_guests=perms.can_delete_guests,
            can_view_full_event=perms.can_view_full_event,
            added_by=collaborator.added_by,
        )
        return _to_collaborator(obj)

    def update_collaborator(self, collaborator: Collaborator) -> Collaborator:
        perms = collaborator.permissions
        orm.Collaborator.objects.filter(pk=collaborator.id.value).update(
            allocated_invites=collaborator.allocated_invites,
            can_add_guests=perms.can_add_guests,
            can_edit_guests=perms.can_edit_guests,
            can_delete_guests=perms.can_delete_guests,
            can_view_full_event=perms.can_view_full_event,
        )
        return _to_collaborator(orm.Collaborator.objects.get(pk=collaborator.id.value))

    def delete_collaborator(self, collaborator_id: CollaboratorId) -> None:
        orm.Collaborator.objects.filter(pk=collaborator_id.value).delete()

    def increment_collaborator_usage(self, collaborator_id: CollaboratorId, delta: int) -> bool:
        qs = orm.Collaborator.objects.filter(pk=collaborator_id.value)
        if delta >= 0:
            qs = qs.filter(used_invites__lte=F("allocated_invites") - delta)
        else:
            qs = qs.filter(used_invites__gte=-delta)
        return qs.update(used_invites=F("used_invites") + delta) == 1

    def add_guest(self, guest: Guest) -> Guest:
        obj = orm.Guest.objects.create(
            id=guest.id.value,
            event_id=guest.event_id.value,
            collaborator_id=guest.collaborator_id.value if guest.collaborator_id else None,
            name=guest.name,
            phone=guest.phone,
            party_size=guest.party_size,
            rsvp_status=guest.rsvp_status.value,
            credits_used=guest.credits_used,
            added_by=guest.added_by,
        )
        return _to_guest(obj)

    def update_guest(self, guest: Guest) -> Guest:
        orm.Guest.objects.filter(pk=guest.id.value).update(
            collaborator_id=guest.collaborator_id.value if guest.collaborator_id else None,
            name=guest.name,
            phone=guest.phone,
            party_size=guest.party_size,
            rsvp_status=guest.rsvp_status.value,
            credits_used=guest.credits_used,
            updated_at=timezone.now(),
        )
        return _to_guest(orm.Guest.objects.get(pk=guest.id.value))

    def delete_guest(self, guest_id: GuestId) -> None:
        orm.Guest.objects.filter(pk=guest_id.value).delete()

    def mark_guest_whatsapp_sent(self, guest_id: GuestId, sent_at: datetime) -> bool:
        updated = orm.Guest.objects.filter(pk=guest_id.value, whatsapp_message_sent=False).update(
            whatsapp_message_sent=True, whatsapp_sent_at=sent_at, updated_at=sent_at
        )
        return updated == 1
