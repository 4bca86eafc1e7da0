"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
User identifiers are opaque strings supplied by the external auth layer.
"""

import uuid

from django.db import models
from django.db.models import F, Q


class Event(models.Model):
    """Persistence model for paid invitation events."""

    PACKAGE_CHOICES = [("classic", "Classic"), ("premium", "Premium"), ("vip", "VIP")]
    STATUS_CHOICES = [("upcoming", "Upcoming"), ("cancelled", "Cancelled"), ("done", "Done")]
    APPROVAL_CHOICES = [("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    design_id = models.CharField(max_length=64)
    package_type = models.CharField(max_length=10, choices=PACKAGE_CHOICES)

    event_name = models.CharField(max_length=100, blank=True)
    event_date = models.DateField()
    start_time = models.CharField(max_length=5)
    end_time = models.CharField(max_length=5)
    event_location = models.CharField(max_length=200)
    host_name = models.CharField(max_length=100)
    invitation_text = models.TextField()
    invite_count = models.PositiveIntegerField()
    additional_cards = models.PositiveIntegerField(default=0)
    gate_supervisors = models.PositiveIntegerField(default=0)
    extra_hours = models.PositiveIntegerField(default=0)
    fast_delivery = models.BooleanField(default=False)

    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    invite_budget = models.PositiveIntegerField()
    refundable_slots_total = models.PositiveIntegerField(default=0)
    refundable_slots_used = models.PositiveIntegerField(default=0)
    refundable_slots_reassigned = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="upcoming", db_index=True)
    approval_status = models.CharField(
        max_length=10, choices=APPROVAL_CHOICES, default="pending", db_index=True
    )
    admin_notes = models.TextField(blank=True)
    invitation_card_url = models.URLField(max_length=500, blank=True)
    qr_code_reader_url = models.URLField(max_length=500, blank=True)
    approved_by = models.CharField(max_length=64, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    guest_list_confirmed_at = models.DateTimeField(null=True, blank=True)
    guest_list_reopen_count = models.PositiveIntegerField(default=0)

    order_id = models.UUIDField(null=True, blank=True, db_index=True)
    cart_item_id = models.UUIDField(null=True, blank=True, unique=True)
    payment_completed_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "status"]),
            models.Index(fields=["event_date", "status"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(refundable_slots_used__lte=F("refundable_slots_total"))
                & Q(refundable_slots_reassigned__lte=F("refundable_slots_used")),
                name="event_refundable_slots_consistent",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.host_name} - {self.event_date}"


class Collaborator(models.Model):
    """Persistence model for an event collaborator and their invite share."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="collaborators")
    user_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=100)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)
    allocated_invites = models.PositiveIntegerField()
    used_invites = models.PositiveIntegerField(default=0)
    can_add_guests = models.BooleanField(default=True)
    can_edit_guests = models.BooleanField(default=False)
    can_delete_guests = models.BooleanField(default=False)
    can_view_full_event = models.BooleanField(default=False)
    added_by = models.CharField(max_length=64)
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["added_at"]
        constraints = [
            models.UniqueConstraint(fields=["event", "user_id"], name="uniq_collaborator_per_event"),
            models.CheckConstraint(
                condition=Q(used_invites__lte=F("allocated_invites")),
                name="collaborator_used_within_allocation",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.used_invites}/{self.allocated_invites})"


class Guest(models.Model):
    """Persistence model for a guest on an event's list."""

    RSVP_CHOICES = [("pending", "Pending"), ("confirmed", "Confirmed"), ("declined", "Declined")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="guests")
    collaborator = models.ForeignKey(
        Collaborator, on_delete=models.SET_NULL, null=True, blank=True, related_name="guests"
    )
    name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20)
    party_size = models.PositiveSmallIntegerField()
    rsvp_status = models.CharField(max_length=10, choices=RSVP_CHOICES, default="pending")
    credits_used = models.PositiveSmallIntegerField(default=0)
    whatsapp_message_sent = models.BooleanField(default=False)
    whatsapp_sent_at = models.DateTimeField(null=True, blank=True)
    added_by = models.CharField(max_length=64)
    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["added_at"]
        indexes = [
            models.Index(fields=["event", "collaborator"]),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "phone"], name="uniq_guest_phone_per_event"),
        ]

    def __str__(self) -> str:
        return f"{self.name} x{self.party_size}"
