"""Serializers for transforming domain models to API responses and parsing input.

Output serializers read attributes straight off the frozen domain dataclasses.
"""

from rest_framework import serializers


class PermissionsSerializer(serializers.Serializer):
    can_add_guests = serializers.BooleanField()
    can_edit_guests = serializers.BooleanField()
    can_delete_guests = serializers.BooleanField()
    can_view_full_event = serializers.BooleanField()


class CollaboratorSerializer(serializers.Serializer):
    """Serializer for Collaborator domain model."""

    id = serializers.CharField()
    user_id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.CharField()
    phone = serializers.CharField()
    allocated_invites = serializers.IntegerField()
    used_invites = serializers.IntegerField()
    remaining_invites = serializers.IntegerField()
    permissions = PermissionsSerializer()
    added_by = serializers.CharField()
    added_at = serializers.DateTimeField()


class GuestSerializer(serializers.Serializer):
    """Serializer for Guest domain model."""

    id = serializers.CharField()
    name = serializers.CharField()
    phone = serializers.CharField()
    party_size = serializers.IntegerField()
    collaborator_id = serializers.CharField(allow_null=True)
    added_by = serializers.CharField()
    rsvp_status = serializers.CharField(source="rsvp_status.value")
    credits_used = serializers.IntegerField()
    whatsapp_message_sent = serializers.BooleanField()
    whatsapp_sent_at = serializers.DateTimeField(allow_null=True)
    added_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)


class RefundableSlotsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    used = serializers.IntegerField()
    reassigned = serializers.IntegerField()
    available = serializers.IntegerField()


class EventDetailsSerializer(serializers.Serializer):
    event_name = serializers.CharField()
    event_date = serializers.DateField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    event_location = serializers.CharField()
    host_name = serializers.CharField()
    invitation_text = serializers.CharField()
    invite_count = serializers.IntegerField()
    additional_cards = serializers.IntegerField()
    gate_supervisors = serializers.IntegerField()
    extra_hours = serializers.IntegerField()
    fast_delivery = serializers.BooleanField()


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain model."""

    id = serializers.CharField()
    user_id = serializers.CharField()
    design_id = serializers.CharField()
    package_type = serializers.CharField(source="package_type.value")
    details = EventDetailsSerializer()
    total_price = serializers.DecimalField(
        source="total_price.amount", max_digits=10, decimal_places=2
    )
    invite_budget = serializers.IntegerField()
    refundable_slots = RefundableSlotsSerializer()
    status = serializers.CharField(source="status.value")
    approval_status = serializers.CharField(source="approval_status.value")
    admin_notes = serializers.CharField()
    invitation_card_url = serializers.CharField()
    qr_code_reader_url = serializers.CharField()
    approved_by = serializers.CharField()
    approved_at = serializers.DateTimeField(allow_null=True)
    rejected_at = serializers.DateTimeField(allow_null=True)
    payment_completed_at = serializers.DateTimeField()
    order_id = serializers.UUIDField(allow_null=True)
    guest_list_confirmed = serializers.BooleanField()
    guest_list_confirmed_at = serializers.DateTimeField(allow_null=True)
    guest_list_reopen_count = serializers.IntegerField()
    created_at = serializers.DateTimeField(allow_null=True)
    collaborators = CollaboratorSerializer(many=True)
    guests = GuestSerializer(many=True)


class AllocationShareSerializer(serializers.Serializer):
    collaborator_id = serializers.CharField()
    allocated = serializers.IntegerField()
    used = serializers.IntegerField()
    remaining = serializers.IntegerField()


class AllocationSummarySerializer(serializers.Serializer):
    invite_budget = serializers.IntegerField()
    allocated_to_collaborators = serializers.IntegerField()
    pool_remaining = serializers.IntegerField()
    owner_used = serializers.IntegerField()
    owner_available = serializers.IntegerField()
    refundable_slots = RefundableSlotsSerializer()
    shares = AllocationShareSerializer(many=True)


class BulkApprovalItemSerializer(serializers.Serializer):
    event_id = serializers.CharField()
    approved = serializers.BooleanField()
    error_code = serializers.CharField(allow_null=True)
    message = serializers.CharField(allow_null=True)


class BulkApprovalResultSerializer(serializers.Serializer):
    items = BulkApprovalItemSerializer(many=True)
    approved_count = serializers.IntegerField()
    failed_count = serializers.IntegerField()


# Input


class CollaboratorCreateSerializer(serializers.Serializer):
    user_id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    allocated_invites = serializers.IntegerField(min_value=0)
    permissions = serializers.DictField(child=serializers.BooleanField(), required=False)


class CollaboratorUpdateSerializer(serializers.Serializer):
    allocated_invites = serializers.IntegerField(min_value=0, required=False)
    permissions = serializers.DictField(child=serializers.BooleanField(), required=False)


class GuestCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20)
    party_size = serializers.IntegerField()


class GuestUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    phone = serializers.CharField(max_length=20, required=False)
    party_size = serializers.IntegerField(required=False)


class ApproveSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)
    invitation_card_url = serializers.URLField(required=False, allow_blank=True)
    qr_code_reader_url = serializers.URLField(required=False, allow_blank=True)


class RejectSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class DeliverablesSerializer(serializers.Serializer):
    invitation_card_url = serializers.URLField(required=False, allow_blank=True)
    qr_code_reader_url = serializers.URLField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class BulkApproveSerializer(serializers.Serializer):
    event_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True)
