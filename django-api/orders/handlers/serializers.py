"""Serializers for carts and orders.

Output serializers read the frozen domain dataclasses; a cart item's
`locked` flag comes from the `locked_ids` serializer context.
"""

from rest_framework import serializers

from events.handlers.serializers import EventDetailsSerializer


class CartItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    design_id = serializers.CharField()
    package_type = serializers.CharField(source="package_type.value")
    details = EventDetailsSerializer()
    invite_budget = serializers.IntegerField(source="details.invite_budget")
    total_price = serializers.DecimalField(
        source="total_price.amount", max_digits=10, decimal_places=2
    )
    added_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)
    locked = serializers.SerializerMethodField()

    def get_locked(self, item) -> bool:
        return item.id in self.context.get("locked_ids", frozenset())


class OrderItemSerializer(serializers.Serializer):
    """Cart item as frozen on the order at checkout."""

    cart_item_id = serializers.CharField(source="id")
    design_id = serializers.CharField()
    package_type = serializers.CharField(source="package_type.value")
    total_price = serializers.DecimalField(
        source="total_price.amount", max_digits=10, decimal_places=2
    )
    details = EventDetailsSerializer()


class PendingOrderSerializer(serializers.Serializer):
    id = serializers.CharField()
    merchant_order_id = serializers.CharField()
    gateway_order_id = serializers.CharField(allow_null=True)
    status = serializers.CharField(source="status.value")
    failure_reason = serializers.SerializerMethodField()
    total_amount = serializers.DecimalField(
        source="total_amount.amount", max_digits=10, decimal_places=2
    )
    transaction_id = serializers.CharField()
    events_created = serializers.ListField(child=serializers.CharField())
    items = OrderItemSerializer(many=True)
    created_at = serializers.DateTimeField(allow_null=True)
    completed_at = serializers.DateTimeField(allow_null=True)
    failed_at = serializers.DateTimeField(allow_null=True)

    def get_failure_reason(self, order) -> str | None:
        return order.failure_reason.value if order.failure_reason else None


# Input


class CartItemCreateSerializer(serializers.Serializer):
    design_id = serializers.CharField(max_length=64)
    package_type = serializers.CharField(max_length=10)
    details = serializers.DictField()
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class CartItemPatchSerializer(serializers.Serializer):
    field = serializers.CharField(max_length=64)
    value = serializers.JSONField(allow_null=True)
    expected_updated_at = serializers.DateTimeField(required=False)


class CustomerSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class CheckoutSerializer(serializers.Serializer):
    cart_item_ids = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    customer = CustomerSerializer(required=False)
    supersede = serializers.BooleanField(required=False, default=False)


class ForceCompleteSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=128, required=False, allow_blank=True)
