"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.db import models


class CartItem(models.Model):
    """A user's not-yet-paid package configuration."""

    PACKAGE_CHOICES = [("classic", "Classic"), ("premium", "Premium"), ("vip", "VIP")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    design_id = models.CharField(max_length=64)
    package_type = models.CharField(max_length=10, choices=PACKAGE_CHOICES)
    details = models.JSONField()
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["added_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "design_id", "package_type"], name="uniq_cart_design_package"
            ),
            models.CheckConstraint(
                condition=models.Q(total_price__gte=0), name="cart_item_price_non_negative"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.design_id} ({self.package_type})"


class PendingOrder(models.Model):
    """One checkout attempt against the payment gateway."""

    STATUS_CHOICES = [("created", "Created"), ("paid", "Paid"), ("failed", "Failed")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    merchant_order_id = models.CharField(max_length=64, unique=True)
    gateway_order_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="created", db_index=True)
    failure_reason = models.CharField(max_length=32, blank=True)
    transaction_id = models.CharField(max_length=128, blank=True)
    events_created = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.merchant_order_id} ({self.status})"


class PendingOrderItem(models.Model):
    """Cart item selected for an order, with its state frozen at checkout."""

    order = models.ForeignKey(PendingOrder, on_delete=models.CASCADE, related_name="items")
    cart_item_id = models.UUIDField(db_index=True)
    snapshot = models.JSONField()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["order", "cart_item_id"], name="uniq_order_cart_item"),
        ]

    def __str__(self) -> str:
        return str(self.cart_item_id)
