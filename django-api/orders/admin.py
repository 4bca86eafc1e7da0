from django.contrib import admin

from orders.models import CartItem, PendingOrder, PendingOrderItem


class PendingOrderItemInline(admin.TabularInline):
    model = PendingOrderItem
    extra = 0
    readonly_fields = ["cart_item_id", "snapshot"]


@admin.register(PendingOrder)
class PendingOrderAdmin(admin.ModelAdmin):
    list_display = ["merchant_order_id", "user_id", "total_amount", "status", "failure_reason", "created_at"]
    list_filter = ["status", "failure_reason"]
    search_fields = ["merchant_order_id", "gateway_order_id", "user_id"]
    readonly_fields = ["events_created", "completed_at", "failed_at"]
    inlines = [PendingOrderItemInline]


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ["design_id", "package_type", "user_id", "total_price", "updated_at"]
    list_filter = ["package_type"]
    search_fields = ["design_id", "user_id"]
