from django.contrib import admin

from .models import IdempotencyKey, Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("product", "sku", "product_name", "sku_name", "unit_price", "quantity", "total_amount")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "number", "status", "payment_status", "delivery_status", "user", "pay_amount", "created_at")
    list_filter = ("status", "payment_status", "delivery_status", "created_at")
    search_fields = ("number", "receiver_name", "receiver_phone")
    date_hierarchy = "created_at"
    # Status changes go through the order services so stock follows them.
    readonly_fields = ("number", "status", "total_amount", "pay_amount", "payment_status", "delivery_status", "paid_at")
    inlines = [OrderItemInline]


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "key", "scope", "path", "method", "response_code", "created_at")
    list_filter = ("method", "response_code", "created_at")
    search_fields = ("key", "scope", "path")
    date_hierarchy = "created_at"
