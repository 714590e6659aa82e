"""Admin registration for cart models.

Cart page shows its lines inline for support staff.
"""

from django.contrib import admin, messages

from .models import Cart, CartItem
from .services import clear_cart


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("product", "sku", "quantity", "created_at", "updated_at")
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("product", "sku")


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "updated_at", "created_at")
    search_fields = ("user__username", "user__email")
    ordering = ("-updated_at",)
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("user",)
    inlines = [CartItemInline]
    list_select_related = ("user",)
    actions = ["action_clear_cart"]

    @admin.action(description="Clear cart")
    def action_clear_cart(self, request, queryset):
        lines = 0
        for cart in queryset.select_related("user"):
            lines += clear_cart(user=cart.user)
        messages.success(request, f"Cleared {queryset.count()} cart(s), {lines} line(s) removed.")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "cart", "product", "sku", "quantity", "updated_at")
    search_fields = ("product__name", "sku__sku_code", "cart__user__email")
    ordering = ("id",)
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("cart", "product", "sku")
