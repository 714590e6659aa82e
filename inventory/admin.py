"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import StockMovement, StockReservation


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "sku", "movement_type", "quantity", "reason", "reference", "created_at")
    list_filter = ("movement_type",)
    search_fields = ("product__name", "sku__sku_code", "reference")


@admin.register(StockReservation)
class StockReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "sku", "quantity", "state", "reference", "created_at")
    list_filter = ("state",)
    search_fields = ("product__name", "sku__sku_code", "reference")
