from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "payment_no", "order", "method", "amount", "status", "trade_no", "paid_at", "created_at")
    list_filter = ("method", "status", "created_at")
    search_fields = ("payment_no", "trade_no", "order__number")
    readonly_fields = ("payment_no", "order", "method", "amount", "status", "trade_no", "paid_at")
