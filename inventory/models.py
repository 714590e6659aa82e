"""Inventory models.

Stock counters live on the catalog rows themselves (``Product.stock`` and
``ProductSKU.stock``). This app records what happened to them: a
reservation per reserved order line and an append-only movement ledger.
"""

from common.choices import MovementType, ReservationState
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StockMovement(TimeStampedModel):
    TYPE_RESERVE = MovementType.RESERVE
    TYPE_RELEASE = MovementType.RELEASE
    TYPE_INBOUND = MovementType.INBOUND
    TYPE_ADJUST = MovementType.ADJUST
    TYPE_CHOICES = MovementType.choices

    product = models.ForeignKey("catalog.Product", on_delete=models.CASCADE, related_name="movements")
    sku = models.ForeignKey("catalog.ProductSKU", null=True, blank=True, on_delete=models.CASCADE)
    movement_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    quantity = models.IntegerField()  # signed: +restock/release, -reserve/deduction
    reason = models.CharField(max_length=200, blank=True)
    reference = models.CharField(max_length=120, blank=True)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="movement_non_zero", condition=~models.Q(quantity=0)),
        ]
        indexes = [
            models.Index(fields=["reference"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.movement_type} {self.quantity} for {self.product_id}/{self.sku_id or '-'}"


class StockReservation(TimeStampedModel):
    STATE_ACTIVE = ReservationState.ACTIVE
    STATE_RELEASED = ReservationState.RELEASED
    STATE_COMMITTED = ReservationState.COMMITTED
    STATE_CHOICES = ReservationState.choices

    product = models.ForeignKey("catalog.Product", on_delete=models.CASCADE, related_name="reservations")
    sku = models.ForeignKey("catalog.ProductSKU", null=True, blank=True, on_delete=models.CASCADE)
    quantity = models.IntegerField()
    reference = models.CharField(max_length=120)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_ACTIVE)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="reservation_positive_qty", condition=models.Q(quantity__gt=0)),
        ]
        indexes = [
            models.Index(fields=["reference", "state"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Reservation<{self.product_id}/{self.sku_id or '-'}> qty={self.quantity} state={self.state}"
