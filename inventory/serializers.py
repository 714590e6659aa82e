"""Serializers for inventory domain.

Read-only serializers for movements and reservations, plus the input
serializer for administrative stock movements.
"""

from rest_framework import serializers

from .models import StockMovement, StockReservation


class StockMovementSerializer(serializers.ModelSerializer):
    """Read-only representation of stock movements."""

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "sku",
            "movement_type",
            "quantity",
            "reason",
            "reference",
            "created_at",
        ]
        read_only_fields = fields


class StockReservationSerializer(serializers.ModelSerializer):
    """Read-only representation of stock reservations."""

    class Meta:
        model = StockReservation
        fields = [
            "id",
            "product",
            "sku",
            "quantity",
            "reference",
            "state",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockMovementCreateSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    sku_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    movement_type = serializers.ChoiceField(choices=[StockMovement.TYPE_INBOUND, StockMovement.TYPE_ADJUST])
    quantity = serializers.IntegerField()
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    reference = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        qty = attrs["quantity"]
        if qty == 0:
            raise serializers.ValidationError({"quantity": "Quantity must be non-zero."})
        if attrs["movement_type"] == StockMovement.TYPE_INBOUND and qty < 0:
            raise serializers.ValidationError({"quantity": "Inbound movements must be positive."})
        return attrs
