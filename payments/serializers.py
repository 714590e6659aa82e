"""DRF serializers for payments."""

from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)
    order_no = serializers.CharField(source="order.number", read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "payment_no",
            "order_id",
            "order_no",
            "method",
            "amount",
            "status",
            "status_label",
            "trade_no",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    # Free text: unknown methods are reported as ``unsupported_method`` by the service.
    method = serializers.CharField(max_length=16)


class PaymentIntentSerializer(serializers.Serializer):
    payment_no = serializers.CharField()
    method = serializers.CharField(source="payment.method")
    amount = serializers.DecimalField(source="payment.amount", max_digits=12, decimal_places=2)
    status = serializers.IntegerField(source="payment.status")
    provider_params = serializers.DictField()
