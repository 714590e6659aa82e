"""DRF serializers for Orders.

Output serializers expose the stored order snapshot as-is; input
serializers only collect references and quantities, prices always come
from the catalog.
"""

from common.choices import OrderStatus
from payments.serializers import PaymentSerializer
from rest_framework import serializers

from .models import Order, OrderItem
from .services import OrderLine, ShippingInfo


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "sku_id",
            "product_name",
            "sku_name",
            "product_image",
            "unit_price",
            "quantity",
            "total_amount",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """API representation for an order and its line items."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "number",
            "status",
            "status_label",
            "payment_status",
            "delivery_status",
            "total_amount",
            "freight_amount",
            "discount_amount",
            "pay_amount",
            "receiver_name",
            "receiver_phone",
            "receiver_address",
            "buyer_message",
            "paid_at",
            "created_at",
            "items",
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderSerializer):
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["payments"]
        read_only_fields = fields


class AdminOrderSerializer(OrderSerializer):
    user_id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["user_id", "username"]
        read_only_fields = fields


class ShippingSerializer(serializers.Serializer):
    receiver_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    receiver_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    receiver_address = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    buyer_message = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def to_shipping(self) -> ShippingInfo:
        data = self.validated_data
        return ShippingInfo(
            receiver_name=data.get("receiver_name", ""),
            receiver_phone=data.get("receiver_phone", ""),
            receiver_address=data.get("receiver_address", ""),
            buyer_message=data.get("buyer_message", ""),
        )


class OrderLineSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    sku_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)


class OrderCreateSerializer(ShippingSerializer):
    items = OrderLineSerializer(many=True, allow_empty=False)

    def to_lines(self) -> list[OrderLine]:
        return [
            OrderLine(product_id=i["product_id"], sku_id=i.get("sku_id"), quantity=i["quantity"])
            for i in self.validated_data["items"]
        ]


class CheckoutSerializer(ShippingSerializer):
    item_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, allow_empty=True)


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
