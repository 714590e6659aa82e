"""Cart serializers for read and write operations."""

from rest_framework import serializers


class CartLineSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    product_id = serializers.IntegerField()
    product_name = serializers.CharField()
    product_image = serializers.CharField(allow_blank=True)
    sku_id = serializers.IntegerField(allow_null=True)
    sku_name = serializers.CharField(allow_blank=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    quantity = serializers.IntegerField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    stock = serializers.IntegerField()
    on_sale = serializers.BooleanField()


class CartReadSerializer(serializers.Serializer):
    """Read serializer for the cart summary and items."""

    id = serializers.IntegerField()
    items = CartLineSerializer(many=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_count = serializers.IntegerField()


class AddItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    sku_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)


class UpdateItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
