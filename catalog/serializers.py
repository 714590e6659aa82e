"""Serializers for the catalog app (read-only)."""

from rest_framework import serializers

from .models import Product, ProductSKU


class ProductSKUSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductSKU
        fields = ["id", "sku_code", "name", "price", "stock", "image", "status"]


class ProductListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "subtitle", "price", "original_price", "image", "stock", "sales"]


class ProductDetailSerializer(serializers.ModelSerializer):
    skus = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "subtitle",
            "description",
            "price",
            "original_price",
            "image",
            "stock",
            "sales",
            "status",
            "skus",
        ]

    def get_skus(self, obj):
        items = [s for s in obj.skus.all() if s.status == ProductSKU.STATUS_ACTIVE]
        return ProductSKUSerializer(items, many=True).data
