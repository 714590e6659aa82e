from django.contrib import admin

from .models import Product, ProductSKU


class ProductSKUInline(admin.TabularInline):
    model = ProductSKU
    extra = 0
    fields = ("sku_code", "name", "price", "stock", "status")
    readonly_fields = ("stock",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "price", "stock", "sales", "status", "updated_at")
    list_filter = ("status",)
    search_fields = ("name", "subtitle")
    readonly_fields = ("stock", "sales")
    inlines = [ProductSKUInline]


@admin.register(ProductSKU)
class ProductSKUAdmin(admin.ModelAdmin):
    list_display = ("id", "sku_code", "product", "price", "stock", "status")
    list_filter = ("status",)
    search_fields = ("sku_code", "name", "product__name")
    readonly_fields = ("stock", "sales")
