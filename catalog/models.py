"""Catalog app models.

Products and their SKUs. Each row also carries the stock counter for its
stock unit: a SKU row when an order line names a SKU, the product row
otherwise. Counters are only ever changed through ``inventory.services``.
"""

from common.choices import ActiveInactive, ProductStatus
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Core product entity."""

    STATUS_ON_SALE = ProductStatus.ON_SALE
    STATUS_OFF_SALE = ProductStatus.OFF_SALE
    STATUS_CHOICES = ProductStatus.choices

    name = models.CharField(max_length=200)
    subtitle = models.CharField(max_length=500, blank=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    original_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    image = models.URLField(max_length=500, blank=True)
    stock = models.IntegerField(default=0)
    sales = models.IntegerField(default=0)
    status = models.PositiveSmallIntegerField(choices=STATUS_CHOICES, default=STATUS_ON_SALE, db_index=True)
    sort_order = models.IntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "id"]
        constraints = [
            models.CheckConstraint(name="product_stock_non_negative", condition=models.Q(stock__gte=0)),
            models.CheckConstraint(name="product_sales_non_negative", condition=models.Q(sales__gte=0)),
            models.CheckConstraint(name="product_price_non_negative", condition=models.Q(price__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name

    @property
    def is_on_sale(self) -> bool:
        return self.status == self.STATUS_ON_SALE


class ProductSKU(TimeStampedModel):
    """Sellable variant of a product (e.g., size/color) with its own price and stock."""

    STATUS_ACTIVE = ActiveInactive.ACTIVE
    STATUS_INACTIVE = ActiveInactive.INACTIVE
    STATUS_CHOICES = ActiveInactive.choices

    product = models.ForeignKey(Product, related_name="skus", on_delete=models.CASCADE)
    sku_code = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    stock = models.IntegerField(default=0)
    sales = models.IntegerField(default=0)
    image = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ["sku_code"]
        constraints = [
            models.CheckConstraint(name="sku_stock_non_negative", condition=models.Q(stock__gte=0)),
            models.CheckConstraint(name="sku_sales_non_negative", condition=models.Q(sales__gte=0)),
            models.CheckConstraint(name="sku_price_non_negative", condition=models.Q(price__gte=0)),
        ]
        indexes = [
            models.Index(fields=["product", "status"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.product.name} [{self.sku_code}]"

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE
