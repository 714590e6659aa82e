"""Cart app models.

One cart per user. Cart lines are keyed by (product, SKU); they hold no
price and no stock, both are read from the catalog when the cart is shown
or checked out.
"""

from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Cart(TimeStampedModel):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, related_name="cart", on_delete=models.CASCADE)

    def __str__(self) -> str:  # pragma: no cover
        return f"Cart#{self.id} ({self.user_id})"


class CartItem(TimeStampedModel):
    """Line item in a shopping cart for a product or one of its SKUs."""

    cart = models.ForeignKey(Cart, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="cart_items", on_delete=models.CASCADE)
    sku = models.ForeignKey(
        "catalog.ProductSKU", null=True, blank=True, related_name="cart_items", on_delete=models.CASCADE
    )
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product", "sku"],
                condition=models.Q(sku__isnull=False),
                name="unique_sku_per_cart",
            ),
            models.UniqueConstraint(
                fields=["cart", "product"],
                condition=models.Q(sku__isnull=True),
                name="unique_product_per_cart",
            ),
            models.CheckConstraint(
                name="quantity_positive",
                condition=models.Q(quantity__gte=1),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CartItem#{self.id} cart={self.cart_id} product={self.product_id} sku={self.sku_id} qty={self.quantity}"
