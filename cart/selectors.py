"""Selectors for read-only cart queries."""

from decimal import Decimal

from django.db.models import Sum

from .models import Cart, CartItem


def get_cart_for_user(*, user) -> Cart:
    """Return the user's cart, creating it if missing."""

    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def cart_summary(*, user) -> dict:
    """Cart lines priced with the catalog's current prices and stock.

    Returns ``{"id", "items": [...], "total_amount": Decimal, "total_count": int}``.
    """

    cart = get_cart_for_user(user=user)
    lines = []
    total_amount = Decimal("0.00")
    total_count = 0
    for item in CartItem.objects.filter(cart=cart).select_related("product", "sku").order_by("id"):
        unit = item.sku or item.product
        line_total = unit.price * item.quantity
        lines.append(
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name,
                "product_image": (item.sku.image if item.sku and item.sku.image else item.product.image) or "",
                "sku_id": item.sku_id,
                "sku_name": item.sku.name if item.sku else "",
                "price": unit.price,
                "quantity": item.quantity,
                "total_price": line_total,
                "stock": unit.stock,
                "on_sale": item.product.is_on_sale and (item.sku is None or item.sku.is_active),
            }
        )
        total_amount += line_total
        total_count += item.quantity
    return {"id": cart.id, "items": lines, "total_amount": total_amount, "total_count": total_count}


def cart_count(*, user) -> int:
    """Total quantity across the user's cart lines."""

    agg = CartItem.objects.filter(cart__user_id=user.id).aggregate(count=Sum("quantity"))
    return int(agg["count"] or 0)
