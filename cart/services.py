"""Cart services: add, update, remove and clear cart lines.

Cart lines never reserve stock; availability is checked when a line is
added or changed and enforced for real when the cart is checked out.
"""

import logging
from typing import Optional

from catalog import selectors as catalog_selectors
from common.errors import ServiceError
from django.db import IntegrityError, transaction
from inventory.services import InsufficientStock
from orders.services import ProductNotFound, ProductUnavailable, SkuMismatch
from rest_framework import status

from .models import CartItem
from .selectors import get_cart_for_user

logger = logging.getLogger("mall.cart")


class CartError(ServiceError):
    code = "invalid_request"
    default_message = "Unable to update cart."


class CartItemNotFound(CartError):
    code = "cart_item_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Cart item not found."


def _available(product_id: int, sku_id: Optional[int]) -> int:
    """Validate the stock unit is sellable and return its current stock."""
    product = catalog_selectors.get_product(product_id)
    if product is None:
        raise ProductNotFound(f"Product {product_id} not found")
    if not product.active:
        raise ProductUnavailable(f"Product {product.name} is not on sale")
    if not sku_id:
        return product.stock
    sku = catalog_selectors.get_sku(sku_id)
    if sku is None or sku.product_id != product.id:
        raise SkuMismatch(f"SKU {sku_id} does not belong to product {product.id}")
    if not sku.active:
        raise ProductUnavailable(f"SKU {sku.name} of {product.name} is not available")
    return sku.stock


@transaction.atomic
def add_item(*, user, product_id: int, quantity: int, sku_id: Optional[int] = None) -> CartItem:
    """Add a product (or one of its SKUs) to the cart, merging with an existing line."""

    if quantity <= 0:
        raise CartError("Quantity must be positive")
    sku_id = sku_id or None
    cart = get_cart_for_user(user=user)
    stock = _available(product_id, sku_id)
    item = CartItem.objects.select_for_update().filter(cart=cart, product_id=product_id, sku_id=sku_id).first()
    wanted = quantity + (item.quantity if item else 0)
    if stock < wanted:
        raise InsufficientStock(f"Only {stock} left in stock")

    if item:
        item.quantity = wanted
        item.save(update_fields=["quantity", "updated_at"])
        event = "cart_item_updated"
    else:
        try:
            with transaction.atomic():
                item = CartItem.objects.create(cart=cart, product_id=product_id, sku_id=sku_id, quantity=wanted)
        except IntegrityError:
            # Concurrent add of the same line: fold into the row that won.
            item = CartItem.objects.select_for_update().get(cart=cart, product_id=product_id, sku_id=sku_id)
            item.quantity += quantity
            item.save(update_fields=["quantity", "updated_at"])
        event = "cart_item_added"
    logger.info(
        event,
        extra={
            "cart_id": cart.id,
            "user_id": user.id,
            "product_id": product_id,
            "sku_id": sku_id,
            "quantity": item.quantity,
        },
    )
    return item


@transaction.atomic
def update_item_quantity(*, user, item_id: int, quantity: int) -> CartItem:
    if quantity <= 0:
        raise CartError("Quantity must be positive")
    try:
        item = CartItem.objects.select_for_update().get(id=item_id, cart__user_id=user.id)
    except CartItem.DoesNotExist:
        raise CartItemNotFound()
    stock = _available(item.product_id, item.sku_id)
    if stock < quantity:
        raise InsufficientStock(f"Only {stock} left in stock")
    item.quantity = quantity
    item.save(update_fields=["quantity", "updated_at"])
    logger.info(
        "cart_item_updated",
        extra={"cart_id": item.cart_id, "user_id": user.id, "item_id": item.id, "quantity": quantity},
    )
    return item


def remove_item(*, user, item_id: int) -> None:
    """Remove a line from the user's cart; removing a missing line is a no-op."""

    deleted, _ = CartItem.objects.filter(id=item_id, cart__user_id=user.id).delete()
    if deleted:
        logger.info("cart_item_removed", extra={"user_id": user.id, "item_id": item_id})


def clear_cart(*, user) -> int:
    deleted, _ = CartItem.objects.filter(cart__user_id=user.id).delete()
    logger.info("cart_cleared", extra={"user_id": user.id, "lines": deleted})
    return deleted
