"""Selectors for the catalog domain.

Read-only query helpers shared by views and by the order service. The
``get_product`` / ``get_sku`` pair is the snapshot read consumed when an
order prices its lines; it never locks and never mutates.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.db.models import Prefetch, Q, QuerySet

from .models import Product, ProductSKU


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    name: str
    price: Decimal
    stock: int
    image: str
    active: bool


@dataclass(frozen=True)
class SKUSnapshot:
    id: int
    product_id: int
    name: str
    price: Decimal
    stock: int
    image: str
    active: bool


def get_product(product_id: int) -> Optional[ProductSnapshot]:
    """Return a price/stock snapshot for a product, or None if it does not exist."""

    try:
        p = Product.objects.get(id=product_id)
    except (Product.DoesNotExist, ValueError, TypeError):
        return None
    return ProductSnapshot(
        id=p.id,
        name=p.name,
        price=p.price,
        stock=int(p.stock),
        image=p.image,
        active=p.is_on_sale,
    )


def get_sku(sku_id: int) -> Optional[SKUSnapshot]:
    """Return a price/stock snapshot for a SKU, or None if it does not exist."""

    try:
        s = ProductSKU.objects.get(id=sku_id)
    except (ProductSKU.DoesNotExist, ValueError, TypeError):
        return None
    return SKUSnapshot(
        id=s.id,
        product_id=s.product_id,
        name=s.name,
        price=s.price,
        stock=int(s.stock),
        image=s.image,
        active=s.is_active,
    )


def list_products(
    *,
    search: Optional[str] = None,
    ordering: Optional[Iterable[str]] = None,
) -> QuerySet[Product]:
    """Return on-sale products with their active SKUs prefetched."""

    qs = Product.objects.filter(status=Product.STATUS_ON_SALE).prefetch_related(
        Prefetch("skus", queryset=ProductSKU.objects.filter(status=ProductSKU.STATUS_ACTIVE))
    )
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(subtitle__icontains=search))
    ordering = list(ordering or ("sort_order", "id"))
    return qs.order_by(*ordering)
