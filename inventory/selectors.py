"""Selectors for the inventory domain."""

from typing import Optional

from .services import StockUnit, _unit_queryset


def available_stock(*, product_id: int, sku_id: Optional[int] = None) -> int:
    """Snapshot of the unit's remaining stock; 0 when the unit does not exist."""
    value = _unit_queryset(StockUnit(product_id=product_id, sku_id=sku_id)).values_list("stock", flat=True).first()
    return int(value or 0)
