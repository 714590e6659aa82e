"""Inventory ledger: atomic reserve, release and commit of stock units.

Every change to a stock counter is a single conditional UPDATE
(``stock = stock - N WHERE stock >= N``), never a read followed by a write,
so concurrent reservations on the same unit cannot oversell.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from catalog.models import Product, ProductSKU
from common.errors import ServiceError
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import status

from .models import StockMovement, StockReservation

logger = logging.getLogger("mall.inventory")


class MovementError(ServiceError):
    code = "stock_error"
    default_message = "Unable to apply stock movement."


class InsufficientStock(MovementError):
    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Insufficient stock."

    #: Set by ``reserve_many`` to the unit that was short.
    unit = None


@dataclass(frozen=True)
class StockUnit:
    """A (product, optional SKU) pair: the granularity stock is tracked at."""

    product_id: int
    sku_id: Optional[int] = None

    @property
    def sort_key(self) -> tuple:
        return (int(self.product_id), int(self.sku_id or 0))

    def __str__(self) -> str:
        if self.sku_id:
            return f"product {self.product_id} / sku {self.sku_id}"
        return f"product {self.product_id}"


def _unit_queryset(unit: StockUnit):
    if unit.sku_id:
        return ProductSKU.objects.filter(id=unit.sku_id, product_id=unit.product_id)
    return Product.objects.filter(id=unit.product_id)


def _decrement(unit: StockUnit, quantity: int) -> bool:
    updated = (
        _unit_queryset(unit)
        .filter(stock__gte=quantity)
        .update(stock=F("stock") - quantity, updated_at=timezone.now())
    )
    return updated == 1


def _increment(unit: StockUnit, quantity: int) -> bool:
    updated = _unit_queryset(unit).update(stock=F("stock") + quantity, updated_at=timezone.now())
    return updated == 1


@transaction.atomic
def reserve(*, product_id: int, sku_id: Optional[int] = None, quantity: int, reference: str) -> StockReservation:
    """Take ``quantity`` from the unit's stock and record an active reservation.

    Raises InsufficientStock when the unit has less than ``quantity`` left (or
    does not exist); nothing is changed in that case.
    """
    unit = StockUnit(product_id=product_id, sku_id=sku_id)
    if quantity <= 0:
        raise MovementError("Reservation quantity must be positive")
    if not _decrement(unit, quantity):
        logger.info(
            "stock_reserve_rejected",
            extra={"product_id": unit.product_id, "sku_id": unit.sku_id, "quantity": quantity, "reference": reference},
        )
        raise InsufficientStock(f"Insufficient stock for {unit}")
    StockMovement.objects.create(
        product_id=unit.product_id,
        sku_id=unit.sku_id,
        movement_type=StockMovement.TYPE_RESERVE,
        quantity=-int(quantity),
        reason="order reservation",
        reference=reference,
    )
    reservation = StockReservation.objects.create(
        product_id=unit.product_id,
        sku_id=unit.sku_id,
        quantity=quantity,
        reference=reference,
        state=StockReservation.STATE_ACTIVE,
    )
    logger.info(
        "stock_reserved",
        extra={"product_id": unit.product_id, "sku_id": unit.sku_id, "quantity": quantity, "reference": reference},
    )
    return reservation


@transaction.atomic
def reserve_many(*, lines: list[tuple[StockUnit, int]], reference: str) -> list[StockReservation]:
    """Reserve several units as one unit of work.

    Units are reserved in a stable order so two attempts touching the same
    units lock them in the same sequence. If any unit is short, the whole
    transaction rolls back and every earlier reservation of this call is undone.
    """
    reservations = []
    for unit, quantity in sorted(lines, key=lambda line: line[0].sort_key):
        try:
            reservations.append(
                reserve(product_id=unit.product_id, sku_id=unit.sku_id, quantity=quantity, reference=reference)
            )
        except InsufficientStock as exc:
            exc.unit = unit
            raise
    return reservations


@transaction.atomic
def release_reservations(*, reference: str, reason: str = "release") -> int:
    """Return stock for every active reservation under ``reference``.

    Already released or committed reservations are skipped, so calling this
    twice is harmless. Returns the number of reservations released.
    """
    count = 0
    qs = StockReservation.objects.select_for_update().filter(reference=reference, state=StockReservation.STATE_ACTIVE)
    for res in qs.order_by("product_id", "sku_id", "id"):
        unit = StockUnit(product_id=res.product_id, sku_id=res.sku_id)
        _increment(unit, int(res.quantity))
        StockMovement.objects.create(
            product_id=res.product_id,
            sku_id=res.sku_id,
            movement_type=StockMovement.TYPE_RELEASE,
            quantity=int(res.quantity),
            reason=reason,
            reference=reference,
        )
        res.state = StockReservation.STATE_RELEASED
        res.save(update_fields=["state", "updated_at"])
        count += 1
    if count:
        logger.info("stock_released", extra={"reference": reference, "reservations": count, "reason": reason})
    return count


@transaction.atomic
def commit_reservations(*, reference: str) -> int:
    """Finalize active reservations under ``reference`` and count them as sales.

    Stock was already taken at reservation time; committing only makes the
    reservation permanent. Idempotent like ``release_reservations``.
    """
    count = 0
    qs = StockReservation.objects.select_for_update().filter(reference=reference, state=StockReservation.STATE_ACTIVE)
    for res in qs.order_by("product_id", "sku_id", "id"):
        Product.objects.filter(id=res.product_id).update(sales=F("sales") + int(res.quantity))
        if res.sku_id:
            ProductSKU.objects.filter(id=res.sku_id).update(sales=F("sales") + int(res.quantity))
        res.state = StockReservation.STATE_COMMITTED
        res.save(update_fields=["state", "updated_at"])
        count += 1
    if count:
        logger.info("stock_committed", extra={"reference": reference, "reservations": count})
    return count


@transaction.atomic
def apply_movement(
    *,
    product_id: int,
    sku_id: Optional[int] = None,
    movement_type: str,
    quantity: int,
    reason: str = "",
    reference: str = "",
) -> Optional[StockMovement]:
    """Apply a signed administrative movement (restock or adjustment) to a unit.

    quantity: positive for inbound/additions, negative for deductions.
    """
    unit = StockUnit(product_id=product_id, sku_id=sku_id)
    if quantity == 0:
        return None
    if not _unit_queryset(unit).exists():
        raise MovementError("Stock unit not found")
    if quantity < 0:
        if not _decrement(unit, abs(quantity)):
            raise InsufficientStock(f"Insufficient stock for {unit}")
    else:
        _increment(unit, quantity)
    movement = StockMovement.objects.create(
        product_id=unit.product_id,
        sku_id=unit.sku_id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
        reference=reference,
    )
    logger.info(
        "stock_adjusted",
        extra={
            "product_id": unit.product_id,
            "sku_id": unit.sku_id,
            "movement_type": movement_type,
            "quantity": quantity,
        },
    )
    return movement
