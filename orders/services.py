"""Order lifecycle: creation with stock reservation, cancellation, receipt and admin status changes."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from catalog import selectors as catalog_selectors
from common.choices import OrderStatus, PaymentStatus
from common.errors import ServiceError
from common.numbers import generate_number
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from inventory.services import InsufficientStock, StockUnit, release_reservations, reserve_many
from payments.models import Payment
from rest_framework import status as http_status

from .emails import send_order_paid_email
from .models import Order, OrderItem

logger = logging.getLogger("mall.orders")

ORDER_NUMBER_PREFIX = "ORD"


class OrderError(ServiceError):
    code = "order_error"
    default_message = "Unable to process order."


class InvalidRequest(OrderError):
    code = "invalid_request"
    default_message = "Invalid order request."


class UserNotFound(OrderError):
    code = "user_not_found"
    status_code = http_status.HTTP_404_NOT_FOUND
    default_message = "User not found."


class ProductNotFound(OrderError):
    code = "product_not_found"
    status_code = http_status.HTTP_404_NOT_FOUND
    default_message = "Product not found."


class ProductUnavailable(OrderError):
    code = "product_unavailable"
    default_message = "Product is not available."


class SkuMismatch(OrderError):
    code = "sku_mismatch"
    default_message = "SKU does not belong to this product."


class OrderNotFound(OrderError):
    code = "order_not_found"
    status_code = http_status.HTTP_404_NOT_FOUND
    default_message = "Order not found."


class AccessDenied(OrderError):
    code = "access_denied"
    status_code = http_status.HTTP_403_FORBIDDEN
    default_message = "You do not have access to this order."


class OrderNotPending(OrderError):
    code = "order_not_pending"
    status_code = http_status.HTTP_409_CONFLICT
    default_message = "Order is not pending payment."


class InvalidOrderState(OrderError):
    code = "invalid_state"
    status_code = http_status.HTTP_409_CONFLICT
    default_message = "Order cannot make this transition."


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int
    sku_id: Optional[int] = None


@dataclass(frozen=True)
class ShippingInfo:
    receiver_name: str = ""
    receiver_phone: str = ""
    receiver_address: str = ""
    buyer_message: str = ""


@dataclass(frozen=True)
class _PricedLine:
    product_id: int
    sku_id: Optional[int]
    product_name: str
    sku_name: str
    image: str
    unit_price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def label(self) -> str:
        return f"{self.product_name} ({self.sku_name})" if self.sku_name else self.product_name


def generate_order_no() -> str:
    return generate_number(ORDER_NUMBER_PREFIX)


def freight_for(lines: Iterable[_PricedLine]) -> Decimal:
    """Shipping fee hook; everything ships free for now."""
    return Decimal("0.00")


def discount_for(lines: Iterable[_PricedLine]) -> Decimal:
    """Promotion hook; no promotions are applied yet."""
    return Decimal("0.00")


def _price_line(line: OrderLine) -> _PricedLine:
    if int(line.quantity) <= 0:
        raise InvalidRequest("Quantity must be positive")
    product = catalog_selectors.get_product(line.product_id)
    if product is None:
        raise ProductNotFound(f"Product {line.product_id} not found")
    if not product.active:
        raise ProductUnavailable(f"Product {product.name} is not on sale")

    sku = None
    if line.sku_id:
        sku = catalog_selectors.get_sku(line.sku_id)
        if sku is None or sku.product_id != product.id:
            raise SkuMismatch(f"SKU {line.sku_id} does not belong to product {product.id}")
        if not sku.active:
            raise ProductUnavailable(f"SKU {sku.name} of {product.name} is not available")

    return _PricedLine(
        product_id=product.id,
        sku_id=sku.id if sku else None,
        product_name=product.name,
        sku_name=sku.name if sku else "",
        image=(sku.image if sku and sku.image else product.image) or "",
        unit_price=sku.price if sku else product.price,
        quantity=int(line.quantity),
    )


def _apply_status(order: Order, new_status: int) -> int:
    """Set status and derive the payment/delivery facets. Returns the previous status."""
    prev = order.status
    order.status = new_status
    if new_status == Order.STATUS_AWAITING_SHIPMENT:
        order.payment_status = Order.PAYMENT_PAID
        order.delivery_status = Order.DELIVERY_NOT_SHIPPED
    elif new_status == Order.STATUS_SHIPPED:
        order.payment_status = Order.PAYMENT_PAID
        order.delivery_status = Order.DELIVERY_SHIPPED
    elif new_status == Order.STATUS_COMPLETED:
        order.payment_status = Order.PAYMENT_PAID
        order.delivery_status = Order.DELIVERY_RECEIVED
    order.save(update_fields=["status", "payment_status", "delivery_status", "paid_at", "updated_at"])
    logger.info(
        "order_status_changed",
        extra={
            "order_id": order.id,
            "order_no": order.number,
            "user_id": order.user_id,
            "status_from": prev,
            "status_to": new_status,
        },
    )
    return prev


def _lock_owned_order(*, user_id: int, order_id: int) -> Order:
    try:
        order = Order.objects.select_for_update().get(id=order_id)
    except (Order.DoesNotExist, ValueError, TypeError):
        raise OrderNotFound()
    if order.user_id != user_id:
        raise AccessDenied()
    return order


def create_order(*, user_id: int, lines: list[OrderLine], shipping: Optional[ShippingInfo] = None) -> Order:
    """Validate, price, reserve and persist an order in one unit of work.

    Prices always come from the catalog. Stock for every line is reserved
    (in product/SKU order) under the reference ``order:<number>``; if any
    line is short, InsufficientStock names it and nothing is left behind.
    """
    if not lines:
        raise InvalidRequest("Order must contain at least one line")
    User = get_user_model()
    user = User.objects.filter(id=user_id).first()
    if user is None or not user.is_active:
        raise UserNotFound()

    priced = [_price_line(line) for line in lines]
    total = sum((p.total for p in priced), Decimal("0.00"))
    freight = freight_for(priced)
    discount = discount_for(priced)
    shipping = shipping or ShippingInfo()
    number = generate_order_no()
    reference = f"order:{number}"

    units = [(StockUnit(product_id=p.product_id, sku_id=p.sku_id), p.quantity) for p in priced]
    labels = {unit: p.label for (unit, _), p in zip(units, priced)}

    with transaction.atomic():
        try:
            reserve_many(lines=units, reference=reference)
        except InsufficientStock as exc:
            raise InsufficientStock(f"Insufficient stock for {labels.get(exc.unit, exc.unit)}") from exc

        order = Order.objects.create(
            user=user,
            number=number,
            total_amount=total,
            freight_amount=freight,
            discount_amount=discount,
            pay_amount=total - discount + freight,
            status=Order.STATUS_PENDING_PAYMENT,
            payment_status=Order.PAYMENT_UNPAID,
            delivery_status=Order.DELIVERY_NOT_SHIPPED,
            receiver_name=shipping.receiver_name,
            receiver_phone=shipping.receiver_phone,
            receiver_address=shipping.receiver_address,
            buyer_message=shipping.buyer_message,
        )
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=p.product_id,
                    sku_id=p.sku_id,
                    product_name=p.product_name,
                    sku_name=p.sku_name,
                    product_image=p.image,
                    unit_price=p.unit_price,
                    quantity=p.quantity,
                    total_amount=p.total,
                )
                for p in priced
            ]
        )

    logger.info(
        "order_created",
        extra={
            "order_id": order.id,
            "order_no": order.number,
            "user_id": user.id,
            "lines": len(priced),
            "pay_amount": str(order.pay_amount),
        },
    )
    return order


def create_order_from_cart(*, user, shipping: Optional[ShippingInfo] = None, item_ids=None) -> Order:
    """Create an order from the user's cart and drop the purchased cart lines.

    ``item_ids`` narrows checkout to some lines; by default the whole cart is
    bought. The cart is only changed if the order is created.
    """
    from cart.models import CartItem

    with transaction.atomic():
        items = CartItem.objects.select_for_update().filter(cart__user_id=user.id).order_by("id")
        if item_ids:
            items = items.filter(id__in=list(item_ids))
        items = list(items)
        if not items:
            raise InvalidRequest("Cart is empty")
        order = create_order(
            user_id=user.id,
            lines=[OrderLine(product_id=i.product_id, sku_id=i.sku_id, quantity=i.quantity) for i in items],
            shipping=shipping,
        )
        CartItem.objects.filter(id__in=[i.id for i in items]).delete()
    logging.getLogger("mall.cart").info(
        "cart_checked_out",
        extra={"user_id": user.id, "order_id": order.id, "order_no": order.number, "lines": len(items)},
    )
    return order


@transaction.atomic
def cancel_order(*, user_id: int, order_id: int) -> Order:
    """Cancel a pending order, return its stock and close any open payment attempt."""
    order = _lock_owned_order(user_id=user_id, order_id=order_id)
    if order.status != Order.STATUS_PENDING_PAYMENT:
        raise InvalidOrderState("Only orders pending payment can be cancelled")
    _apply_status(order, Order.STATUS_CANCELLED)
    release_reservations(reference=order.reservation_reference, reason="order cancelled")
    Payment.objects.filter(order=order, status=PaymentStatus.PENDING).update(
        status=PaymentStatus.CANCELLED, updated_at=timezone.now()
    )
    return order


@transaction.atomic
def confirm_receipt(*, user_id: int, order_id: int) -> Order:
    order = _lock_owned_order(user_id=user_id, order_id=order_id)
    if order.status != Order.STATUS_SHIPPED:
        raise InvalidOrderState("Only shipped orders can be confirmed")
    _apply_status(order, Order.STATUS_COMPLETED)
    return order


@transaction.atomic
def update_status(*, order_id: int, status: int) -> Order:
    """Administrative status set for trusted callers such as fulfillment.

    The state machine is not enforced here; facets still follow the new
    status. Moving an order to Cancelled returns its unsold stock and
    closes any open payment attempt.
    """
    if status not in OrderStatus.values:
        raise InvalidRequest(f"Unknown order status {status}")
    try:
        order = Order.objects.select_for_update().get(id=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound()
    _apply_status(order, status)
    if status == Order.STATUS_CANCELLED:
        release_reservations(reference=order.reservation_reference, reason="order cancelled by admin")
        Payment.objects.filter(order=order, status=PaymentStatus.PENDING).update(
            status=PaymentStatus.CANCELLED, updated_at=timezone.now()
        )
    return order


def mark_order_paid(order: Order, *, paid_at=None) -> Order:
    """PendingPayment -> AwaitingShipment for a payment success.

    The caller holds the order row lock and the surrounding transaction.
    """
    if order.status != Order.STATUS_PENDING_PAYMENT or order.is_paid:
        raise InvalidOrderState(f"Order {order.number} cannot be marked paid from status {order.status}")
    order.paid_at = paid_at or timezone.now()
    _apply_status(order, Order.STATUS_AWAITING_SHIPMENT)
    transaction.on_commit(lambda: send_order_paid_email(order))
    return order


def get_order_detail(*, user_id: int, order_id: int) -> Order:
    try:
        order = Order.objects.prefetch_related("items", "payments").get(id=order_id)
    except (Order.DoesNotExist, ValueError, TypeError):
        raise OrderNotFound()
    if order.user_id != user_id:
        raise AccessDenied()
    return order


def list_user_orders(*, user_id: int, status: Optional[int] = None):
    qs = Order.objects.filter(user_id=user_id).prefetch_related("items").order_by("-id")
    if status:
        qs = qs.filter(status=status)
    return qs


def list_orders(*, status: Optional[int] = None, keyword: Optional[str] = None):
    """Admin listing; ``keyword`` matches order number, receiver name or phone."""
    qs = Order.objects.select_related("user").prefetch_related("items").order_by("-id")
    if status:
        qs = qs.filter(status=status)
    if keyword:
        qs = qs.filter(
            Q(number__icontains=keyword) | Q(receiver_name__icontains=keyword) | Q(receiver_phone__icontains=keyword)
        )
    return qs
