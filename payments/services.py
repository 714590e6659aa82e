"""Payment intents: create, read and cancel payment attempts for orders."""

import logging
from dataclasses import dataclass
from typing import Optional

from common.choices import PaymentMethod
from common.errors import ServiceError
from common.numbers import generate_number
from django.db import transaction
from django.utils import timezone
from orders.models import Order
from orders.services import AccessDenied, OrderNotFound, OrderNotPending
from rest_framework import status

from .models import Payment
from .providers import UnsupportedMethod, get_provider

logger = logging.getLogger("mall.payments")

PAYMENT_NUMBER_PREFIX = "PAY"


class PaymentError(ServiceError):
    code = "payment_error"
    default_message = "Unable to process payment."


class AlreadyPaid(PaymentError):
    code = "already_paid"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Order is already paid."


class PaymentNotFound(PaymentError):
    code = "payment_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Payment not found."


class InvalidPaymentState(PaymentError):
    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Payment cannot be cancelled."


@dataclass(frozen=True)
class PaymentIntent:
    payment: Payment
    provider_params: dict

    @property
    def payment_no(self) -> str:
        return self.payment.payment_no


def generate_payment_no() -> str:
    return generate_number(PAYMENT_NUMBER_PREFIX)


def create_payment(*, user_id: int, order_id: int, method: str) -> PaymentIntent:
    """Open a new payment attempt for a pending order and sign its provider parameters.

    A still-pending earlier attempt for the same order is cancelled first, so
    only the newest attempt can be paid. The provider parameters are built in
    the same transaction: if that fails no payment row is left behind.
    """
    if method not in PaymentMethod.values:
        raise UnsupportedMethod(f"Unsupported payment method: {method}")
    provider = get_provider(method)

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(id=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise OrderNotFound()
        if order.user_id != user_id:
            raise AccessDenied()
        if order.is_paid:
            raise AlreadyPaid()
        if order.status != Order.STATUS_PENDING_PAYMENT:
            raise OrderNotPending()

        superseded = Payment.objects.filter(order=order, status=Payment.STATUS_PENDING).update(
            status=Payment.STATUS_CANCELLED, updated_at=timezone.now()
        )
        payment = Payment.objects.create(
            order=order,
            payment_no=generate_payment_no(),
            method=method,
            amount=order.pay_amount,
            status=Payment.STATUS_PENDING,
        )
        params = provider.build_intent(payment, order)

    logger.info(
        "payment_created",
        extra={
            "payment_no": payment.payment_no,
            "order_id": order.id,
            "order_no": order.number,
            "method": method,
            "amount": str(payment.amount),
            "superseded": superseded,
        },
    )
    return PaymentIntent(payment=payment, provider_params=params)


def _get_payment(payment_no: str, user_id: Optional[int] = None, *, for_update: bool = False) -> Payment:
    qs = Payment.objects.select_related("order")
    if for_update:
        qs = qs.select_for_update()
    try:
        payment = qs.get(payment_no=payment_no)
    except Payment.DoesNotExist:
        raise PaymentNotFound()
    if user_id is not None and payment.order.user_id != user_id:
        raise PaymentNotFound()
    return payment


def get_payment_status(*, payment_no: str, user_id: Optional[int] = None) -> Payment:
    """Pure read; ``user_id`` restricts the lookup to the buyer's own payments."""
    return _get_payment(payment_no, user_id)


@transaction.atomic
def cancel_payment(*, payment_no: str, user_id: Optional[int] = None) -> Payment:
    """Cancel a pending attempt. The order stays pending and can be paid again.

    The transition is a conditional update on ``status=PENDING`` so a callback
    landing at the same time cannot also win.
    """
    payment = _get_payment(payment_no, user_id)
    updated = Payment.objects.filter(id=payment.id, status=Payment.STATUS_PENDING).update(
        status=Payment.STATUS_CANCELLED, updated_at=timezone.now()
    )
    if not updated:
        raise InvalidPaymentState("Only pending payments can be cancelled")
    payment.refresh_from_db()
    logger.info("payment_cancelled", extra={"payment_no": payment.payment_no, "order_id": payment.order_id})
    return payment
