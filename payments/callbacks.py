"""Reconcile asynchronous provider callbacks with payment, order and stock state.

Callbacks can be redelivered and can race a buyer's cancel. Every callback
is verified first, then applied under a row lock on the payment; a payment
that already reached a terminal status is acknowledged without change.
"""

import logging
from dataclasses import dataclass
from typing import Mapping

from django.db import transaction
from django.utils import timezone
from inventory.services import commit_reservations
from orders.models import Order
from orders.services import InvalidOrderState, mark_order_paid

from .models import Payment
from .providers import SIGNAL_FAILURE, SIGNAL_SUCCESS, get_provider

logger = logging.getLogger("mall.payments")


@dataclass(frozen=True)
class CallbackResult:
    ok: bool
    ack: str


class _Rejected(Exception):
    """Raised inside the unit of work to roll it back and answer with a failure ack."""


def handle_callback(method: str, payload: Mapping, *, provider=None) -> CallbackResult:
    provider = provider or get_provider(method)
    ok = CallbackResult(ok=True, ack=provider.ack_success)
    fail = CallbackResult(ok=False, ack=provider.ack_failure)

    if not provider.verify_callback(payload):
        logger.warning(
            "payment_callback_rejected",
            extra={"method": method, "reason": "bad_signature", "payment_no": payload.get("out_trade_no")},
        )
        return fail

    if not provider.is_own_merchant(payload):
        logger.warning(
            "payment_callback_rejected",
            extra={"method": method, "reason": "merchant_mismatch", "payment_no": payload.get("out_trade_no")},
        )
        return fail

    signal = provider.parse_callback(payload)
    order_id = Payment.objects.filter(payment_no=signal.payment_no).values_list("order_id", flat=True).first()
    if order_id is None:
        logger.warning(
            "payment_callback_rejected",
            extra={"method": method, "reason": "unknown_payment", "payment_no": signal.payment_no},
        )
        return fail

    try:
        with transaction.atomic():
            # Same lock order as order cancellation and payment creation: order row, then payment row.
            order = Order.objects.select_for_update().get(id=order_id)
            payment = Payment.objects.select_for_update().get(payment_no=signal.payment_no)
            if payment.method != provider.method:
                raise _Rejected("method_mismatch")

            if payment.is_terminal:
                log = logger.warning if (
                    signal.outcome == SIGNAL_SUCCESS and payment.status != Payment.STATUS_SUCCESS
                ) else logger.info
                log(
                    "payment_callback_duplicate",
                    extra={
                        "method": method,
                        "payment_no": payment.payment_no,
                        "status": payment.status,
                        "signal": signal.outcome,
                    },
                )
                return ok

            if signal.outcome == SIGNAL_SUCCESS:
                if signal.amount is None or signal.amount != payment.amount:
                    raise _Rejected("amount_mismatch")
                now = timezone.now()
                payment.status = Payment.STATUS_SUCCESS
                payment.trade_no = signal.trade_no
                payment.paid_at = now
                payment.save(update_fields=["status", "trade_no", "paid_at", "updated_at"])
                try:
                    mark_order_paid(order, paid_at=now)
                except InvalidOrderState as exc:
                    raise _Rejected("order_not_payable") from exc
                commit_reservations(reference=order.reservation_reference)
                logger.info(
                    "payment_callback_applied",
                    extra={
                        "method": method,
                        "payment_no": payment.payment_no,
                        "order_id": order.id,
                        "trade_no": signal.trade_no,
                        "signal": signal.outcome,
                    },
                )
            elif signal.outcome == SIGNAL_FAILURE:
                payment.status = Payment.STATUS_FAILED
                payment.save(update_fields=["status", "updated_at"])
                logger.info(
                    "payment_callback_applied",
                    extra={
                        "method": method,
                        "payment_no": payment.payment_no,
                        "order_id": payment.order_id,
                        "signal": signal.outcome,
                        "provider_status": signal.raw_status,
                    },
                )
            else:
                logger.info(
                    "payment_callback_ignored",
                    extra={"method": method, "payment_no": payment.payment_no, "provider_status": signal.raw_status},
                )
    except _Rejected as exc:
        log = logger.error if str(exc) == "order_not_payable" else logger.warning
        log(
            "payment_callback_rejected",
            extra={"method": method, "reason": str(exc), "payment_no": signal.payment_no},
        )
        return fail
    return ok
