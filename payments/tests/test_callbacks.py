from decimal import Decimal

import pytest
from django.core import mail
from inventory.models import StockReservation
from orders.models import Order
from orders.services import cancel_order, update_status
from payments.callbacks import handle_callback
from payments.models import Payment
from payments.services import cancel_payment, create_payment
from payments.tests.payloads import alipay_notification, wechat_success


@pytest.mark.django_db
def test_wechat_success_pays_order_and_commits_stock(buyer, sku, order, sign_wechat, django_capture_on_commit_callbacks):
    assert order.total_amount == Decimal("99.00")
    sku.refresh_from_db()
    assert sku.stock == 4
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment

    with django_capture_on_commit_callbacks(execute=True):
        result = handle_callback("wechat", sign_wechat(wechat_success(payment.payment_no, transaction_id="WX-1")))

    assert result.ok is True
    assert result.ack == "SUCCESS"
    payment.refresh_from_db()
    order.refresh_from_db()
    sku.refresh_from_db()
    assert payment.status == Payment.STATUS_SUCCESS
    assert payment.trade_no == "WX-1"
    assert payment.paid_at is not None
    assert order.status == Order.STATUS_AWAITING_SHIPMENT
    assert order.payment_status == Order.PAYMENT_PAID
    assert order.paid_at == payment.paid_at
    assert sku.stock == 4
    assert sku.sales == 1
    assert StockReservation.objects.get(reference=order.reservation_reference).state == StockReservation.STATE_COMMITTED
    assert len(mail.outbox) == 1
    assert order.number in mail.outbox[0].subject


@pytest.mark.django_db
def test_duplicate_callback_is_acknowledged_without_change(buyer, sku, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    payload = sign_wechat(wechat_success(payment.payment_no))

    first = handle_callback("wechat", payload)
    payment.refresh_from_db()
    paid_at = payment.paid_at
    second = handle_callback("wechat", payload)

    assert first.ok and second.ok
    assert second.ack == "SUCCESS"
    payment.refresh_from_db()
    sku.refresh_from_db()
    assert payment.paid_at == paid_at
    assert sku.sales == 1


@pytest.mark.django_db
def test_alipay_success_pays_order(buyer, order, alipay_settings, sign_alipay):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="alipay").payment

    result = handle_callback("alipay", sign_alipay(alipay_notification(payment.payment_no)))

    assert result.ok is True
    assert result.ack == "success"
    order.refresh_from_db()
    assert order.status == Order.STATUS_AWAITING_SHIPMENT


@pytest.mark.django_db
def test_alipay_wait_buyer_pay_changes_nothing(buyer, order, alipay_settings, sign_alipay):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="alipay").payment

    result = handle_callback("alipay", sign_alipay(alipay_notification(payment.payment_no, "WAIT_BUYER_PAY")))

    assert result.ok is True
    payment.refresh_from_db()
    assert payment.status == Payment.STATUS_PENDING


@pytest.mark.django_db
def test_alipay_trade_closed_fails_the_attempt(buyer, order, alipay_settings, sign_alipay):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="alipay").payment

    result = handle_callback("alipay", sign_alipay(alipay_notification(payment.payment_no, "TRADE_CLOSED")))

    assert result.ok is True
    payment.refresh_from_db()
    order.refresh_from_db()
    assert payment.status == Payment.STATUS_FAILED
    assert order.status == Order.STATUS_PENDING_PAYMENT


@pytest.mark.django_db
def test_bad_signature_is_rejected(buyer, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    payload = sign_wechat(wechat_success(payment.payment_no))
    payload["total_fee"] = "1"

    result = handle_callback("wechat", payload)

    assert result.ok is False
    assert result.ack == "FAIL"
    payment.refresh_from_db()
    assert payment.status == Payment.STATUS_PENDING


@pytest.mark.django_db
def test_unknown_payment_is_rejected(sign_wechat):
    result = handle_callback("wechat", sign_wechat(wechat_success("PAY-does-not-exist")))

    assert result.ok is False


@pytest.mark.django_db
def test_amount_mismatch_is_rejected_and_rolled_back(buyer, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment

    result = handle_callback("wechat", sign_wechat(wechat_success(payment.payment_no, total_fee=100)))

    assert result.ok is False
    payment.refresh_from_db()
    order.refresh_from_db()
    assert payment.status == Payment.STATUS_PENDING
    assert order.status == Order.STATUS_PENDING_PAYMENT


@pytest.mark.django_db
def test_success_for_cancelled_attempt_is_acknowledged_and_ignored(buyer, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    cancel_payment(payment_no=payment.payment_no, user_id=buyer.id)

    result = handle_callback("wechat", sign_wechat(wechat_success(payment.payment_no)))

    assert result.ok is True
    payment.refresh_from_db()
    order.refresh_from_db()
    assert payment.status == Payment.STATUS_CANCELLED
    assert order.status == Order.STATUS_PENDING_PAYMENT


@pytest.mark.django_db
def test_success_after_order_cancel_never_reopens_the_order(buyer, sku, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    cancel_order(user_id=buyer.id, order_id=order.id)

    result = handle_callback("wechat", sign_wechat(wechat_success(payment.payment_no)))

    assert result.ok is True
    order.refresh_from_db()
    sku.refresh_from_db()
    assert order.status == Order.STATUS_CANCELLED
    assert sku.stock == 5
    assert sku.sales == 0


@pytest.mark.django_db
def test_failure_then_retry_with_new_attempt(buyer, order, sign_wechat):
    first = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    handle_callback("wechat", sign_wechat({**wechat_success(first.payment_no), "result_code": "FAIL"}))
    first.refresh_from_db()
    assert first.status == Payment.STATUS_FAILED

    second = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    result = handle_callback("wechat", sign_wechat(wechat_success(second.payment_no)))

    assert result.ok is True
    order.refresh_from_db()
    assert order.is_paid


@pytest.mark.django_db
def test_success_after_admin_cancel_is_acknowledged_and_ignored(buyer, sku, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment
    update_status(order_id=order.id, status=Order.STATUS_CANCELLED)
    payload = sign_wechat(wechat_success(payment.payment_no))

    results = [handle_callback("wechat", payload), handle_callback("wechat", payload)]

    assert [r.ack for r in results] == ["SUCCESS", "SUCCESS"]
    payment.refresh_from_db()
    order.refresh_from_db()
    sku.refresh_from_db()
    assert payment.status == Payment.STATUS_CANCELLED
    assert order.status == Order.STATUS_CANCELLED
    assert sku.sales == 0


@pytest.mark.django_db
def test_callback_from_other_provider_is_rejected(buyer, order, alipay_settings, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="alipay").payment

    result = handle_callback("wechat", sign_wechat(wechat_success(payment.payment_no)))

    assert result.ok is False
    assert result.ack == "FAIL"
    payment.refresh_from_db()
    order.refresh_from_db()
    assert payment.status == Payment.STATUS_PENDING
    assert not order.is_paid


@pytest.mark.django_db
def test_wechat_callback_for_another_merchant_is_rejected(buyer, order, sign_wechat):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="wechat").payment

    result = handle_callback("wechat", sign_wechat({**wechat_success(payment.payment_no), "mch_id": "1900000999"}))

    assert result.ok is False
    payment.refresh_from_db()
    assert payment.status == Payment.STATUS_PENDING


@pytest.mark.django_db
def test_alipay_callback_for_another_app_is_rejected(buyer, order, alipay_settings, sign_alipay):
    payment = create_payment(user_id=buyer.id, order_id=order.id, method="alipay").payment

    result = handle_callback(
        "alipay", sign_alipay({**alipay_notification(payment.payment_no), "app_id": "2021009999999999"})
    )

    assert result.ok is False
    assert result.ack == "failure"
    payment.refresh_from_db()
    assert payment.status == Payment.STATUS_PENDING
