from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory, ProductSKUFactory
from django.utils import timezone
from inventory.models import StockMovement, StockReservation
from inventory.services import InsufficientStock
from orders.models import Order, OrderItem
from orders.services import (
    AccessDenied,
    InvalidOrderState,
    InvalidRequest,
    OrderLine,
    OrderNotFound,
    ProductNotFound,
    ProductUnavailable,
    ShippingInfo,
    SkuMismatch,
    UserNotFound,
    cancel_order,
    confirm_receipt,
    create_order,
    generate_order_no,
    list_orders,
    update_status,
)
from payments.models import Payment
from users.tests.factories import UserFactory


@pytest.mark.django_db
def test_create_order_snapshots_prices_and_reserves_stock():
    user = UserFactory()
    sku = ProductSKUFactory(price=Decimal("99.00"), stock=5, name="Black / M")
    plain = ProductFactory(price=Decimal("12.50"), stock=10)

    order = create_order(
        user_id=user.id,
        lines=[
            OrderLine(product_id=sku.product_id, sku_id=sku.id, quantity=1),
            OrderLine(product_id=plain.id, quantity=2),
        ],
        shipping=ShippingInfo(receiver_name="Li Lei", receiver_phone="13800000000", receiver_address="1 Renmin Rd"),
    )

    assert order.number.startswith("ORD")
    assert order.status == Order.STATUS_PENDING_PAYMENT
    assert order.payment_status == Order.PAYMENT_UNPAID
    assert order.delivery_status == Order.DELIVERY_NOT_SHIPPED
    assert order.total_amount == Decimal("124.00")
    assert order.pay_amount == Decimal("124.00")
    assert order.receiver_name == "Li Lei"

    sku.refresh_from_db()
    plain.refresh_from_db()
    assert sku.stock == 4
    assert plain.stock == 8

    items = {i.product_id: i for i in order.items.all()}
    assert items[sku.product_id].sku_name == "Black / M"
    assert items[sku.product_id].unit_price == Decimal("99.00")
    assert items[plain.id].total_amount == Decimal("25.00")
    assert StockReservation.objects.filter(reference=order.reservation_reference).count() == 2


@pytest.mark.django_db
def test_order_snapshot_survives_catalog_edits():
    user = UserFactory()
    product = ProductFactory(name="Kettle", price=Decimal("30.00"))
    order = create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, quantity=1)])

    product.name = "Kettle v2"
    product.price = Decimal("45.00")
    product.save()

    item = OrderItem.objects.get(order=order)
    assert item.product_name == "Kettle"
    assert item.unit_price == Decimal("30.00")


@pytest.mark.django_db
def test_short_line_rolls_back_the_whole_order():
    user = UserFactory()
    plenty = ProductFactory(stock=10)
    scarce = ProductFactory(name="Scarce thing", stock=1)

    with pytest.raises(InsufficientStock) as exc:
        create_order(
            user_id=user.id,
            lines=[OrderLine(product_id=plenty.id, quantity=3), OrderLine(product_id=scarce.id, quantity=2)],
        )

    assert "Scarce thing" in exc.value.message
    plenty.refresh_from_db()
    scarce.refresh_from_db()
    assert plenty.stock == 10
    assert scarce.stock == 1
    assert not Order.objects.exists()
    assert not StockReservation.objects.exists()
    assert not StockMovement.objects.exists()


@pytest.mark.django_db
def test_create_order_validation_errors():
    user = UserFactory()
    product = ProductFactory()
    off_sale = ProductFactory(status=0)
    foreign_sku = ProductSKUFactory()

    with pytest.raises(InvalidRequest):
        create_order(user_id=user.id, lines=[])
    with pytest.raises(InvalidRequest):
        create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, quantity=0)])
    with pytest.raises(ProductNotFound):
        create_order(user_id=user.id, lines=[OrderLine(product_id=999999, quantity=1)])
    with pytest.raises(ProductUnavailable):
        create_order(user_id=user.id, lines=[OrderLine(product_id=off_sale.id, quantity=1)])
    with pytest.raises(SkuMismatch):
        create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, sku_id=foreign_sku.id, quantity=1)])
    with pytest.raises(UserNotFound):
        create_order(user_id=999999, lines=[OrderLine(product_id=product.id, quantity=1)])
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_cancel_releases_stock_and_closes_open_payment():
    user = UserFactory()
    product = ProductFactory(stock=5)
    order = create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, quantity=2)])
    payment = Payment.objects.create(order=order, payment_no="PAY-open", method="wechat", amount=order.pay_amount)

    cancelled = cancel_order(user_id=user.id, order_id=order.id)

    assert cancelled.status == Order.STATUS_CANCELLED
    product.refresh_from_db()
    assert product.stock == 5
    assert StockReservation.objects.get(reference=order.reservation_reference).state == StockReservation.STATE_RELEASED
    payment.refresh_from_db()
    assert payment.status == Payment.STATUS_CANCELLED


@pytest.mark.django_db
def test_cancel_twice_is_an_invalid_transition():
    user = UserFactory()
    product = ProductFactory(stock=5)
    order = create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, quantity=2)])
    cancel_order(user_id=user.id, order_id=order.id)

    with pytest.raises(InvalidOrderState):
        cancel_order(user_id=user.id, order_id=order.id)

    product.refresh_from_db()
    assert product.stock == 5


@pytest.mark.django_db
def test_cancel_checks_ownership():
    owner = UserFactory()
    other = UserFactory()
    order = create_order(user_id=owner.id, lines=[OrderLine(product_id=ProductFactory().id, quantity=1)])

    with pytest.raises(AccessDenied):
        cancel_order(user_id=other.id, order_id=order.id)
    with pytest.raises(OrderNotFound):
        cancel_order(user_id=owner.id, order_id=order.id + 1000)


@pytest.mark.django_db
def test_confirm_receipt_only_from_shipped():
    user = UserFactory()
    order = create_order(user_id=user.id, lines=[OrderLine(product_id=ProductFactory().id, quantity=1)])

    with pytest.raises(InvalidOrderState):
        confirm_receipt(user_id=user.id, order_id=order.id)

    update_status(order_id=order.id, status=Order.STATUS_SHIPPED)
    done = confirm_receipt(user_id=user.id, order_id=order.id)

    assert done.status == Order.STATUS_COMPLETED
    assert done.payment_status == Order.PAYMENT_PAID
    assert done.delivery_status == Order.DELIVERY_RECEIVED


@pytest.mark.django_db
def test_update_status_derives_facets():
    user = UserFactory()
    order = create_order(user_id=user.id, lines=[OrderLine(product_id=ProductFactory().id, quantity=1)])

    shipped = update_status(order_id=order.id, status=Order.STATUS_SHIPPED)

    assert shipped.payment_status == Order.PAYMENT_PAID
    assert shipped.delivery_status == Order.DELIVERY_SHIPPED
    with pytest.raises(InvalidRequest):
        update_status(order_id=order.id, status=42)
    with pytest.raises(OrderNotFound):
        update_status(order_id=order.id + 1000, status=Order.STATUS_SHIPPED)


@pytest.mark.django_db
def test_admin_cancel_returns_reserved_stock_and_closes_open_payment():
    user = UserFactory()
    product = ProductFactory(stock=4)
    order = create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, quantity=4)])
    payment = Payment.objects.create(order=order, payment_no="PAY-admin", method="wechat", amount=order.pay_amount)

    update_status(order_id=order.id, status=Order.STATUS_CANCELLED)

    product.refresh_from_db()
    assert product.stock == 4
    payment.refresh_from_db()
    assert payment.status == Payment.STATUS_CANCELLED


@pytest.mark.django_db
def test_list_orders_filters_by_status_and_keyword():
    user = UserFactory()
    product = ProductFactory(stock=10)
    a = create_order(
        user_id=user.id,
        lines=[OrderLine(product_id=product.id, quantity=1)],
        shipping=ShippingInfo(receiver_name="Han Meimei"),
    )
    b = create_order(user_id=user.id, lines=[OrderLine(product_id=product.id, quantity=1)])
    update_status(order_id=b.id, status=Order.STATUS_SHIPPED)

    assert [o.id for o in list_orders(status=Order.STATUS_SHIPPED)] == [b.id]
    assert [o.id for o in list_orders(keyword="Meimei")] == [a.id]
    assert [o.id for o in list_orders(keyword=b.number)] == [b.id]


def test_order_number_is_stamped_in_local_time(settings, monkeypatch):
    settings.TIME_ZONE = "Asia/Shanghai"
    monkeypatch.setattr(timezone, "now", lambda: datetime(2024, 1, 1, 16, 30, tzinfo=dt_timezone.utc))

    number = generate_order_no()

    assert number.startswith("ORD20240102003000000000")
    assert len(number) == len("ORD") + 20 + 6
