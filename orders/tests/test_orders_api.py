from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory, ProductSKUFactory
from orders.models import IdempotencyKey, Order
from rest_framework.test import APIClient
from users.tests.factories import UserFactory


@pytest.fixture
def buyer():
    return UserFactory()


@pytest.fixture
def client(buyer):
    c = APIClient()
    c.force_authenticate(user=buyer)
    return c


def _place(client, product, quantity=1, **headers):
    return client.post(
        "/api/v1/orders/",
        {"items": [{"product_id": product.id, "quantity": quantity}], "receiver_name": "Li Lei"},
        format="json",
        **headers,
    )


@pytest.mark.django_db
def test_create_and_list_orders(client):
    sku = ProductSKUFactory(price=Decimal("99.00"), stock=5)

    r = client.post(
        "/api/v1/orders/",
        {"items": [{"product_id": sku.product_id, "sku_id": sku.id, "quantity": 1}]},
        format="json",
    )

    assert r.status_code == 201
    body = r.json()
    assert body["number"].startswith("ORD")
    assert body["status"] == Order.STATUS_PENDING_PAYMENT
    assert body["status_label"] == "Pending payment"
    assert body["pay_amount"] == "99.00"
    assert body["items"][0]["sku_id"] == sku.id
    sku.refresh_from_db()
    assert sku.stock == 4

    listed = client.get("/api/v1/orders/")
    assert listed.status_code == 200
    assert [o["id"] for o in listed.json()["results"]] == [body["id"]]


@pytest.mark.django_db
def test_create_order_requires_auth():
    r = APIClient().post("/api/v1/orders/", {"items": [{"product_id": 1, "quantity": 1}]}, format="json")
    assert r.status_code in (401, 403)


@pytest.mark.django_db
def test_create_order_rejects_bad_payload(client):
    r = client.post("/api/v1/orders/", {"items": []}, format="json")

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_request"


@pytest.mark.django_db
def test_create_order_insufficient_stock_is_conflict(client):
    product = ProductFactory(stock=1)

    r = _place(client, product, quantity=2)

    assert r.status_code == 409
    assert r.json()["code"] == "insufficient_stock"
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_idempotent_create_replays_first_response(client):
    product = ProductFactory(stock=5)

    first = _place(client, product, HTTP_IDEMPOTENCY_KEY="order-key-1")
    second = _place(client, product, HTTP_IDEMPOTENCY_KEY="order-key-1")

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert Order.objects.count() == 1
    product.refresh_from_db()
    assert product.stock == 4


@pytest.mark.django_db
def test_idempotency_key_reuse_with_other_body_conflicts(client):
    product = ProductFactory(stock=5)

    _place(client, product, quantity=1, HTTP_IDEMPOTENCY_KEY="order-key-2")
    r = _place(client, product, quantity=2, HTTP_IDEMPOTENCY_KEY="order-key-2")

    assert r.status_code == 409
    assert r.json()["code"] == "invalid_request"
    assert Order.objects.count() == 1


@pytest.mark.django_db
def test_detail_cancel_and_confirm_endpoints(client, buyer):
    product = ProductFactory(stock=3)
    order_id = _place(client, product).json()["id"]

    detail = client.get(f"/api/v1/orders/{order_id}/")
    assert detail.status_code == 200
    assert detail.json()["payments"] == []

    not_shipped = client.post(f"/api/v1/orders/{order_id}/confirm/")
    assert not_shipped.status_code == 409
    assert not_shipped.json()["code"] == "invalid_state"

    cancelled = client.post(f"/api/v1/orders/{order_id}/cancel/")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == Order.STATUS_CANCELLED
    product.refresh_from_db()
    assert product.stock == 3

    again = client.post(f"/api/v1/orders/{order_id}/cancel/")
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_state"


@pytest.mark.django_db
def test_other_users_order_is_forbidden(client):
    product = ProductFactory(stock=3)
    order_id = _place(client, product).json()["id"]
    stranger = APIClient()
    stranger.force_authenticate(user=UserFactory())

    r = stranger.get(f"/api/v1/orders/{order_id}/")

    assert r.status_code == 403
    assert r.json()["code"] == "access_denied"
    assert stranger.get("/api/v1/orders/999999/").status_code == 404


@pytest.mark.django_db
def test_admin_lists_and_ships_orders(client):
    product = ProductFactory(stock=3)
    order_id = _place(client, product).json()["id"]
    admin = APIClient()
    admin.force_authenticate(user=UserFactory(is_staff=True))

    listed = admin.get("/api/v1/admin/orders/", {"keyword": "Li Lei"})
    assert listed.status_code == 200
    assert listed.json()["results"][0]["id"] == order_id

    shipped = admin.patch(f"/api/v1/admin/orders/{order_id}/status/", {"status": 3}, format="json")
    assert shipped.status_code == 200
    assert shipped.json()["status"] == Order.STATUS_SHIPPED
    assert shipped.json()["delivery_status"] == Order.DELIVERY_SHIPPED

    bad = admin.patch(f"/api/v1/admin/orders/{order_id}/status/", {"status": 42}, format="json")
    assert bad.status_code == 400

    confirmed = client.post(f"/api/v1/orders/{order_id}/confirm/")
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == Order.STATUS_COMPLETED


@pytest.mark.django_db
def test_admin_endpoints_require_staff(client):
    assert client.get("/api/v1/admin/orders/").status_code == 403


@pytest.mark.django_db
def test_cleanup_idempotency_command_deletes_expired_keys(buyer):
    from datetime import timedelta

    from django.core.management import call_command
    from django.utils import timezone

    now = timezone.now()
    IdempotencyKey.objects.create(key="old", scope="anon", path="/x", method="POST", expires_at=now - timedelta(hours=1))
    IdempotencyKey.objects.create(key="new", scope="anon", path="/x", method="POST", expires_at=now + timedelta(hours=1))

    call_command("cleanup_idempotency", "--dry-run")
    assert IdempotencyKey.objects.count() == 2

    call_command("cleanup_idempotency")
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["new"]
