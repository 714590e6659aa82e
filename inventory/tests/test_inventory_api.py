import pytest
from catalog.tests.factories import ProductFactory
from inventory.models import StockMovement, StockReservation
from inventory.services import reserve
from rest_framework.test import APIClient
from users.tests.factories import UserFactory


@pytest.fixture
def admin_client():
    client = APIClient()
    client.force_authenticate(user=UserFactory(is_staff=True))
    return client


@pytest.mark.django_db
def test_inventory_endpoints_require_staff():
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    assert client.get("/api/v1/inventory/movements/").status_code == 403
    assert client.get("/api/v1/inventory/reservations/").status_code == 403


@pytest.mark.django_db
def test_restock_via_api_and_list_filters(admin_client):
    product = ProductFactory(stock=2)
    resp = admin_client.post(
        "/api/v1/inventory/movements/",
        {"product_id": product.id, "movement_type": "inbound", "quantity": 8, "reason": "PO-1"},
        format="json",
    )
    assert resp.status_code == 201
    product.refresh_from_db()
    assert product.stock == 10

    reserve(product_id=product.id, quantity=1, reference="order:X")

    listed = admin_client.get(f"/api/v1/inventory/movements/?movement_type={StockMovement.TYPE_INBOUND}")
    assert listed.status_code == 200
    assert [row["quantity"] for row in listed.data["results"]] == [8]

    res = admin_client.get(f"/api/v1/inventory/reservations/?state={StockReservation.STATE_ACTIVE}")
    assert [row["reference"] for row in res.data["results"]] == ["order:X"]


@pytest.mark.django_db
def test_adjust_below_zero_is_conflict(admin_client):
    product = ProductFactory(stock=1)
    resp = admin_client.post(
        "/api/v1/inventory/movements/",
        {"product_id": product.id, "movement_type": "adjust", "quantity": -5},
        format="json",
    )
    assert resp.status_code == 409
    assert resp.data["code"] == "insufficient_stock"


@pytest.mark.django_db
def test_inbound_must_be_positive(admin_client):
    product = ProductFactory(stock=1)
    resp = admin_client.post(
        "/api/v1/inventory/movements/",
        {"product_id": product.id, "movement_type": "inbound", "quantity": -5},
        format="json",
    )
    assert resp.status_code == 400
