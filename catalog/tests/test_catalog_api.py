from decimal import Decimal

import pytest
from catalog import selectors
from catalog.models import Product, ProductSKU
from catalog.tests.factories import ProductFactory, ProductSKUFactory
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_products_list_hides_off_sale_and_supports_filters():
    cheap = ProductFactory(name="Bamboo Toothbrush", price=Decimal("9.90"), stock=3)
    pricey = ProductFactory(name="Espresso Machine", price=Decimal("1299.00"), stock=0)
    ProductFactory(name="Retired Kettle", status=Product.STATUS_OFF_SALE)

    client = APIClient()
    resp = client.get("/api/v1/catalog/products/")
    assert resp.status_code == 200
    ids = {r["id"] for r in resp.data["results"]}
    assert ids == {cheap.id, pricey.id}

    resp_price = client.get("/api/v1/catalog/products/?max_price=100")
    assert [r["id"] for r in resp_price.data["results"]] == [cheap.id]

    resp_stock = client.get("/api/v1/catalog/products/?in_stock=true")
    assert [r["id"] for r in resp_stock.data["results"]] == [cheap.id]

    resp_search = client.get("/api/v1/catalog/products/?search=espresso")
    assert [r["id"] for r in resp_search.data["results"]] == [pricey.id]

    resp_order = client.get("/api/v1/catalog/products/?ordering=-price")
    prices = [Decimal(r["price"]) for r in resp_order.data["results"]]
    assert prices == sorted(prices, reverse=True)


@pytest.mark.django_db
def test_product_detail_lists_only_active_skus():
    product = ProductFactory()
    active = ProductSKUFactory(product=product, sku_code="TEE-RED-M")
    ProductSKUFactory(product=product, sku_code="TEE-RED-XL", status=ProductSKU.STATUS_INACTIVE)

    client = APIClient()
    resp = client.get(f"/api/v1/catalog/products/{product.id}/")
    assert resp.status_code == 200
    assert [s["id"] for s in resp.data["skus"]] == [active.id]


@pytest.mark.django_db
def test_off_sale_product_detail_is_not_found():
    product = ProductFactory(status=Product.STATUS_OFF_SALE)
    resp = APIClient().get(f"/api/v1/catalog/products/{product.id}/")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_snapshot_reads():
    sku = ProductSKUFactory(price=Decimal("49.50"), stock=7)

    snap = selectors.get_sku(sku.id)
    assert snap.product_id == sku.product_id
    assert snap.price == Decimal("49.50")
    assert snap.stock == 7
    assert snap.active is True

    product = selectors.get_product(sku.product_id)
    assert product.active is True

    assert selectors.get_product(999999) is None
    assert selectors.get_sku(999999) is None
