import pytest
from catalog.models import Product, ProductSKU
from catalog.tests.factories import ProductFactory, ProductSKUFactory
from django.db import IntegrityError, transaction


@pytest.mark.django_db
def test_stock_cannot_go_negative_at_db_level():
    product = ProductFactory(stock=1)
    sku = ProductSKUFactory(stock=1)

    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Product.objects.filter(id=product.id).update(stock=-1)

    with pytest.raises(IntegrityError):
        with transaction.atomic():
            ProductSKU.objects.filter(id=sku.id).update(stock=-1)


@pytest.mark.django_db
def test_sku_code_unique():
    ProductSKUFactory(sku_code="DUP-1")
    with pytest.raises(IntegrityError):
        ProductSKUFactory(sku_code="DUP-1")
