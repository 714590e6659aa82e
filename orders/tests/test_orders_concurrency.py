import threading
from typing import List

import pytest
from catalog.tests.factories import ProductSKUFactory
from django.db import close_old_connections, connection
from inventory.services import InsufficientStock
from orders.models import Order
from orders.services import OrderLine, create_order
from users.tests.factories import UserFactory


def _order_worker(barrier, user_id, product_id, sku_id, successes: List[int], errors: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        order = create_order(user_id=user_id, lines=[OrderLine(product_id=product_id, sku_id=sku_id, quantity=1)])
        successes.append(order.id)
    except InsufficientStock as exc:
        errors.append(exc)
    finally:
        connection.close()


@pytest.mark.django_db(transaction=True)
def test_concurrent_orders_never_oversell_a_sku():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    sku = ProductSKUFactory(stock=2)
    users = [UserFactory() for _ in range(5)]

    barrier = threading.Barrier(len(users))
    successes: List[int] = []
    errors: List[Exception] = []
    threads = [
        threading.Thread(target=_order_worker, args=(barrier, u.id, sku.product_id, sku.id, successes, errors))
        for u in users
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    sku.refresh_from_db()
    assert len(successes) == 2
    assert len(errors) == 3
    assert sku.stock == 0
    assert Order.objects.count() == 2
