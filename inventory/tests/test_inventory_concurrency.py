import threading
from typing import List

import pytest
from catalog.tests.factories import ProductFactory
from django.db import close_old_connections, connection
from inventory.models import StockReservation
from inventory.services import InsufficientStock, reserve


def _reserve_worker(barrier: threading.Barrier, product_id: int, qty: int, ref: str, successes: List[str], errors):
    close_old_connections()
    barrier.wait()
    try:
        reserve(product_id=product_id, quantity=qty, reference=ref)
        successes.append(ref)
    except InsufficientStock as exc:
        errors.append(exc)
    finally:
        connection.close()


@pytest.mark.django_db(transaction=True)
def test_threaded_reservations_never_oversell():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    product = ProductFactory(stock=3)

    workers = 6
    barrier = threading.Barrier(workers)
    successes: List[str] = []
    errors: List[Exception] = []
    threads = [
        threading.Thread(target=_reserve_worker, args=(barrier, product.id, 1, f"order:T{i}", successes, errors))
        for i in range(workers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    product.refresh_from_db()
    assert len(successes) == 3
    assert len(errors) == 3
    assert product.stock == 0
    assert StockReservation.objects.filter(product=product, state=StockReservation.STATE_ACTIVE).count() == 3
