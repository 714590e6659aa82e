import json
import logging
from decimal import Decimal

from config.logging import JsonFormatter, SamplingFilter


def _record(msg, level=logging.INFO, **extra):
    record = logging.LogRecord("mall.orders", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_flattens_extra_context():
    line = JsonFormatter().format(_record("order_created", order_no="ORD1", amount=Decimal("99.00")))
    payload = json.loads(line)

    assert payload["event"] == "order_created"
    assert payload["name"] == "mall.orders"
    assert payload["order_no"] == "ORD1"
    assert payload["amount"] == "99.00"
    assert payload["time"].endswith("Z")


def test_sampling_filter_keeps_allowed_events_and_prefixes():
    f = SamplingFilter(rate=0.0, allow_events=["order_status_changed"], allow_prefixes=["payment_"])

    assert f.filter(_record("order_status_changed")) is True
    assert f.filter(_record("payment_callback_applied")) is True
    assert f.filter(_record("order_created")) is False
    # Non-sampled levels always pass
    assert f.filter(_record("order_created", level=logging.WARNING)) is True


def test_sampling_filter_uses_rate():
    keep = SamplingFilter(rate=0.5, rng=lambda: 0.1)
    drop = SamplingFilter(rate=0.5, rng=lambda: 0.9)

    assert keep.filter(_record("order_created")) is True
    assert drop.filter(_record("order_created")) is False
