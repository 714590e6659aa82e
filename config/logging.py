import json
import logging
import random
from datetime import datetime, timezone

# LogRecord attributes that are bookkeeping rather than event context
_RECORD_ATTRS = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
        "name",
        "created",
        "msecs",
        "relativeCreated",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "exc_info",
        "exc_text",
        "stack_info",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    )
)


class JsonFormatter(logging.Formatter):
    """One JSON object per line for production logs.

    The message is the event name (``order_created``, ``payment_callback_applied``...)
    and everything passed through ``extra`` becomes a top-level key. Values
    that are not JSON-serializable (Decimal, datetime) are rendered with ``str``.
    Exceptions are included under ``exc_info`` as formatted text.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "event": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


class SamplingFilter(logging.Filter):
    """Probabilistically drop logs to reduce noise while keeping signal.

    - `rate`: fraction in [0.0, 1.0] of matching records to keep.
    - `levels`: level names sampling applies to; other levels always pass.
    - `allow_events`: event names that are never sampled.
    - `allow_prefixes`: event name prefixes that are never sampled (e.g. "payment_").
    """

    def __init__(
        self,
        rate: float = 1.0,
        levels: list[str] | None = None,
        allow_events: list[str] | None = None,
        allow_prefixes: list[str] | None = None,
        rng=random.random,
    ):
        super().__init__()
        self.rate = min(max(float(rate), 0.0), 1.0)
        self.levels = set(levels or ["INFO"])
        self.allow_events = set(allow_events or [])
        self.allow_prefixes = tuple(allow_prefixes or ())
        self.rng = rng

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if record.levelname not in self.levels:
            return True
        event = record.msg if isinstance(record.msg, str) else ""
        if event in self.allow_events or (self.allow_prefixes and event.startswith(self.allow_prefixes)):
            return True
        if self.rate >= 1.0:
            return True
        if self.rate <= 0.0:
            return False
        return self.rng() < self.rate
