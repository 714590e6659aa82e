"""Replay-safe POST handling backed by stored responses."""

import hashlib
import json
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from .models import IdempotencyKey

KEY_TTL = timedelta(hours=24)


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def with_idempotency(
    *,
    key: str,
    user,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - Scope is derived from the caller: for authenticated users, "user:<id>"; otherwise "anon".
    - If a record exists and the stored `request_hash` differs from the provided one, returns 409.
    - If a record exists but response is not yet stored, returns 409 to indicate in-progress.
    """

    user_id = getattr(user, "id", None)
    scope = f"user:{user_id}" if user_id else "anon"
    method = str(method).upper()
    path = str(path)

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                user=user if user_id else None,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + KEY_TTL,
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload", "code": "invalid_request"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress", "code": "invalid_request"}, 409

    try:
        body, code = handler()
    except Exception:
        # Free the key so the client can retry after an unexpected failure.
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise
    IdempotencyKey.objects.filter(id=idem.id).update(response_json=_json_safe(body), response_code=code)
    return body, code


def compute_request_hash(data) -> Optional[str]:
    """SHA256 of the request body as sorted-key JSON; None when there is no body."""
    if not data:
        return None
    if hasattr(data, "dict"):
        data = data.dict()
    payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def run_idempotent(request, handler: Callable[[], Tuple[dict, int]]) -> Tuple[dict, int]:
    """Apply ``with_idempotency`` when the request carries an ``Idempotency-Key`` header."""
    idem_key = request.headers.get("Idempotency-Key")
    if not idem_key:
        return handler()
    return with_idempotency(
        key=idem_key,
        user=request.user,
        path=str(request.path),
        method=str(request.method),
        request_hash=compute_request_hash(getattr(request, "data", None)),
        handler=handler,
    )
