"""Payment providers.

Each provider builds the signed parameters the client SDK needs to start a
payment, verifies the signature on the provider's asynchronous callback and
turns the callback into a ``CallbackSignal``. Providers are plain objects
built from settings by ``get_provider``; clock and nonce source can be
injected for deterministic tests.
"""

import base64
import binascii
import hashlib
import hmac
import json
import textwrap
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, Iterable, Mapping, Optional
from urllib.parse import quote_plus

from common.choices import PaymentMethod
from common.errors import ServiceError
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from django.conf import settings
from django.utils import timezone
from django.utils.crypto import get_random_string
from rest_framework import status

SIGNAL_SUCCESS = "success"
SIGNAL_FAILURE = "failure"
SIGNAL_PENDING = "pending"


class ProviderError(ServiceError):
    code = "provider_error"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment provider is unavailable."


class UnsupportedMethod(ServiceError):
    code = "unsupported_method"
    default_message = "Unsupported payment method."


@dataclass(frozen=True)
class CallbackSignal:
    """Provider-neutral reading of a callback payload."""

    payment_no: str
    outcome: str
    trade_no: str = ""
    amount: Optional[Decimal] = None
    raw_status: str = ""


def canonical_string(params: Mapping, exclude: Iterable[str] = ("sign",)) -> str:
    """``k1=v1&k2=v2`` over keys in byte order, skipping excluded keys and empty values."""
    skip = set(exclude)
    pairs = []
    for key in sorted(params):
        value = params[key]
        if key in skip or value is None or value == "":
            continue
        pairs.append(f"{key}={value}")
    return "&".join(pairs)


def _yuan(amount) -> Decimal:
    return Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class WechatPayProvider:
    """WeChat Pay API v2 (unified order, MD5 signature)."""

    method = PaymentMethod.WECHAT
    ack_success = "SUCCESS"
    ack_failure = "FAIL"
    gateway_url = "https://api.mch.weixin.qq.com/pay/unifiedorder"

    def __init__(
        self,
        *,
        app_id: str,
        mch_id: str,
        api_key: str,
        notify_url: str,
        trade_type: str = "JSAPI",
        client_ip: str = "127.0.0.1",
        subject_prefix: str = "",
        nonce: Callable[[], str] = lambda: get_random_string(32),
    ):
        self.app_id = app_id
        self.mch_id = mch_id
        self.api_key = api_key
        self.notify_url = notify_url
        self.trade_type = trade_type
        self.client_ip = client_ip
        self.subject_prefix = subject_prefix
        self.nonce = nonce

    def sign(self, params: Mapping) -> str:
        payload = f"{canonical_string(params)}&key={self.api_key}"
        return hashlib.md5(payload.encode("utf-8")).hexdigest().upper()

    def build_intent(self, payment, order) -> dict:
        """Signed unified-order request, to be posted to the gateway by the caller."""
        if not (self.app_id and self.mch_id and self.api_key):
            raise ProviderError("WeChat Pay is not configured")
        amount_fen = int((_yuan(payment.amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
        unified_order = {
            "appid": self.app_id,
            "mch_id": self.mch_id,
            "nonce_str": self.nonce(),
            "body": f"{self.subject_prefix}{order.number}",
            "out_trade_no": payment.payment_no,
            "total_fee": amount_fen,
            "spbill_create_ip": self.client_ip,
            "notify_url": self.notify_url,
            "trade_type": self.trade_type,
        }
        unified_order["sign"] = self.sign(unified_order)
        return {"gateway_url": self.gateway_url, "unified_order": unified_order}

    def verify_callback(self, payload: Mapping) -> bool:
        sign = str(payload.get("sign") or "")
        if not sign or not self.api_key:
            return False
        return hmac.compare_digest(self.sign(payload), sign.upper())

    def is_own_merchant(self, payload: Mapping) -> bool:
        return str(payload.get("appid") or "") == self.app_id and str(payload.get("mch_id") or "") == self.mch_id

    def parse_callback(self, payload: Mapping) -> CallbackSignal:
        return_code = str(payload.get("return_code") or "")
        result_code = str(payload.get("result_code") or "")
        outcome = SIGNAL_SUCCESS if return_code == "SUCCESS" and result_code == "SUCCESS" else SIGNAL_FAILURE
        amount = None
        total_fee = payload.get("total_fee")
        if total_fee not in (None, ""):
            try:
                amount = _yuan(Decimal(str(total_fee)) / 100)
            except InvalidOperation:
                amount = None
        return CallbackSignal(
            payment_no=str(payload.get("out_trade_no") or ""),
            outcome=outcome,
            trade_no=str(payload.get("transaction_id") or ""),
            amount=amount,
            raw_status=f"{return_code}/{result_code}",
        )


class AlipayProvider:
    """Alipay OpenAPI app payment (RSA2: SHA256withRSA, PKCS#1 v1.5)."""

    method = PaymentMethod.ALIPAY
    ack_success = "success"
    ack_failure = "failure"

    SUCCESS_STATUSES = {"TRADE_SUCCESS", "TRADE_FINISHED"}
    FAILURE_STATUSES = {"TRADE_CLOSED"}

    def __init__(
        self,
        *,
        app_id: str,
        private_key: str,
        public_key: str,
        notify_url: str,
        subject_prefix: str = "",
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.app_id = app_id
        self.private_key_pem = private_key
        self.public_key_pem = public_key
        self.notify_url = notify_url
        self.subject_prefix = subject_prefix
        self.clock = clock

    @staticmethod
    def _pem(key: str, kind: str) -> bytes:
        key = (key or "").strip().replace("\\n", "\n")
        if "-----BEGIN" not in key:
            body = "\n".join(textwrap.wrap("".join(key.split()), 64))
            key = f"-----BEGIN {kind}-----\n{body}\n-----END {kind}-----"
        return key.encode("ascii")

    def _load_private_key(self):
        # Bare keys exported by Alipay's key tool are PKCS#8 or PKCS#1.
        for kind in ("PRIVATE KEY", "RSA PRIVATE KEY"):
            try:
                return serialization.load_pem_private_key(self._pem(self.private_key_pem, kind), password=None)
            except (ValueError, TypeError) as exc:
                error = exc
        raise ProviderError("Alipay merchant private key is invalid") from error

    def _load_public_key(self):
        return serialization.load_pem_public_key(self._pem(self.public_key_pem, "PUBLIC KEY"))

    def sign(self, params: Mapping) -> str:
        key = self._load_private_key()
        message = canonical_string(params).encode("utf-8")
        return base64.b64encode(key.sign(message, padding.PKCS1v15(), hashes.SHA256())).decode("ascii")

    def build_intent(self, payment, order) -> dict:
        """Signed ``alipay.trade.app.pay`` parameters and the order string for the app SDK."""
        if not (self.app_id and self.private_key_pem):
            raise ProviderError("Alipay is not configured")
        biz_content = {
            "out_trade_no": payment.payment_no,
            "total_amount": f"{_yuan(payment.amount):.2f}",
            "subject": f"{self.subject_prefix}{order.number}",
            "product_code": "QUICK_MSECURITY_PAY",
        }
        params = {
            "app_id": self.app_id,
            "method": "alipay.trade.app.pay",
            "charset": "utf-8",
            "sign_type": "RSA2",
            "timestamp": timezone.localtime(self.clock()).strftime("%Y-%m-%d %H:%M:%S"),
            "version": "1.0",
            "notify_url": self.notify_url,
            "biz_content": json.dumps(biz_content, ensure_ascii=False, separators=(",", ":")),
        }
        params["sign"] = self.sign(params)
        order_string = "&".join(f"{k}={quote_plus(str(params[k]))}" for k in sorted(params))
        return {"params": params, "order_string": order_string}

    def verify_callback(self, payload: Mapping) -> bool:
        sign = payload.get("sign")
        if not sign or not self.public_key_pem:
            return False
        message = canonical_string(payload, exclude=("sign", "sign_type")).encode("utf-8")
        try:
            self._load_public_key().verify(base64.b64decode(sign), message, padding.PKCS1v15(), hashes.SHA256())
        except (InvalidSignature, ValueError, TypeError, binascii.Error):
            return False
        return True

    def is_own_merchant(self, payload: Mapping) -> bool:
        return str(payload.get("app_id") or "") == self.app_id

    def parse_callback(self, payload: Mapping) -> CallbackSignal:
        trade_status = str(payload.get("trade_status") or "")
        if trade_status in self.SUCCESS_STATUSES:
            outcome = SIGNAL_SUCCESS
        elif trade_status in self.FAILURE_STATUSES:
            outcome = SIGNAL_FAILURE
        else:
            outcome = SIGNAL_PENDING
        amount = None
        if payload.get("total_amount") not in (None, ""):
            try:
                amount = _yuan(payload["total_amount"])
            except InvalidOperation:
                amount = None
        return CallbackSignal(
            payment_no=str(payload.get("out_trade_no") or ""),
            outcome=outcome,
            trade_no=str(payload.get("trade_no") or ""),
            amount=amount,
            raw_status=trade_status,
        )


def get_provider(method: str):
    """Build the provider for ``method`` from settings."""
    prefix = getattr(settings, "ORDER_SUBJECT_PREFIX", "")
    if method == PaymentMethod.WECHAT:
        return WechatPayProvider(
            app_id=settings.WECHAT_APP_ID,
            mch_id=settings.WECHAT_MCH_ID,
            api_key=settings.WECHAT_API_KEY,
            notify_url=settings.WECHAT_NOTIFY_URL,
            trade_type=getattr(settings, "WECHAT_TRADE_TYPE", "JSAPI"),
            subject_prefix=prefix,
        )
    if method == PaymentMethod.ALIPAY:
        return AlipayProvider(
            app_id=settings.ALIPAY_APP_ID,
            private_key=settings.ALIPAY_PRIVATE_KEY,
            public_key=settings.ALIPAY_PUBLIC_KEY,
            notify_url=settings.ALIPAY_NOTIFY_URL,
            subject_prefix=prefix,
        )
    raise UnsupportedMethod(f"Unsupported payment method: {method}")
