import base64
from decimal import Decimal

import pytest
from catalog.tests.factories import ProductSKUFactory
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from orders.services import OrderLine, create_order
from payments.providers import canonical_string, get_provider
from users.tests.factories import UserFactory


@pytest.fixture(scope="session")
def alipay_keys():
    """Fresh RSA key pair standing in for the merchant key and Alipay's public key."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = (
        private_key.public_key()
        .public_bytes(encoding=serialization.Encoding.PEM, format=serialization.PublicFormat.SubjectPublicKeyInfo)
        .decode("ascii")
    )
    return private_key, private_pem, public_pem


@pytest.fixture
def alipay_settings(settings, alipay_keys):
    _, private_pem, public_pem = alipay_keys
    settings.ALIPAY_PRIVATE_KEY = private_pem
    settings.ALIPAY_PUBLIC_KEY = public_pem
    return settings


@pytest.fixture
def sign_alipay(alipay_keys):
    private_key = alipay_keys[0]

    def _sign(payload: dict) -> dict:
        message = canonical_string(payload, exclude=("sign", "sign_type")).encode("utf-8")
        signature = private_key.sign(message, padding.PKCS1v15(), hashes.SHA256())
        return {**payload, "sign": base64.b64encode(signature).decode("ascii"), "sign_type": "RSA2"}

    return _sign


@pytest.fixture
def sign_wechat():
    def _sign(payload: dict) -> dict:
        return {**payload, "sign": get_provider("wechat").sign(payload)}

    return _sign


@pytest.fixture
def buyer():
    return UserFactory()


@pytest.fixture
def sku():
    return ProductSKUFactory(price=Decimal("99.00"), stock=5)


@pytest.fixture
def order(buyer, sku):
    return create_order(user_id=buyer.id, lines=[OrderLine(product_id=sku.product_id, sku_id=sku.id, quantity=1)])
