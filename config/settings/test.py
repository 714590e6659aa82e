from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK
from .base import *  # noqa

# Test settings: force SQLite unless a Postgres run is requested explicitly
DEBUG = False

if DB_ENGINE.lower() != "postgres":  # noqa: F405
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "test_db.sqlite3",  # noqa: F405
        }
    }

# Keep email in memory so tests can inspect the outbox
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

# Fast hashing for factories
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Plain static storage; tests never run collectstatic
STORAGES = {
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

# Relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    scope: "1000/min" for scope in BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {})
}

# Deterministic payment provider credentials; Alipay keys are generated per test
WECHAT_APP_ID = "wx-test-app"
WECHAT_MCH_ID = "1900000109"
WECHAT_API_KEY = "test-wechat-api-key-0123456789ab"
WECHAT_NOTIFY_URL = "https://shop.example.com/api/v1/payments/callbacks/wechat/"
ALIPAY_APP_ID = "2021000000000000"
ALIPAY_PRIVATE_KEY = ""
ALIPAY_PUBLIC_KEY = ""
ALIPAY_NOTIFY_URL = "https://shop.example.com/api/v1/payments/callbacks/alipay/"
ORDER_SUBJECT_PREFIX = "Mall order "
