"""Custom throttles for the catalog app.

Overrides DRF's ScopedRateThrottle rate lookup to read from Django settings
at request-time, so tests using the ``settings`` fixture reliably affect rates.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class CatalogScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rf = getattr(settings, "REST_FRAMEWORK", {})
        rates = rf.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)
