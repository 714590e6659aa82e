"""
URL configuration for the mall project.

Every API route is versioned under /api/v1/. Buyer endpoints are scoped to
the authenticated user; admin endpoints live under /api/v1/admin/ and
/api/v1/inventory/ and require staff; payment provider callbacks are public
and authenticated by their signature.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .health import health

admin.site.site_header = "Mall Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    path("api/v1/health/", health, name="health-v1"),
    # Versioned v1 routes only
    path("api/v1/auth/", include("users.urls")),
    path("api/v1/catalog/", include("catalog.urls")),
    path("api/v1/cart/", include("cart.urls")),
    path("api/v1/orders/", include("orders.urls")),
    path("api/v1/admin/orders/", include("orders.admin_urls")),
    path("api/v1/payments/", include("payments.urls")),
    path("api/v1/inventory/", include("inventory.urls")),
]
