"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import OrderCancelView, OrderConfirmView, OrderDetailView, OrderListCreateView

app_name = "orders"

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="order-list"),
    path("<int:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<int:order_id>/cancel/", OrderCancelView.as_view(), name="order-cancel"),
    path("<int:order_id>/confirm/", OrderConfirmView.as_view(), name="order-confirm"),
]
