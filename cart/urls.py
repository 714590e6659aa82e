"""Cart URL routes (v1)."""

from django.urls import path

from .views import CartAddItemView, CartCheckoutView, CartCountView, CartDetailView, CartItemView

app_name = "cart"

urlpatterns = [
    path("", CartDetailView.as_view(), name="cart-detail"),
    path("count/", CartCountView.as_view(), name="cart-count"),
    path("items/", CartAddItemView.as_view(), name="cart-add-item"),
    path("items/<int:item_id>/", CartItemView.as_view(), name="cart-item"),
    path("checkout/", CartCheckoutView.as_view(), name="cart-checkout"),
]
