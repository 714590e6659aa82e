"""DRF views for cart operations."""

from common.errors import ServiceError, error_response, validation_error_response
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from orders.idempotency import run_idempotent
from orders.serializers import CheckoutSerializer, OrderSerializer
from orders.services import create_order_from_cart
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .selectors import cart_count, cart_summary
from .serializers import AddItemSerializer, CartReadSerializer, UpdateItemQuantitySerializer
from .services import add_item, clear_cart, remove_item, update_item_quantity


class CartDetailView(APIView):
    """Return or clear the authenticated user's cart."""

    permission_classes = [IsAuthenticated]

    def get_throttles(self):
        self.throttle_scope = "cart_write" if self.request.method == "DELETE" else "cart"
        return super().get_throttles()

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart",
        description="Returns the cart lines priced with current catalog prices, plus totals.",
        responses={200: CartReadSerializer},
        examples=[
            OpenApiExample(
                "Cart",
                value={
                    "id": 1,
                    "items": [
                        {
                            "id": 10,
                            "product_id": 100,
                            "product_name": "Espresso Machine",
                            "product_image": "",
                            "sku_id": None,
                            "sku_name": "",
                            "price": "1299.00",
                            "quantity": 1,
                            "total_price": "1299.00",
                            "stock": 4,
                            "on_sale": True,
                        }
                    ],
                    "total_amount": "1299.00",
                    "total_count": 1,
                },
                response_only=True,
            )
        ],
    )
    def get(self, request):
        data = CartReadSerializer(cart_summary(user=request.user)).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Cart Endpoints"], summary="Clear cart", responses={204: None})
    def delete(self, request):
        clear_cart(user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartCountView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Cart item count",
        responses={200: inline_serializer(name="CartCountResponse", fields={"count": rf_serializers.IntegerField()})},
    )
    def get(self, request):
        return Response({"count": cart_count(user=request.user)})


class CartAddItemView(APIView):
    """Add an item to the cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description="Adds a product (optionally a SKU) to the cart; an existing line is incremented.",
        request=AddItemSerializer,
        responses={
            201: inline_serializer(
                name="CartItemCreatedResponse",
                fields={"id": rf_serializers.IntegerField(), "quantity": rf_serializers.IntegerField()},
            ),
        },
        examples=[OpenApiExample("Add", value={"product_id": 100, "sku_id": 7, "quantity": 2}, request_only=True)],
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        try:
            item = add_item(user=request.user, **serializer.validated_data)
        except ServiceError as exc:
            return error_response(exc)
        return Response({"id": item.id, "quantity": item.quantity}, status=status.HTTP_201_CREATED)


class CartItemView(APIView):
    """Update or remove a single cart line."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Update cart item quantity",
        request=UpdateItemQuantitySerializer,
        responses={
            200: inline_serializer(
                name="CartItemUpdatedResponse",
                fields={"id": rf_serializers.IntegerField(), "quantity": rf_serializers.IntegerField()},
            ),
        },
    )
    def patch(self, request, item_id: int):
        serializer = UpdateItemQuantitySerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        try:
            item = update_item_quantity(user=request.user, item_id=item_id, **serializer.validated_data)
        except ServiceError as exc:
            return error_response(exc)
        return Response({"id": item.id, "quantity": item.quantity})

    @extend_schema(tags=["Cart Endpoints"], summary="Remove cart item", responses={204: None})
    def delete(self, request, item_id: int):
        remove_item(user=request.user, item_id=item_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartCheckoutView(APIView):
    """Place an order from the cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Checkout cart",
        description=(
            "Creates a pending-payment order from the cart (or the given `item_ids`), reserving stock, "
            "and removes the purchased lines. Idempotent when Idempotency-Key header is set."
        ),
        parameters=[
            OpenApiParameter(
                name="Idempotency-Key",
                location=OpenApiParameter.HEADER,
                required=False,
                description="Makes the request idempotent within scope+path+method",
                type=str,
            )
        ],
        request=CheckoutSerializer,
        responses={201: OrderSerializer},
    )
    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        def _handler():
            try:
                order = create_order_from_cart(
                    user=request.user,
                    shipping=serializer.to_shipping(),
                    item_ids=serializer.validated_data.get("item_ids"),
                )
            except ServiceError as exc:
                return {"detail": exc.message, "code": exc.code}, exc.status_code
            return OrderSerializer(order).data, 201

        body, code = run_idempotent(request, _handler)
        return Response(body, status=code)
