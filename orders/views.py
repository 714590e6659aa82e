"""Orders API endpoints: buyer order lifecycle and admin order management."""

from common.errors import ServiceError, error_response, validation_error_response
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .idempotency import run_idempotent
from .serializers import (
    AdminOrderSerializer,
    OrderCreateSerializer,
    OrderDetailSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
)

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within scope+path+method",
    type=str,
)

ERROR_EXAMPLE = OpenApiExample(
    "Insufficient stock",
    value={"detail": "Insufficient stock for Espresso Machine", "code": "insufficient_stock"},
    response_only=True,
    status_codes=["409"],
)


def _status_param(request):
    value = request.query_params.get("status")
    return int(value) if value and value.isdigit() else None


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class OrderListCreateView(generics.ListAPIView):
    """List the buyer's orders, or place a new order.

    Filters:
    - `status`: one of the OrderStatus values
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination

    def get_throttles(self):
        self.throttle_scope = "orders_write" if self.request.method == "POST" else "orders"
        return super().get_throttles()

    def get_queryset(self):
        return services.list_user_orders(user_id=self.request.user.id, status=_status_param(self.request))

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        description="List current user's orders, newest first.",
        parameters=[
            OpenApiParameter(name="status", description="Order status filter", required=False, type=int),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Orders"],
        summary="Create order",
        description=(
            "Prices every line from the catalog, reserves stock and creates a pending-payment order. "
            "Idempotent when Idempotency-Key header is set."
        ),
        parameters=[IDEMPOTENCY_HEADER],
        request=OrderCreateSerializer,
        responses={201: OrderSerializer},
        examples=[
            OpenApiExample(
                "Two lines",
                value={
                    "items": [{"product_id": 1, "quantity": 1}, {"product_id": 2, "sku_id": 7, "quantity": 2}],
                    "receiver_name": "Li Lei",
                    "receiver_phone": "+8613800000000",
                    "receiver_address": "1 Renmin Rd, Shanghai",
                },
                request_only=True,
            ),
            ERROR_EXAMPLE,
        ],
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        def _handler():
            try:
                order = services.create_order(
                    user_id=request.user.id, lines=serializer.to_lines(), shipping=serializer.to_shipping()
                )
            except ServiceError as exc:
                return {"detail": exc.message, "code": exc.code}, exc.status_code
            return OrderSerializer(order).data, 201

        body, code = run_idempotent(request, _handler)
        return Response(body, status=code)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"

    @extend_schema(
        tags=["Orders"],
        summary="Get order detail",
        description="Order with its line items and every payment attempt.",
        responses={200: OrderDetailSerializer},
    )
    def get(self, request, order_id: int):
        try:
            order = services.get_order_detail(user_id=request.user.id, order_id=order_id)
        except ServiceError as exc:
            return error_response(exc)
        return Response(OrderDetailSerializer(order).data)


class OrderCancelView(APIView):
    """Cancel a pending order for the authenticated owner; its stock is returned."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Cancel order",
        description="Cancels an order that is still pending payment and releases its reserved stock.",
        request=None,
        responses={200: OrderSerializer},
        examples=[
            OpenApiExample(
                "Not pending",
                value={"detail": "Only orders pending payment can be cancelled", "code": "invalid_state"},
                response_only=True,
                status_codes=["409"],
            )
        ],
    )
    def post(self, request, order_id: int):
        try:
            order = services.cancel_order(user_id=request.user.id, order_id=order_id)
        except ServiceError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data)


class OrderConfirmView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Confirm receipt",
        description="Marks a shipped order as completed.",
        request=None,
        responses={200: OrderSerializer},
    )
    def post(self, request, order_id: int):
        try:
            order = services.confirm_receipt(user_id=request.user.id, order_id=order_id)
        except ServiceError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data)


class AdminOrderListView(generics.ListAPIView):
    """Staff listing of all orders.

    Filters:
    - `status`: one of the OrderStatus values
    - `keyword`: matches order number, receiver name or phone
    """

    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "orders"

    def get_queryset(self):
        return services.list_orders(
            status=_status_param(self.request), keyword=self.request.query_params.get("keyword")
        )

    @extend_schema(
        tags=["Orders Admin"],
        summary="List all orders",
        parameters=[
            OpenApiParameter(name="status", description="Order status filter", required=False, type=int),
            OpenApiParameter(name="keyword", description="Number, receiver name or phone", required=False, type=str),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminOrderStatusView(APIView):
    permission_classes = [IsAdminUser]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders Admin"],
        summary="Set order status",
        description=(
            "Trusted status change for fulfillment (e.g. mark shipped). The lifecycle is not enforced; "
            "payment and delivery facets follow the new status."
        ),
        request=OrderStatusUpdateSerializer,
        responses={200: AdminOrderSerializer},
        examples=[OpenApiExample("Ship", value={"status": 3}, request_only=True)],
    )
    def patch(self, request, order_id: int):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        try:
            order = services.update_status(order_id=order_id, status=serializer.validated_data["status"])
        except ServiceError as exc:
            return error_response(exc)
        return Response(AdminOrderSerializer(order).data)
