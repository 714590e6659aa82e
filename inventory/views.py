"""Administrative inventory views: movement ledger, reservations and restocking."""

from common.errors import ServiceError, error_response
from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import generics, permissions, status
from rest_framework.response import Response

from .models import StockMovement, StockReservation
from .serializers import StockMovementCreateSerializer, StockMovementSerializer, StockReservationSerializer
from .services import apply_movement


class MovementListCreateView(generics.ListAPIView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = StockMovementSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock movements",
        description=(
            "List movements (reserve/release/inbound/adjust). "
            "Filters: product_id, sku_id, movement_type, reference, created_after (ISO)."
        ),
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Apply stock movement",
        description="Restock (inbound) or adjust a stock unit. Deductions never take stock below zero.",
        request=StockMovementCreateSerializer,
        responses={201: StockMovementSerializer},
        examples=[
            OpenApiExample(
                "Restock",
                value={"product_id": 1, "sku_id": None, "movement_type": "inbound", "quantity": 25, "reason": "PO-17"},
                request_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = StockMovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            movement = apply_movement(**serializer.validated_data)
        except ServiceError as exc:
            return error_response(exc)
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)

    def get_queryset(self):
        qs = StockMovement.objects.order_by("-created_at", "id")
        params = self.request.query_params
        if params.get("product_id"):
            qs = qs.filter(product_id=params["product_id"])
        if params.get("sku_id"):
            qs = qs.filter(sku_id=params["sku_id"])
        if params.get("movement_type"):
            qs = qs.filter(movement_type=params["movement_type"])
        if params.get("reference"):
            qs = qs.filter(reference=params["reference"])
        created_after = params.get("created_after")
        if created_after:
            dt = parse_datetime(created_after)
            if dt:
                qs = qs.filter(created_at__gte=dt)
        return qs


class ReservationListView(generics.ListAPIView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = StockReservationSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock reservations",
        description="List reservations. Filters: product_id, state (active/released/committed), reference.",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        qs = StockReservation.objects.order_by("-created_at", "id")
        params = self.request.query_params
        if params.get("product_id"):
            qs = qs.filter(product_id=params["product_id"])
        if params.get("state"):
            qs = qs.filter(state=params["state"])
        if params.get("reference"):
            qs = qs.filter(reference=params["reference"])
        return qs
