"""Read-only viewsets for catalog browsing."""

from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import viewsets
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle

from . import selectors
from .models import Product
from .serializers import ProductDetailSerializer, ProductListSerializer
from .throttling import CatalogScopedRateThrottle


class ProductFilterSet(filters.FilterSet):
    min_price = filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = filters.NumberFilter(field_name="price", lookup_expr="lte")
    in_stock = filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = Product
        fields = ["min_price", "max_price", "in_stock"]

    def filter_in_stock(self, queryset, name, value):
        if value:
            return queryset.filter(stock__gt=0)
        return queryset


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description=(
            "Returns on-sale products. Supports `min_price`, `max_price`, `in_stock`, "
            "ordering by `price`, `sales` or `created_at`, and `search` over name and subtitle."
        ),
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("min_price", OpenApiTypes.NUMBER, location="query"),
            OpenApiParameter("max_price", OpenApiTypes.NUMBER, location="query"),
            OpenApiParameter("in_stock", OpenApiTypes.BOOL, location="query"),
        ],
    ),
    retrieve=extend_schema(
        summary="Get product",
        description="Returns an on-sale product with its active SKUs",
        tags=["Catalog Endpoints"],
    ),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    filterset_class = ProductFilterSet
    throttle_scope = "catalog"
    throttle_classes = [CatalogScopedRateThrottle, UserRateThrottle, AnonRateThrottle]
    filter_backends = [filters.DjangoFilterBackend, drf_filters.OrderingFilter, drf_filters.SearchFilter]
    ordering_fields = ["price", "sales", "created_at"]
    search_fields = ["name", "subtitle"]

    def get_queryset(self):
        return selectors.list_products()

    def get_serializer_class(self):
        return ProductDetailSerializer if self.action == "retrieve" else ProductListSerializer
