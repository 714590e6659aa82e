"""Payments API: intents for buyers and provider callback endpoints."""

from common.errors import ServiceError, error_response, validation_error_response
from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, extend_schema
from orders.idempotency import run_idempotent
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import services
from .callbacks import handle_callback
from .models import Payment
from .serializers import PaymentCreateSerializer, PaymentIntentSerializer, PaymentSerializer


class PaymentCreateView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments_write"

    @extend_schema(
        tags=["Payments"],
        summary="Create payment",
        description=(
            "Opens a payment attempt for a pending order and returns the signed provider parameters. "
            "A still-pending earlier attempt for the order is cancelled. "
            "Idempotent when Idempotency-Key header is set."
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
        request=PaymentCreateSerializer,
        responses={201: PaymentIntentSerializer},
        examples=[
            OpenApiExample("WeChat Pay", value={"order_id": 42, "method": "wechat"}, request_only=True),
            OpenApiExample(
                "Already paid",
                value={"detail": "Order is already paid.", "code": "already_paid"},
                response_only=True,
                status_codes=["409"],
            ),
        ],
    )
    def post(self, request):
        serializer = PaymentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        def _handler():
            try:
                intent = services.create_payment(
                    user_id=request.user.id,
                    order_id=serializer.validated_data["order_id"],
                    method=serializer.validated_data["method"],
                )
            except ServiceError as exc:
                return {"detail": exc.message, "code": exc.code}, exc.status_code
            return PaymentIntentSerializer(intent).data, 201

        body, code = run_idempotent(request, _handler)
        return Response(body, status=code)


class PaymentStatusView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments"

    @extend_schema(tags=["Payments"], summary="Get payment status", responses={200: PaymentSerializer})
    def get(self, request, payment_no: str):
        try:
            payment = services.get_payment_status(payment_no=payment_no, user_id=request.user.id)
        except ServiceError as exc:
            return error_response(exc)
        return Response(PaymentSerializer(payment).data)


class PaymentCancelView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments_write"

    @extend_schema(
        tags=["Payments"],
        summary="Cancel payment",
        description="Cancels a pending payment attempt. The order stays pending and can be paid again.",
        request=None,
        responses={200: PaymentSerializer},
    )
    def post(self, request, payment_no: str):
        try:
            payment = services.cancel_payment(payment_no=payment_no, user_id=request.user.id)
        except ServiceError as exc:
            return error_response(exc)
        return Response(PaymentSerializer(payment).data)


class ProviderCallbackView(APIView):
    """Asynchronous payment notification from a provider.

    Unauthenticated: authenticity comes from the provider signature. The
    response body is the provider's literal acknowledgment.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "payment_callbacks"
    parser_classes = [JSONParser, FormParser, MultiPartParser]
    method = None

    @extend_schema(
        tags=["Payments"],
        summary="Provider payment callback",
        request=OpenApiTypes.OBJECT,
        responses={
            200: OpenApiResponse(description="Provider success acknowledgment (plain text)"),
            400: OpenApiResponse(description="Provider failure acknowledgment (plain text)"),
        },
    )
    def post(self, request):
        data = request.data
        payload = data.dict() if hasattr(data, "dict") else dict(data)
        result = handle_callback(self.method, payload)
        return HttpResponse(result.ack, status=200 if result.ok else 400, content_type="text/plain")


class WechatCallbackView(ProviderCallbackView):
    method = Payment.METHOD_WECHAT


class AlipayCallbackView(ProviderCallbackView):
    method = Payment.METHOD_ALIPAY
