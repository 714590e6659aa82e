"""URL routes for the payments app (v1)."""

from django.urls import path

from .views import AlipayCallbackView, PaymentCancelView, PaymentCreateView, PaymentStatusView, WechatCallbackView

app_name = "payments"

urlpatterns = [
    path("", PaymentCreateView.as_view(), name="payment-create"),
    path("callbacks/wechat/", WechatCallbackView.as_view(), name="payment-callback-wechat"),
    path("callbacks/alipay/", AlipayCallbackView.as_view(), name="payment-callback-alipay"),
    path("<str:payment_no>/", PaymentStatusView.as_view(), name="payment-status"),
    path("<str:payment_no>/cancel/", PaymentCancelView.as_view(), name="payment-cancel"),
]
