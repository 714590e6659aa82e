from decimal import Decimal

from common.choices import DeliveryStatus, OrderPaymentStatus, OrderStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Order(TimeStampedModel):
    """Purchase order capturing a priced snapshot of what the buyer checked out.

    ``status`` drives the lifecycle; ``payment_status`` and ``delivery_status``
    are facets derived from it on every transition.
    """

    STATUS_PENDING_PAYMENT = OrderStatus.PENDING_PAYMENT
    STATUS_AWAITING_SHIPMENT = OrderStatus.AWAITING_SHIPMENT
    STATUS_SHIPPED = OrderStatus.SHIPPED
    STATUS_COMPLETED = OrderStatus.COMPLETED
    STATUS_CANCELLED = OrderStatus.CANCELLED
    STATUS_CHOICES = OrderStatus.choices

    PAYMENT_UNPAID = OrderPaymentStatus.UNPAID
    PAYMENT_PAID = OrderPaymentStatus.PAID

    DELIVERY_NOT_SHIPPED = DeliveryStatus.NOT_SHIPPED
    DELIVERY_SHIPPED = DeliveryStatus.SHIPPED
    DELIVERY_RECEIVED = DeliveryStatus.RECEIVED

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="orders", on_delete=models.PROTECT)
    number = models.CharField(max_length=40, unique=True, editable=False)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    pay_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    freight_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.PositiveSmallIntegerField(choices=STATUS_CHOICES, default=STATUS_PENDING_PAYMENT, db_index=True)
    payment_status = models.PositiveSmallIntegerField(choices=OrderPaymentStatus.choices, default=PAYMENT_UNPAID)
    delivery_status = models.PositiveSmallIntegerField(choices=DeliveryStatus.choices, default=DELIVERY_NOT_SHIPPED)
    receiver_name = models.CharField(max_length=50, blank=True)
    receiver_phone = models.CharField(max_length=20, blank=True)
    receiver_address = models.CharField(max_length=255, blank=True)
    buyer_message = models.CharField(max_length=255, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["user", "status", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(name="order_amounts_non_negative", condition=models.Q(total_amount__gte=0, pay_amount__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order {self.number} user={self.user_id} status={self.status}"

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PAYMENT_PAID

    @property
    def reservation_reference(self) -> str:
        return f"order:{self.number}"


class OrderItem(TimeStampedModel):
    """Line item within an order.

    Snapshots product name, SKU name, image and unit price at order time;
    later catalog edits never change it.
    """

    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="order_items", on_delete=models.PROTECT)
    sku = models.ForeignKey(
        "catalog.ProductSKU", null=True, blank=True, related_name="order_items", on_delete=models.PROTECT
    )
    product_name = models.CharField(max_length=200)
    sku_name = models.CharField(max_length=100, blank=True)
    product_image = models.CharField(max_length=500, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["order", "product"]),
        ]
        constraints = [
            models.CheckConstraint(name="orderitem_price_non_negative", condition=models.Q(unit_price__gte=0)),
            models.CheckConstraint(name="orderitem_quantity_positive", condition=models.Q(quantity__gte=1)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"OrderItem#{self.id} order={self.order_id} product={self.product_id} qty={self.quantity}"


class IdempotencyKey(TimeStampedModel):
    """Stores idempotent request results to prevent duplicate processing."""

    key = models.CharField(max_length=128)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
