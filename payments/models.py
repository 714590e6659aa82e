"""Payment attempts against orders."""

from decimal import Decimal

from common.choices import PaymentMethod, PaymentStatus
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Payment(TimeStampedModel):
    """One attempt to pay an order through a provider.

    Everything but PENDING is terminal. At most one attempt per order may be
    open (PENDING) or successful at any time.
    """

    STATUS_PENDING = PaymentStatus.PENDING
    STATUS_SUCCESS = PaymentStatus.SUCCESS
    STATUS_FAILED = PaymentStatus.FAILED
    STATUS_CANCELLED = PaymentStatus.CANCELLED
    STATUS_CHOICES = PaymentStatus.choices
    TERMINAL_STATUSES = (STATUS_SUCCESS, STATUS_FAILED, STATUS_CANCELLED)

    METHOD_WECHAT = PaymentMethod.WECHAT
    METHOD_ALIPAY = PaymentMethod.ALIPAY

    order = models.ForeignKey("orders.Order", related_name="payments", on_delete=models.PROTECT)
    payment_no = models.CharField(max_length=40, unique=True, editable=False)
    method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.PositiveSmallIntegerField(choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    trade_no = models.CharField(max_length=64, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status__in=[PaymentStatus.PENDING, PaymentStatus.SUCCESS]),
                name="one_open_payment_per_order",
            ),
            models.CheckConstraint(name="payment_amount_non_negative", condition=models.Q(amount__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Payment {self.payment_no} order={self.order_id} status={self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES
