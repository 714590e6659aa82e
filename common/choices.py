"""Shared enumerations and choices used across apps."""

from django.db import models


class ActiveInactive(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class ProductStatus(models.IntegerChoices):
    """Sale status of a catalog product."""

    OFF_SALE = 0, "Off sale"
    ON_SALE = 1, "On sale"


class MovementType(models.TextChoices):
    RESERVE = "reserve", "Reserve"
    RELEASE = "release", "Release"
    INBOUND = "inbound", "Inbound"
    ADJUST = "adjust", "Adjust"


class ReservationState(models.TextChoices):
    ACTIVE = "active", "Active"
    RELEASED = "released", "Released"
    COMMITTED = "committed", "Committed"


class OrderStatus(models.IntegerChoices):
    """Lifecycle statuses for orders.

    PENDING_PAYMENT -> AWAITING_SHIPMENT -> SHIPPED -> COMPLETED, with
    CANCELLED reachable only from PENDING_PAYMENT.
    """

    PENDING_PAYMENT = 1, "Pending payment"
    AWAITING_SHIPMENT = 2, "Awaiting shipment"
    SHIPPED = 3, "Shipped"
    COMPLETED = 4, "Completed"
    CANCELLED = 5, "Cancelled"


class OrderPaymentStatus(models.IntegerChoices):
    UNPAID = 0, "Unpaid"
    PAID = 1, "Paid"


class DeliveryStatus(models.IntegerChoices):
    NOT_SHIPPED = 0, "Not shipped"
    SHIPPED = 1, "Shipped"
    RECEIVED = 2, "Received"


class PaymentStatus(models.IntegerChoices):
    """Statuses for a single payment attempt. Everything but PENDING is terminal."""

    PENDING = 0, "Pending"
    SUCCESS = 1, "Success"
    FAILED = 2, "Failed"
    CANCELLED = 3, "Cancelled"


class PaymentMethod(models.TextChoices):
    WECHAT = "wechat", "WeChat Pay"
    ALIPAY = "alipay", "Alipay"
