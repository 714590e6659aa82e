"""Email utilities for the orders app.

Uses Django's email backend, with links composed from FRONTEND_URL.
"""

from django.conf import settings
from django.core.mail import send_mail


def send_order_paid_email(order) -> None:
    """Send a payment confirmation to the buyer once the order is paid.

    No-ops when the buyer has no email address.
    """
    to_email = getattr(order.user, "email", None)
    if not to_email:
        return

    subject = f"Your order {order.number} is paid"
    frontend = getattr(settings, "FRONTEND_URL", "")
    order_url = f"{frontend.rstrip('/')}/orders/{order.id}" if frontend else ""

    body = (
        "Thank you for your purchase!\n\n"
        f"Order: {order.number}\n"
        f"Amount paid: {order.pay_amount}\n"
        f"Status: {order.get_status_display()}\n"
    )
    if order_url:
        body += f"\nYou can view your order here: {order_url}\n"

    send_mail(
        subject,
        body,
        getattr(settings, "DEFAULT_FROM_EMAIL", None),
        [to_email],
        fail_silently=True,
    )
