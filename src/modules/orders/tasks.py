"""Asynchronous tasks of the orders module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = structlog.get_logger(__name__)


def order_link(order_id: str) -> str:
    frontend_url = getattr(settings, "FRONTEND_URL", "http://localhost:5173")
    return f"{frontend_url.rstrip('/')}/orders/{order_id}"


def render_status_update(order_id: str, previous_status: str, new_status: str) -> dict:
    """Build subject, plain-text and HTML bodies of a status update email."""
    link = order_link(order_id)
    subject = f"Order Update - {new_status.capitalize()}"
    text = (
        f"Your order #{order_id} status has been updated from {previous_status} "
        f"to {new_status}.\n\nView your order: {link}"
    )
    html = (
        "<h2>Order Status Update</h2>"
        f"<p>Your order #{order_id} status has been updated.</p>"
        f"<p><strong>Previous Status:</strong> {previous_status}</p>"
        f"<p><strong>New Status:</strong> {new_status}</p>"
        f'<p><a href="{link}">View Order</a></p>'
    )
    return {"subject": subject, "text": text, "html": html}


def deliver_status_update(
    to: str, order_id: str, previous_status: str, new_status: str
) -> int:
    message = render_status_update(order_id, previous_status, new_status)
    sent = send_mail(
        subject=message["subject"],
        message=message["text"],
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[to],
        html_message=message["html"],
    )
    logger.info(
        "order.status_email_sent",
        order_id=order_id,
        new_status=new_status,
        sent=sent,
    )
    return sent


@shared_task(name="orders.send_order_status_email")
def send_order_status_email(
    to: str, order_id: str, previous_status: str, new_status: str
) -> dict:
    """Send the status update email for one order."""
    sent = deliver_status_update(to, order_id, previous_status, new_status)
    return {"order_id": order_id, "sent": sent}
