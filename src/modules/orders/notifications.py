"""Customer notifications about order status changes.

The concrete notifier is chosen by ``ORDER_NOTIFIER_CLASS`` (a dotted
path), so development setups can log instead of sending mail.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog
from django.conf import settings
from django.utils.module_loading import import_string

from modules.orders.tasks import deliver_status_update, order_link, send_order_status_email

logger = structlog.get_logger(__name__)

DEFAULT_NOTIFIER_CLASS = "modules.orders.notifications.CeleryEmailNotifier"


class IOrderNotifier(ABC):
    """Port used by ``OrderService`` after a committed status change."""

    @abstractmethod
    def send_order_status_update(
        self,
        to: str,
        order_id: str,
        previous_status: str,
        new_status: str,
    ) -> None:
        """Tell the customer their order moved from one status to another."""


class CeleryEmailNotifier(IOrderNotifier):
    """Queues the email on the Celery broker.

    Publishing is not retried: this runs after commit inside the request,
    so a broker outage fails at once and is logged by the caller.
    """

    def send_order_status_update(self, to, order_id, previous_status, new_status):
        send_order_status_email.apply_async(
            args=(to, str(order_id), previous_status, new_status),
            retry=False,
        )
        logger.info(
            "order.notification_queued",
            order_id=str(order_id),
            new_status=new_status,
        )


class EmailNotifier(IOrderNotifier):
    """Sends the email synchronously in the calling process."""

    def send_order_status_update(self, to, order_id, previous_status, new_status):
        deliver_status_update(to, str(order_id), previous_status, new_status)


class LoggingNotifier(IOrderNotifier):
    """Only logs the notification."""

    def send_order_status_update(self, to, order_id, previous_status, new_status):
        logger.info(
            "order.notification_logged",
            to=to,
            order_id=str(order_id),
            previous_status=previous_status,
            new_status=new_status,
            order_link=order_link(str(order_id)),
        )


def get_notifier() -> IOrderNotifier:
    notifier_class = import_string(
        getattr(settings, "ORDER_NOTIFIER_CLASS", DEFAULT_NOTIFIER_CLASS)
    )
    return notifier_class()
