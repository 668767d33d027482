"""Unit tests for order notifiers and the status email task."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core import mail

from modules.orders.notifications import (
    CeleryEmailNotifier,
    EmailNotifier,
    LoggingNotifier,
    get_notifier,
)
from modules.orders.tasks import render_status_update, send_order_status_email

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _mail_settings(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.FRONTEND_URL = "https://shop.example.com/"
    settings.DEFAULT_FROM_EMAIL = "orders@shop.example.com"
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestRenderStatusUpdate:
    def test_subject_capitalises_new_status(self):
        message = render_status_update("ord-1", "pending", "shipped")
        assert message["subject"] == "Order Update - Shipped"

    def test_body_mentions_both_statuses_and_link(self):
        message = render_status_update("ord-1", "pending", "shipped")

        assert "from pending to shipped" in message["text"]
        assert "https://shop.example.com/orders/ord-1" in message["text"]
        assert 'href="https://shop.example.com/orders/ord-1"' in message["html"]


class TestNotifiers:
    def test_email_notifier_sends_immediately(self):
        EmailNotifier().send_order_status_update("ada@example.com", "ord-9", "pending", "confirmed")

        assert len(mail.outbox) == 1
        sent = mail.outbox[0]
        assert sent.to == ["ada@example.com"]
        assert sent.subject == "Order Update - Confirmed"
        assert sent.from_email == "orders@shop.example.com"

    def test_celery_notifier_runs_task(self):
        CeleryEmailNotifier().send_order_status_update(
            "ada@example.com", "ord-9", "confirmed", "processing"
        )

        assert len(mail.outbox) == 1
        assert mail.outbox[0].subject == "Order Update - Processing"

    def test_celery_notifier_enqueues_by_task_name(self):
        with patch(
            "modules.orders.notifications.send_order_status_email.apply_async"
        ) as apply_async:
            CeleryEmailNotifier().send_order_status_update("a@b.c", "ord-2", "pending", "cancelled")

        apply_async.assert_called_once_with(
            args=("a@b.c", "ord-2", "pending", "cancelled"), retry=False
        )
        assert send_order_status_email.name == "orders.send_order_status_email"

    def test_logging_notifier_sends_nothing(self):
        LoggingNotifier().send_order_status_update("a@b.c", "ord-2", "pending", "cancelled")
        assert mail.outbox == []


class TestGetNotifier:
    def test_uses_configured_class(self, settings):
        settings.ORDER_NOTIFIER_CLASS = "modules.orders.notifications.EmailNotifier"
        assert isinstance(get_notifier(), EmailNotifier)

    def test_logging_notifier(self, settings):
        settings.ORDER_NOTIFIER_CLASS = "modules.orders.notifications.LoggingNotifier"
        assert isinstance(get_notifier(), LoggingNotifier)


def test_task_returns_delivery_result():
    result = send_order_status_email.delay("ada@example.com", "ord-5", "shipped", "delivered")

    assert result.successful()
    assert result.result == {"order_id": "ord-5", "sent": 1}
