"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    """Celery loads through Django settings."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "orders"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "orders"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_tests_run_tasks_eagerly(self):
        from config import celery_app

        assert celery_app.conf.task_always_eager is True

    def test_status_email_task_is_registered(self):
        from config import celery_app
        from modules.orders import tasks  # noqa: F401

        assert "orders.send_order_status_email" in celery_app.tasks
