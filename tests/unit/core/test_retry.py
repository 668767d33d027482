"""Unit tests for ``retry_on_conflict``."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError

from modules.core.retry import TransactionRetryExhausted, retry_on_conflict
from modules.orders.exceptions import OrderStoreUnavailable

pytestmark = pytest.mark.unit


@pytest.fixture()
def outside_transaction():
    connection = SimpleNamespace(in_atomic_block=False)
    with patch("modules.core.retry.transaction.get_connection", return_value=connection):
        yield


@pytest.fixture(autouse=True)
def _no_sleep():
    with patch("modules.core.retry.time.sleep") as sleep:
        yield sleep


@pytest.fixture(autouse=True)
def _retry_settings(settings):
    settings.TRANSACTION_MAX_RETRIES = 3
    settings.TRANSACTION_RETRY_BACKOFF = 0.01


def test_returns_result_after_transient_failures(outside_transaction, _no_sleep):
    func = MagicMock(side_effect=[OperationalError("database is locked"), "ok"])
    func.__qualname__ = "flaky"

    assert retry_on_conflict()(func)() == "ok"
    assert func.call_count == 2
    _no_sleep.assert_called_once_with(0.01)


def test_raises_configured_error_when_budget_is_spent(outside_transaction):
    func = MagicMock(side_effect=OperationalError("deadlock detected"))
    func.__qualname__ = "always_fails"

    with pytest.raises(OrderStoreUnavailable) as exc_info:
        retry_on_conflict(error_class=OrderStoreUnavailable)(func)()

    assert func.call_count == 3
    assert exc_info.value.status_code == 503
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_default_error_class(outside_transaction):
    func = MagicMock(side_effect=OperationalError("serialization failure"))
    func.__qualname__ = "always_fails"

    with pytest.raises(TransactionRetryExhausted):
        retry_on_conflict()(func)()


def test_no_retry_inside_outer_atomic_block():
    # The test itself runs inside the pytest-django transaction.
    func = MagicMock(side_effect=OperationalError("database is locked"))
    func.__qualname__ = "nested"

    with pytest.raises(OperationalError):
        retry_on_conflict()(func)()
    assert func.call_count == 1


def test_other_errors_propagate_immediately(outside_transaction):
    func = MagicMock(side_effect=ValueError("bad input"))
    func.__qualname__ = "broken"

    with pytest.raises(ValueError):
        retry_on_conflict()(func)()
    assert func.call_count == 1
