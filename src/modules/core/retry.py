"""Bounded retry for transactions aborted by concurrent writers.

Deadlocks, serialization failures and SQLite's "database is locked" all
surface from Django as ``OperationalError``.  The whole transaction is
re-run from scratch, so the decorator must wrap the *outermost* atomic
block: inside an enclosing ``transaction.atomic()`` the connection is
already unusable after the error and only the owner of that block can
retry.
"""

from __future__ import annotations

import functools
import time
from typing import Any, Callable, Type, TypeVar, cast

import structlog
from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction

from modules.core.exceptions import ServiceUnavailable

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class TransactionRetryExhausted(ServiceUnavailable):
    """Contention persisted through every retry attempt."""

    code = "transaction_retry_exhausted"


def retry_on_conflict(
    error_class: Type[ServiceUnavailable] = TransactionRetryExhausted,
    using: str = DEFAULT_DB_ALIAS,
) -> Callable[[F], F]:
    """Re-run the decorated transactional function on ``OperationalError``.

    Attempts and linear back-off come from ``TRANSACTION_MAX_RETRIES`` and
    ``TRANSACTION_RETRY_BACKOFF``.  Once the budget is spent ``error_class``
    is raised, chained to the last database error.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if transaction.get_connection(using).in_atomic_block:
                return func(*args, **kwargs)

            max_attempts = max(1, int(getattr(settings, "TRANSACTION_MAX_RETRIES", 3)))
            backoff = float(getattr(settings, "TRANSACTION_RETRY_BACKOFF", 0.05))

            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except OperationalError as exc:
                    log = logger.bind(
                        operation=func.__qualname__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        error=str(exc),
                    )
                    if attempt >= max_attempts:
                        log.error("transaction.retry_exhausted")
                        raise error_class(
                            f"{func.__qualname__} failed after {max_attempts} "
                            f"attempts due to concurrent updates."
                        ) from exc
                    log.warning("transaction.conflict_retry")
                    time.sleep(backoff * attempt)
                    attempt += 1

        return cast(F, wrapper)

    return decorator
