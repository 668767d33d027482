"""Error taxonomy shared by all modules.

Every business-rule violation raised by a Service Layer or repository is a
``DomainError`` subclass belonging to exactly one *kind*.  The kind decides
how a transport maps the error (see ``modules.core.exception_handler``);
the concrete subclass carries a stable ``code`` and machine-readable
``details`` for client remediation.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for errors returned to the immediate caller."""

    code: str = "domain_error"
    status_code: int = 500

    def __init__(
        self, message: str = "", details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}


class BadRequest(DomainError):
    """Malformed input or an illegal state change."""

    code = "bad_request"
    status_code = 400


class Forbidden(DomainError):
    """Ownership or role violation."""

    code = "forbidden"
    status_code = 403


class NotFound(DomainError):
    """The referenced entity does not exist."""

    code = "not_found"
    status_code = 404


class Conflict(DomainError):
    """The request conflicts with the current state of a shared resource."""

    code = "conflict"
    status_code = 409


class ServiceUnavailable(DomainError):
    """The backing store could not complete the operation."""

    code = "service_unavailable"
    status_code = 503
