"""DRF exception handler producing one error envelope for every failure.

Shape::

    {
        "type": "validation_error" | "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "field" | null}],
        "meta": {...}            # only for domain errors carrying details
    }

Domain errors are mapped by kind (``BadRequest`` → 400, ``Forbidden`` →
403, ``NotFound`` → 404, ``Conflict`` → 409, ``ServiceUnavailable`` → 503).
Anything DRF already understands is reshaped; everything else is left to
Django (500).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from modules.core.exceptions import DomainError

logger = structlog.get_logger(__name__)


def domain_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    if isinstance(exc, DomainError):
        return _domain_error_response(exc, context)

    if isinstance(exc, PydanticValidationError):
        errors = [
            {
                "code": error.get("type", "invalid"),
                "detail": error.get("msg", ""),
                "attr": ".".join(str(part) for part in error.get("loc", ())) or None,
            }
            for error in exc.errors()
        ]
        return Response(
            {"type": "validation_error", "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        error_type = "validation_error"
        errors = _flatten(exc.get_full_details())
    else:
        error_type = "client_error" if response.status_code < 500 else "server_error"
        detail = getattr(exc, "detail", str(exc))
        errors = [
            {
                "code": getattr(detail, "code", None) or getattr(exc, "default_code", "error"),
                "detail": str(detail),
                "attr": None,
            }
        ]
    response.data = {"type": error_type, "errors": errors}
    return response


def _domain_error_response(exc: DomainError, context: Dict[str, Any]) -> Response:
    view = context.get("view")
    log = logger.bind(
        error_code=exc.code,
        status_code=exc.status_code,
        view=view.__class__.__name__ if view is not None else None,
    )
    if exc.status_code >= 500:
        log.error("api.domain_error", detail=exc.message)
    else:
        log.info("api.domain_error", detail=exc.message)

    body: Dict[str, Any] = {
        "type": "client_error" if exc.status_code < 500 else "server_error",
        "errors": [{"code": exc.code, "detail": exc.message, "attr": None}],
    }
    if exc.details:
        body["meta"] = _jsonable(exc.details)
    return Response(body, status=exc.status_code)


def _flatten(details: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(details, dict) and "message" in details and "code" in details:
        return [{"code": details["code"], "detail": str(details["message"]), "attr": attr}]
    if isinstance(details, dict):
        flattened: List[Dict[str, Any]] = []
        for key, value in details.items():
            child = key if key != "non_field_errors" else None
            if attr and child:
                child = f"{attr}.{child}"
            flattened.extend(_flatten(value, child or attr))
        return flattened
    if isinstance(details, list):
        flattened = []
        for index, value in enumerate(details):
            child = attr
            if isinstance(value, dict) and not ("message" in value and "code" in value):
                child = f"{attr}.{index}" if attr else str(index)
            flattened.extend(_flatten(value, child))
        return flattened
    return [{"code": "invalid", "detail": str(details), "attr": attr}]


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(val) for key, val in value.items()}
    return value
