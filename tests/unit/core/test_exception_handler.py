"""Unit tests for the DRF error envelope."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError
from rest_framework import exceptions

from modules.core.exception_handler import domain_exception_handler
from modules.core.exceptions import Conflict, DomainError
from modules.orders.exceptions import InvalidOrderStatus, OrderStoreUnavailable, RestrictedFieldUpdate
from modules.products.exceptions import InsufficientStock

pytestmark = pytest.mark.unit


class _Quantity(BaseModel):
    quantity: int


def _handle(exc):
    return domain_exception_handler(exc, {"view": None})


class TestDomainErrors:
    def test_conflict_carries_details_in_meta(self):
        response = _handle(InsufficientStock("p-1", available=2, requested=5, product_name="Lamp"))

        assert response.status_code == 409
        assert response.data == {
            "type": "client_error",
            "errors": [
                {
                    "code": "insufficient_stock",
                    "detail": "Insufficient stock for Lamp. Requested 5, but only 2 left.",
                    "attr": None,
                }
            ],
            "meta": {"product_id": "p-1", "available": 2, "requested": 5},
        }

    def test_forbidden(self):
        response = _handle(RestrictedFieldUpdate(["status", "payment_status"]))

        assert response.status_code == 403
        assert response.data["errors"][0]["detail"] == (
            "Unauthorized field updates: payment_status, status"
        )
        assert response.data["meta"] == {"fields": ["payment_status", "status"]}

    def test_bad_request(self):
        response = _handle(InvalidOrderStatus("shipped", "pending"))

        assert response.status_code == 400
        assert response.data["errors"][0]["code"] == "invalid_status_transition"

    def test_service_unavailable_is_a_server_error(self):
        response = _handle(OrderStoreUnavailable("try again"))

        assert response.status_code == 503
        assert response.data["type"] == "server_error"
        assert "meta" not in response.data

    def test_kind_without_subclass(self):
        response = _handle(Conflict("busy"))
        assert response.status_code == 409
        assert response.data["errors"][0]["code"] == "conflict"

    def test_base_error_defaults_to_500(self):
        assert _handle(DomainError("boom")).status_code == 500


class TestOtherErrors:
    def test_pydantic_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            _Quantity(quantity="many")

        response = _handle(exc_info.value)

        assert response.status_code == 400
        assert response.data["type"] == "validation_error"
        assert response.data["errors"][0]["attr"] == "quantity"

    def test_drf_validation_error_is_flattened(self):
        exc = exceptions.ValidationError(
            {"items": [{"quantity": ["A valid integer is required."]}], "payment_method": ["Required."]}
        )

        response = _handle(exc)

        assert response.status_code == 400
        attrs = {error["attr"] for error in response.data["errors"]}
        assert attrs == {"items.0.quantity", "payment_method"}

    def test_drf_not_authenticated(self):
        response = _handle(exceptions.NotAuthenticated())

        assert response.status_code == 401
        assert response.data["type"] == "client_error"
        assert response.data["errors"][0]["code"] == "not_authenticated"

    def test_unknown_exception_is_left_to_django(self):
        assert _handle(RuntimeError("boom")) is None
