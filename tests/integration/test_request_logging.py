import logging
import uuid

import pytest

pytestmark = pytest.mark.integration

MINE_URL = "/api/v1/orders/mine/"


class TestRequestIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get(MINE_URL, HTTP_X_REQUEST_ID=custom_id)
        assert response.status_code == 401
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get(MINE_URL)
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_request_id_in_logs(self, client, caplog):
        custom_id = "log-test-request-456"
        with caplog.at_level(logging.INFO):
            client.get(MINE_URL, HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"request_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )


class TestSensitiveDataMasking:
    def test_card_number_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "paid with 4111 1111 1111 1111"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "4111 1111 1111 1111" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]

    @pytest.mark.parametrize("key", ["password", "access", "refresh", "Authorization"])
    def test_sensitive_keys_masked_whole(self, key):
        from config.settings import mask_sensitive_data

        result = mask_sensitive_data(None, None, {"event": "test", key: "eyJhbGciOi"})
        assert result[key] == "***MASKED***"

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.created", "order_id": "0192f3a0-1c2b", "item_count": 2}
        result = mask_sensitive_data(None, None, event_dict)
        assert result == {"event": "order.created", "order_id": "0192f3a0-1c2b", "item_count": 2}
