import logging

import pytest

pytestmark = pytest.mark.integration


class TestCorrelationIdOnApiRequests:
    def test_request_id_is_echoed_on_api_errors(self, api_client_with_correlation):
        client, cid = api_client_with_correlation

        response = client.get("/api/v1/orders/")

        assert response.status_code == 401
        assert response["X-Request-ID"] == cid

    def test_domain_logs_carry_the_request_id(self, manager_client, caplog):
        from modules.core.repositories import DjangoDocumentStore

        DjangoDocumentStore().put("orders", "ord-1", {"status": "new"})
        custom_id = "retention-correlation-789"

        with caplog.at_level(logging.INFO):
            manager_client.delete("/api/v1/orders/ord-1/", HTTP_X_REQUEST_ID=custom_id)

        messages = [record.getMessage() for record in caplog.records]
        assert any(custom_id in m and "order.soft_delete_completed" in m for m in messages)
