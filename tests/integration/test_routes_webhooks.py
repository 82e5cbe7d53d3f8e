"""
Integration tests for POST /api/webhooks/shopify with a real WebhookService.
Version: 1.0.0
"""
import json

import pytest

from app.container import get_webhook_service
from app.services.webhook_service import WebhookService, compute_hmac


@pytest.fixture
def webhook_client(app, client, mock_settings, mock_product_store, mock_webhook_log_store):
    service = WebhookService(settings=mock_settings, product_store=mock_product_store, log_store=mock_webhook_log_store)
    app.dependency_overrides[get_webhook_service] = lambda: service
    return client


def _post(client, payload, topic="orders/paid", signature=None, raw=None):
    body = raw if raw is not None else json.dumps(payload).encode()
    headers = {
        "X-Shopify-Topic": topic,
        "X-Shopify-Webhook-Id": "wh-100",
        "X-Shopify-Shop-Domain": "test-store.myshopify.com",
        "X-Shopify-Hmac-Sha256": signature if signature is not None else compute_hmac(body, "test-webhook-secret"),
    }
    return client.post("/api/webhooks/shopify", content=body, headers=headers)


@pytest.mark.integration
class TestShopifyWebhook:

    def test_signed_delivery_processed(self, webhook_client, mock_webhook_log_store):
        response = _post(webhook_client, {"id": 5001})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Order 5001 marked as paid"}
        mock_webhook_log_store.mark_order_paid.assert_awaited_once_with("5001")
        assert mock_webhook_log_store.record.call_args.kwargs["shop_domain"] == "test-store.myshopify.com"

    def test_bad_signature_rejected(self, webhook_client, mock_webhook_log_store):
        response = _post(webhook_client, {"id": 5001}, signature="forged")

        assert response.status_code == 401
        mock_webhook_log_store.record.assert_not_awaited()

    def test_non_ascii_signature_rejected(self, webhook_client, mock_webhook_log_store):
        response = _post(webhook_client, {"id": 5001}, signature="sig\u00e9".encode("latin-1"))

        assert response.status_code == 401
        mock_webhook_log_store.record.assert_not_awaited()

    def test_invalid_json(self, webhook_client):
        raw = b"not json"
        assert _post(webhook_client, None, raw=raw, signature=compute_hmac(raw, "test-webhook-secret")).status_code == 400

    def test_duplicate_delivery(self, webhook_client, mock_webhook_log_store):
        mock_webhook_log_store.is_processed.return_value = True
        assert _post(webhook_client, {"id": 5001}).json() == {"status": "already_processed"}
