"""
Unit tests for app middleware: CORS origins and domain exception mapping.

Version: 1.0.0
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.middleware import apply_cors


CORS_TEST_ENDPOINT = "/api/products"


def _cors_client(monkeypatch, origins=None):
    if origins is None:
        monkeypatch.delenv("CORS_ALLOWED_ORIGINS", raising=False)
    else:
        monkeypatch.setenv("CORS_ALLOWED_ORIGINS", origins)
    app = FastAPI()
    apply_cors(app)

    @app.get(CORS_TEST_ENDPOINT)
    def products():
        return {"products": []}

    return TestClient(app)


@pytest.mark.unit
class TestApplyCors:

    def test_wildcard_by_default(self, monkeypatch):
        resp = _cors_client(monkeypatch).get(CORS_TEST_ENDPOINT, headers={"Origin": "https://dash.example.com"})
        assert resp.headers.get("access-control-allow-origin") == "*"
        assert "access-control-allow-credentials" not in resp.headers

    def test_configured_origins_only(self, monkeypatch):
        client = _cors_client(monkeypatch, "https://dash.example.com, https://admin.example.com")

        allowed = client.get(CORS_TEST_ENDPOINT, headers={"Origin": "https://admin.example.com"})
        blocked = client.get(CORS_TEST_ENDPOINT, headers={"Origin": "https://evil.example.com"})

        assert allowed.headers.get("access-control-allow-origin") == "https://admin.example.com"
        assert allowed.headers.get("access-control-allow-credentials") == "true"
        assert "access-control-allow-origin" not in blocked.headers

    def test_preflight(self, monkeypatch):
        resp = _cors_client(monkeypatch).options(
            CORS_TEST_ENDPOINT,
            headers={"Origin": "https://dash.example.com", "Access-Control-Request-Method": "GET"},
        )
        assert resp.status_code == 200


@pytest.mark.unit
class TestExceptionHandlers:
    """Domain exceptions map to HTTP status codes."""

    def _app(self, exc):
        from app.core.middleware import apply_exception_handlers

        app = FastAPI()
        apply_exception_handlers(app)

        @app.get("/boom")
        def boom():
            raise exc

        return TestClient(app, raise_server_exceptions=False)

    def test_validation_error_is_400(self):
        from app.core.exceptions import ValidationError
        resp = self._app(ValidationError("bad input")).get("/boom")
        assert resp.status_code == 400
        assert resp.json() == {"detail": "bad input", "error": "ValidationError"}

    def test_product_not_found_is_404(self):
        from app.core.exceptions import ProductNotFoundError
        resp = self._app(ProductNotFoundError("missing")).get("/boom")
        assert resp.status_code == 404

    def test_webhook_verification_is_401(self):
        from app.core.exceptions import WebhookVerificationError
        resp = self._app(WebhookVerificationError("Invalid signature")).get("/boom")
        assert resp.status_code == 401

    def test_rate_limit_sets_retry_after(self):
        from app.core.exceptions import RateLimitError
        resp = self._app(RateLimitError("Shopify", retry_after=12)).get("/boom")
        assert resp.status_code == 429
        assert resp.headers["retry-after"] == "12"

    def test_external_api_error_is_502(self):
        from app.core.exceptions import ExternalAPIError
        resp = self._app(ExternalAPIError("Keepa", "down")).get("/boom")
        assert resp.status_code == 502

    def test_rejected_upstream_key_is_502(self):
        from app.core.exceptions import AuthenticationError
        resp = self._app(AuthenticationError("Keepa rejected the API key")).get("/boom")
        assert resp.status_code == 502

    def test_unmapped_domain_error_is_500(self):
        from app.core.exceptions import CommandCenterException
        resp = self._app(CommandCenterException("unexpected")).get("/boom")
        assert resp.status_code == 500


@pytest.mark.unit
class TestStatusForException:

    def test_subclass_order(self):
        from app.core.exceptions import InvalidAsinError, PriceUnavailableError
        from app.core.middleware import status_for_exception
        assert status_for_exception(InvalidAsinError("x")) == 400
        assert status_for_exception(PriceUnavailableError("x")) == 404
