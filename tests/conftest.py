"""
Pytest configuration and shared fixtures for Command Center tests.

Provides mock clients, stores, services, and sample test data.
Version: 1.0.0
"""
import os

os.environ.setdefault("AUTO_START_CELERY", "false")

import pytest
from unittest.mock import AsyncMock, MagicMock


# ---------------------------------------------------------------------------
# Auth fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_current_user():
    """Bypass auth dependency for testing."""
    return {"user_id": "test-user-id", "email": "test@test.com", "role": "authenticated", "scope": []}


@pytest.fixture
def mock_admin_user():
    return {"user_id": "admin-user-id", "email": "admin@test.com", "role": "admin", "scope": []}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_settings():
    """Settings object with test defaults (no real credentials)."""
    from app.core.config import Settings
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="test-supabase-key",
        supabase_jwt_secret="test-jwt-secret",
        shopify_store_domain="test-store.myshopify.com",
        shopify_admin_api_token="shpat_test_token",
        shopify_api_version="2024-10",
        shopify_webhook_secret="test-webhook-secret",
        shopify_max_retries=2,
        rainforest_api_key="test-rainforest-key",
        keepa_api_key="test-keepa-key",
        cron_secret="test-cron-secret",
        price_sync_batch_size=100,
        price_stale_hours=24,
        bulk_push_max=5,
        auto_start_celery=False,
    )


# ---------------------------------------------------------------------------
# Clients (mocked)
# ---------------------------------------------------------------------------

def make_mock_table(data=None):
    """Chainable postgrest query builder; every filter returns itself."""
    table = MagicMock()
    for method in (
        "select", "insert", "upsert", "update", "delete", "eq", "neq", "gt", "gte",
        "in_", "is_", "or_", "order", "limit", "range",
    ):
        getattr(table, method).return_value = table
    table.not_ = table
    table.execute.return_value = MagicMock(data=data if data is not None else [], count=0)
    return table


@pytest.fixture
def mock_supabase_client():
    """Mocked SupabaseClient; tests reach the table via client.client.table.return_value."""
    client = MagicMock()
    client.client.table.return_value = make_mock_table()
    return client


@pytest.fixture
def mock_shopify_client():
    """Mocked ShopifyClient (HTTP transport only)."""
    client = MagicMock()
    client.call_shopify = AsyncMock(return_value={})
    client.get_product = AsyncMock(return_value={"id": 111, "variants": [{"id": 222}]})
    client.create_product = AsyncMock(
        return_value={"id": 111, "handle": "test-product", "variants": [{"id": 222}]}
    )
    client.update_product = AsyncMock(
        return_value={"id": 111, "handle": "test-product", "variants": [{"id": 222}]}
    )
    client.update_product_status = AsyncMock(return_value={})
    client.find_product_by_sku = AsyncMock(return_value=None)
    client.update_variant_pricing = AsyncMock(return_value={})
    client.set_product_metafields = AsyncMock(return_value=6)
    return client


@pytest.fixture
def mock_rainforest_client():
    client = MagicMock()
    client.configured = True
    client.fetch_product = AsyncMock(return_value={
        "asin": "B0TEST0001",
        "price": 10.0,
        "in_stock": True,
        "seller": "Amazon",
        "bsr": 1200,
        "source": "rainforest",
    })
    return client


@pytest.fixture
def mock_keepa_client():
    client = MagicMock()
    client.configured = True
    client.fetch_product = AsyncMock(return_value={
        "asin": "B0TEST0001",
        "price": 11.0,
        "in_stock": True,
        "source": "keepa",
    })
    return client


@pytest.fixture
def mock_scraper():
    client = MagicMock()
    client.configured = True
    client.fetch_product = AsyncMock(return_value={"asin": "B0TEST0001", "price": 12.0, "in_stock": True})
    return client


# ---------------------------------------------------------------------------
# DB Stores (mocked)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_product_store(sample_product):
    store = MagicMock()
    store.get_product = AsyncMock(return_value=sample_product)
    store.get_products_by_ids = AsyncMock(return_value=[sample_product])
    store.get_product_by_asin = AsyncMock(return_value=sample_product)
    store.get_product_by_shopify_id = AsyncMock(return_value=sample_product)
    store.list_products = AsyncMock(return_value=([sample_product], 1))
    store.get_products_for_price_check = AsyncMock(return_value=[sample_product])
    store.get_active_products = AsyncMock(return_value=[sample_product])
    store.get_pushable_products = AsyncMock(return_value=[sample_product])
    store.update_product = AsyncMock()
    store.update_product_pricing = AsyncMock()
    store.mark_price_checked = AsyncMock()
    store.mark_stock_checked = AsyncMock()
    store.set_shopify_ids = AsyncMock()
    store.mark_removed_by_shopify_id = AsyncMock()
    return store


@pytest.fixture
def mock_margin_store():
    store = MagicMock()
    store.get_active_rules = AsyncMock(return_value=[])
    store.list_rules = AsyncMock(return_value=[])
    store.get_rule = AsyncMock(return_value=None)
    store.create_rule = AsyncMock()
    store.update_rule = AsyncMock()
    store.delete_rule = AsyncMock(return_value=True)
    store.create_alert = AsyncMock()
    store.list_alerts = AsyncMock(return_value=[])
    store.count_open_alerts = AsyncMock(return_value=0)
    store.resolve_alert = AsyncMock(return_value=True)
    return store


@pytest.fixture
def mock_history_store():
    store = MagicMock()
    store.record = AsyncMock()
    store.get_history = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_competitor_store():
    store = MagicMock()
    store.upsert_prices = AsyncMock()
    store.get_prices = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_job_store():
    store = MagicMock()
    store.create_job = AsyncMock(return_value="job-1")
    store.update_job = AsyncMock()
    store.get_job = AsyncMock(return_value=None)
    store.list_jobs = AsyncMock(return_value=[])
    store.log_run = AsyncMock()
    return store


@pytest.fixture
def mock_webhook_log_store():
    store = MagicMock()
    store.is_processed = AsyncMock(return_value=False)
    store.record = AsyncMock()
    store.insert_order = AsyncMock()
    store.mark_order_paid = AsyncMock()
    return store


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_product():
    """A product already live on Shopify with healthy pricing."""
    return {
        "id": "prod-1",
        "asin": "B0TEST0001",
        "title": "Silicone Kitchen Spatula Set",
        "brand": "KitchenPro",
        "category": "Kitchen",
        "image_url": "https://m.media-amazon.com/images/I/test.jpg",
        "status": "active",
        "cost_price": 10.0,
        "amazon_price": 10.0,
        "retail_price": 17.0,
        "compare_at_price": 31.0,
        "profit_percent": 70.0,
        "bsr": 1200,
        "rating": 4.6,
        "shopify_product_id": "111",
        "shopify_variant_id": "222",
        "price_hash": None,
        "below_threshold_since": None,
        "last_price_check": None,
    }


@pytest.fixture
def sample_rule():
    return {
        "id": "rule-1",
        "name": "Kitchen",
        "min_margin": 30,
        "target_margin": 45,
        "max_margin": 100,
        "category": "Kitchen",
        "action": "alert",
        "priority": 10,
        "is_active": True,
    }
