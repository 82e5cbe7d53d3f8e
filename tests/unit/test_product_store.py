"""
Unit tests for ProductStore — product reads and pricing writes.

Tests cover:
- get_products_by_ids preserves caller order and skips missing ids
- list_products returns (rows, count) and wraps API errors
- get_products_for_price_check builds the stale filter
- update_product_pricing writes only the provided fields
- mark_price_checked / mark_stock_checked / set_shopify_ids payloads
- mark_removed_by_shopify_id clears the Shopify id

Version: 1.0.0
"""
import pytest
from unittest.mock import MagicMock

from fastapi import HTTPException
from postgrest.exceptions import APIError

from app.db.product_store import ProductStore


pytestmark = pytest.mark.unit


@pytest.fixture
def mock_table(mock_supabase_client):
    return mock_supabase_client.client.table.return_value


@pytest.fixture
def store(mock_supabase_client):
    """ProductStore wired to the mock SupabaseClient."""
    return ProductStore(supabase_client=mock_supabase_client)


def _update_payload(mock_table):
    return mock_table.update.call_args[0][0]


class TestReads:

    @pytest.mark.asyncio
    async def test_get_products_by_ids_preserves_order(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "b"}, {"id": "a"}])

        result = await store.get_products_by_ids(["a", "missing", "b"])

        assert [r["id"] for r in result] == ["a", "b"]
        mock_table.in_.assert_called_once_with("id", ["a", "missing", "b"])

    @pytest.mark.asyncio
    async def test_get_products_by_ids_empty_skips_query(self, store, mock_table):
        assert await store.get_products_by_ids([]) == []
        mock_table.select.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_product_by_shopify_id_stringifies(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "p1"}])

        result = await store.get_product_by_shopify_id(111)

        assert result == {"id": "p1"}
        mock_table.eq.assert_called_once_with("shopify_product_id", "111")

    @pytest.mark.asyncio
    async def test_list_products_returns_rows_and_total(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "p1"}], count=7)

        rows, total = await store.list_products(status="active", limit=10, offset=20, search="spatula")

        assert rows == [{"id": "p1"}]
        assert total == 7
        mock_table.eq.assert_called_once_with("status", "active")
        mock_table.range.assert_called_once_with(20, 29)
        assert "spatula" in mock_table.or_.call_args[0][0]

    @pytest.mark.asyncio
    async def test_list_products_api_error(self, store, mock_table):
        mock_table.execute.side_effect = APIError({"message": "boom", "code": "42000", "details": "", "hint": ""})

        with pytest.raises(HTTPException) as exc_info:
            await store.list_products()

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_price_check_query_filters_stale(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "p1"}])

        result = await store.get_products_for_price_check(stale_hours=24, limit=50)

        assert result == [{"id": "p1"}]
        mock_table.neq.assert_called_once_with("status", "removed")
        assert mock_table.or_.call_args[0][0].startswith("last_price_check.is.null,last_price_check.lt.")
        mock_table.range.assert_called_once_with(0, 49)

    @pytest.mark.asyncio
    async def test_price_check_query_pages_by_offset(self, store, mock_table):
        await store.get_products_for_price_check(stale_hours=24, limit=50, offset=100)

        mock_table.range.assert_called_once_with(100, 149)
        mock_table.order.assert_any_call("last_price_check", desc=False, nullsfirst=True)
        mock_table.order.assert_any_call("id")


class TestPricingWrites:

    @pytest.mark.asyncio
    async def test_update_product_pricing_only_given_fields(self, store, mock_table):
        await store.update_product_pricing("p1", retail_price=17.0, profit_percent=70.0)

        payload = _update_payload(mock_table)
        assert payload["retail_price"] == 17.0
        assert payload["profit_percent"] == 70.0
        assert "cost_price" not in payload
        assert "updated_at" in payload
        mock_table.eq.assert_called_once_with("id", "p1")

    @pytest.mark.asyncio
    async def test_update_product_pricing_cost_sets_both_columns(self, store, mock_table):
        await store.update_product_pricing("p1", cost=10.0, extra={"competitor_prices": {"amazon": 31.0}})

        payload = _update_payload(mock_table)
        assert payload["cost_price"] == 10.0
        assert payload["amazon_price"] == 10.0
        assert payload["competitor_prices"] == {"amazon": 31.0}

    @pytest.mark.asyncio
    async def test_update_product_pricing_noop(self, store, mock_table):
        await store.update_product_pricing("p1")
        mock_table.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_mark_price_checked(self, store, mock_table):
        await store.mark_price_checked("p1", stock_status="in_stock", bsr=1200, price_hash="abc")

        payload = _update_payload(mock_table)
        assert payload["stock_status"] == "in_stock"
        assert payload["bsr"] == 1200
        assert payload["price_hash"] == "abc"
        assert "last_price_check" in payload

    @pytest.mark.asyncio
    async def test_mark_stock_checked_with_price(self, store, mock_table):
        await store.mark_stock_checked("p1", "out_of_stock", price=9.5)

        payload = _update_payload(mock_table)
        assert payload["stock_status"] == "out_of_stock"
        assert payload["amazon_price"] == 9.5
        assert "last_stock_check" in payload

    @pytest.mark.asyncio
    async def test_set_shopify_ids(self, store, mock_table):
        await store.set_shopify_ids("p1", 111, 222)

        payload = _update_payload(mock_table)
        assert payload["shopify_product_id"] == "111"
        assert payload["shopify_variant_id"] == "222"

    @pytest.mark.asyncio
    async def test_mark_removed_by_shopify_id(self, store, mock_table):
        await store.mark_removed_by_shopify_id(111)

        payload = _update_payload(mock_table)
        assert payload["status"] == "removed"
        assert payload["shopify_product_id"] is None
        mock_table.eq.assert_called_once_with("shopify_product_id", "111")

    @pytest.mark.asyncio
    async def test_upsert_product_on_asin(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "p1", "asin": "B0TEST0001"}])

        result = await store.upsert_product({"asin": "B0TEST0001", "title": "Spatula"})

        assert result["id"] == "p1"
        assert mock_table.upsert.call_args.kwargs["on_conflict"] == "asin"
