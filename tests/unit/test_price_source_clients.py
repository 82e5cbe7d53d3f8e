"""
Unit tests for the Amazon price source clients: Rainforest, Keepa and the page scraper.

Parsers are tested on canned payloads; the HTTP layer is patched.

Version: 1.0.0
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException

from app.clients import amazon_scraper, keepa_client, rainforest_client
from app.clients.amazon_scraper import AmazonScraper, parse_price, parse_product_page
from app.clients.keepa_client import KeepaClient
from app.clients.rainforest_client import RainforestClient, parse_bsr
from app.core.exceptions import AuthenticationError, ExternalAPIError


pytestmark = pytest.mark.unit


def _patch_get(module, status_code=200, body=None, text="", json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body or {}
    if json_error is not None:
        resp.json.side_effect = json_error
    resp.text = text
    patcher = patch.object(module.httpx, "AsyncClient")
    mock_cls = patcher.start()
    ctx = AsyncMock()
    ctx.get = AsyncMock(return_value=resp)
    mock_cls.return_value.__aenter__ = AsyncMock(return_value=ctx)
    mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return patcher, ctx


# ---------------------------------------------------------------------------
# Rainforest
# ---------------------------------------------------------------------------

RAINFOREST_BODY = {
    "request_info": {"success": True},
    "product": {
        "title": "Silicone Spatula Set",
        "brand": "KitchenPro",
        "rating": 4.6,
        "ratings_total": 2150,
        "main_image": {"link": "https://m.media-amazon.com/x.jpg"},
        "bestsellers_rank": [{"rank": 1532, "category": "Kitchen"}],
        "buybox_winner": {
            "price": {"value": 9.99},
            "availability": {"type": "in_stock"},
            "is_prime": True,
            "fulfillment": {"is_sold_by_amazon": True},
        },
    },
}


class TestRainforestParsing:

    def test_parse_product(self):
        quote = rainforest_client.parse_product("B0TEST0001", RAINFOREST_BODY)
        assert quote["price"] == 9.99
        assert quote["in_stock"] is True
        assert quote["seller"] == "Amazon"
        assert quote["bsr"] == 1532
        assert quote["review_count"] == 2150
        assert quote["is_prime"] is True

    def test_falls_back_to_product_price(self):
        body = {"product": {"price": {"value": 12.5}, "availability": {"type": "out_of_stock"}}}
        quote = rainforest_client.parse_product("B0TEST0001", body)
        assert quote["price"] == 12.5
        assert quote["in_stock"] is False
        assert quote["seller"] is None

    def test_bsr_from_flat_text(self):
        assert parse_bsr({"bestsellers_rank_flat": "Rank: #12,345 in Kitchen"}) == 12345

    def test_bsr_missing(self):
        assert parse_bsr({}) is None


class TestRainforestClient:

    def _client(self, key="rf-key"):
        settings = MagicMock()
        settings.rainforest_api_key = key
        settings.rainforest_base_url = "https://api.rainforestapi.com/"
        settings.amazon_domain = "amazon.com"
        return RainforestClient(settings)

    def test_configured(self):
        assert self._client().configured is True
        assert self._client(key=None).configured is False

    @pytest.mark.asyncio
    async def test_fetch_product(self):
        patcher, ctx = _patch_get(rainforest_client, body=RAINFOREST_BODY)
        try:
            quote = await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

        assert quote["price"] == 9.99
        params = ctx.get.call_args.kwargs["params"]
        assert params["type"] == "product"
        assert params["asin"] == "B0TEST0001"
        assert ctx.get.call_args[0][0] == "https://api.rainforestapi.com/request"

    @pytest.mark.asyncio
    async def test_unsuccessful_request_info(self):
        patcher, _ = _patch_get(rainforest_client, body={"request_info": {"success": False, "message": "credits"}})
        try:
            with pytest.raises(ExternalAPIError):
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        patcher, _ = _patch_get(rainforest_client, status_code=503, text="busy")
        try:
            with pytest.raises(HTTPException) as exc_info:
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_undecodable_body(self):
        patcher, _ = _patch_get(rainforest_client, text="<html>gateway</html>", json_error=ValueError("Expecting value"))
        try:
            with pytest.raises(ExternalAPIError, match="invalid JSON"):
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_rejected_key(self):
        patcher, _ = _patch_get(rainforest_client, status_code=401, text="bad key")
        try:
            with pytest.raises(AuthenticationError):
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(HTTPException):
            await self._client(key=None).fetch_product("B0TEST0001")


# ---------------------------------------------------------------------------
# Keepa
# ---------------------------------------------------------------------------

class TestKeepa:

    def _client(self, key="keepa-key"):
        settings = MagicMock()
        settings.keepa_api_key = key
        settings.keepa_base_url = "https://api.keepa.com"
        return KeepaClient(settings)

    def test_parse_buybox_price_in_cents(self):
        current = [-1] * 19
        current[18] = 1099
        body = {"products": [{"title": "Spatula", "stats": {"current": current}, "salesRanks": {"1": [1, 500, 2, 450]}}]}
        quote = keepa_client.parse_product("B0TEST0001", body)
        assert quote["price"] == 10.99
        assert quote["in_stock"] is True
        assert quote["bsr"] == 450

    def test_parse_falls_back_to_amazon_price(self):
        body = {"products": [{"stats": {"current": [899]}}]}
        assert keepa_client.parse_product("B0TEST0001", body)["price"] == 8.99

    def test_parse_no_offer(self):
        body = {"products": [{"stats": {"current": [-1]}}]}
        quote = keepa_client.parse_product("B0TEST0001", body)
        assert quote["price"] is None
        assert quote["in_stock"] is False

    def test_parse_no_products(self):
        with pytest.raises(ExternalAPIError):
            keepa_client.parse_product("B0TEST0001", {"products": []})

    @pytest.mark.asyncio
    async def test_fetch_error_body(self):
        patcher, _ = _patch_get(keepa_client, body={"error": {"message": "invalid key"}})
        try:
            with pytest.raises(ExternalAPIError):
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_fetch_undecodable_body(self):
        patcher, _ = _patch_get(keepa_client, json_error=ValueError("Expecting value"))
        try:
            with pytest.raises(ExternalAPIError, match="invalid JSON"):
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_fetch_forbidden(self):
        patcher, _ = _patch_get(keepa_client, status_code=403)
        try:
            with pytest.raises(AuthenticationError):
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_fetch_params(self):
        patcher, ctx = _patch_get(keepa_client, body={"products": [{"stats": {"current": [899]}}]})
        try:
            await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()
        params = ctx.get.call_args.kwargs["params"]
        assert params["asin"] == "B0TEST0001"
        assert params["domain"] == 1


# ---------------------------------------------------------------------------
# Amazon page scraper
# ---------------------------------------------------------------------------

PRODUCT_HTML = """
<html><body>
  <span id="productTitle"> Silicone Spatula Set </span>
  <a id="bylineInfo">Visit the KitchenPro Store</a>
  <div id="corePrice_feature_div"><span class="a-price"><span class="a-offscreen">$9.99</span></span></div>
  <div id="availability"><span>In Stock</span></div>
  <span id="acrPopover" title="4.6 out of 5 stars"><span class="a-icon-alt">4.6 out of 5 stars</span></span>
  <span id="acrCustomerReviewText">2,150 ratings</span>
  <img id="landingImage" data-old-hires="https://m.media-amazon.com/hires.jpg" src="https://m.media-amazon.com/small.jpg"/>
  <div id="feature-bullets"><ul><li><span>Heat resistant</span></li><li><span>Dishwasher safe</span></li></ul></div>
  <table id="productDetails_detailBullets_sections1">
    <tr><th>Item model number</th><td>KP-100</td></tr>
    <tr><th>Best Sellers Rank</th><td>#1,532 in Kitchen &amp; Dining</td></tr>
  </table>
</body></html>
"""


class TestScraperParsing:

    def test_parse_price_variants(self):
        assert parse_price("$1,299.50") == 1299.5
        assert parse_price("12.00") == 12.0
        assert parse_price("Currently unavailable") is None
        assert parse_price(None) is None

    def test_parse_product_page(self):
        data = parse_product_page("B0TEST0001", PRODUCT_HTML)
        assert data["title"] == "Silicone Spatula Set"
        assert data["brand"] == "KitchenPro"
        assert data["price"] == 9.99
        assert data["in_stock"] is True
        assert data["rating"] == 4.6
        assert data["review_count"] == 2150
        assert data["image"] == "https://m.media-amazon.com/hires.jpg"
        assert data["bullets"] == ["Heat resistant", "Dishwasher safe"]
        assert data["details"]["mpn"] == "KP-100"
        assert data["bsr"] == 1532

    def test_whole_and_fraction_price(self):
        html = '<span class="a-price-whole">14.</span><span class="a-price-fraction">49</span>'
        assert parse_product_page("B0TEST0001", html)["price"] == 14.49

    @pytest.mark.parametrize(
        "whole, fraction, expected",
        [("1,299.", "5", 1299.5), ("14.", "\u00a049", 14.49), ("7.", "-", 7.0)],
    )
    def test_fraction_with_stray_characters(self, whole, fraction, expected):
        html = f'<span class="a-price-whole">{whole}</span><span class="a-price-fraction">{fraction}</span>'
        assert parse_product_page("B0TEST0001", html)["price"] == expected

    def test_out_of_stock(self):
        html = '<div id="availability">Currently unavailable.</div>'
        data = parse_product_page("B0TEST0001", html)
        assert data["in_stock"] is False
        assert data["price"] is None

    def test_captcha_page_raises(self):
        html = '<form action="/errors/validateCaptcha"></form>'
        with pytest.raises(ExternalAPIError):
            parse_product_page("B0TEST0001", html)


class TestScraperClient:

    def _client(self, enabled=True):
        settings = MagicMock()
        settings.scraper_enabled = enabled
        settings.scraper_user_agent = "test-agent"
        settings.amazon_domain = "amazon.com"
        return AmazonScraper(settings)

    def test_configured_follows_flag(self):
        assert self._client(enabled=False).configured is False

    @pytest.mark.asyncio
    async def test_fetch_product(self):
        patcher, ctx = _patch_get(amazon_scraper, text=PRODUCT_HTML)
        try:
            data = await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()

        assert data["price"] == 9.99
        assert ctx.get.call_args[0][0] == "https://www.amazon.com/dp/B0TEST0001"

    @pytest.mark.asyncio
    async def test_fetch_non_200(self):
        patcher, _ = _patch_get(amazon_scraper, status_code=503)
        try:
            with pytest.raises(ExternalAPIError) as exc_info:
                await self._client().fetch_product("B0TEST0001")
        finally:
            patcher.stop()
        assert exc_info.value.status_code == 503
