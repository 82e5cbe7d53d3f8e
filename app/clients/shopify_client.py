import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from app.core.config import Settings
from app.core.constants.sync import (
    SHOPIFY_BACKOFF_BASE_SECONDS,
    SHOPIFY_BACKOFF_MAX_SECONDS,
    SHOPIFY_CALL_LIMIT_PAUSE_SECONDS,
    SHOPIFY_CALL_LIMIT_THRESHOLD,
)
from app.core.exceptions import RateLimitError

logger = logging.getLogger("shopify_client")


class ShopifyClient:
    def __init__(self, settings: Settings) -> None:
        raw_domain = settings.shopify_store_domain
        self._store_domain = self._normalize_store_domain(raw_domain)
        self._token = settings.shopify_admin_api_token
        self._api_version = settings.shopify_api_version
        self._max_retries = settings.shopify_max_retries
        logger.info(f"ShopifyClient initialized: domain={self._store_domain} (raw: {raw_domain})")

    @staticmethod
    def _normalize_store_domain(domain: Optional[str]) -> Optional[str]:
        """
        Normalize Shopify store domain to ensure it has .myshopify.com suffix.

        Handles these formats:
        - "my-store" -> "my-store.myshopify.com"
        - "my-store.myshopify.com" -> "my-store.myshopify.com" (unchanged)
        - "https://my-store.myshopify.com" -> "my-store.myshopify.com" (strips protocol)
        """
        if not domain:
            return domain

        domain = domain.replace("https://", "").replace("http://", "")
        domain = domain.rstrip("/")

        if not domain.endswith(".myshopify.com"):
            domain = f"{domain}.myshopify.com"

        return domain

    @staticmethod
    def backoff_seconds(attempt: int, retry_after: Optional[str] = None) -> float:
        """
        Seconds to wait before retry number `attempt` (0-based) after a 429.

        Retry-After wins when it parses; either way the wait is capped.
        """
        if retry_after:
            try:
                return min(max(float(retry_after), 0.0), SHOPIFY_BACKOFF_MAX_SECONDS)
            except ValueError:
                pass
        return min(SHOPIFY_BACKOFF_BASE_SECONDS * (2 ** attempt), SHOPIFY_BACKOFF_MAX_SECONDS)

    @staticmethod
    def call_limit_ratio(header: Optional[str]) -> float:
        """Parse X-Shopify-Shop-Api-Call-Limit ("32/40") into a 0..1 fill ratio."""
        if not header or "/" not in header:
            return 0.0
        used, _, limit = header.partition("/")
        try:
            used_n, limit_n = int(used), int(limit)
        except ValueError:
            return 0.0
        return used_n / limit_n if limit_n else 0.0

    def to_gid(self, entity: str, value: str | int) -> str:
        if isinstance(value, str) and value.startswith("gid://"):
            return value
        return f"gid://shopify/{entity}/{value}"

    @staticmethod
    def from_gid(gid: str | int) -> str:
        """gid://shopify/Product/123 -> "123"."""
        return str(gid).rsplit("/", 1)[-1]

    def _base_url(self) -> str:
        if not self._store_domain or not self._token:
            raise HTTPException(status_code=500, detail="Shopify env vars missing")
        return f"https://{self._store_domain}/admin/api/{self._api_version}"

    async def call_shopify(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Call the Shopify Admin REST API.

        429 responses are retried up to max_retries times with bounded
        backoff; after that a RateLimitError is raised. Any other status
        >= 400 raises HTTPException with the upstream status and body.
        """
        base = self._base_url()
        url = f"{base}{path}"
        logger.info("shopify request method=%s path=%s params=%s", method, path, params)

        headers = {
            "X-Shopify-Access-Token": self._token or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        attempt = 0
        async with httpx.AsyncClient(timeout=30.0) as client:
            while True:
                resp = await client.request(method=method, url=url, headers=headers, json=json, params=params)
                logger.info("shopify response status=%s path=%s attempt=%s", resp.status_code, path, attempt)

                if resp.status_code != 429:
                    break

                retry_after = resp.headers.get("Retry-After")
                if attempt >= self._max_retries:
                    wait = int(self.backoff_seconds(attempt, retry_after))
                    logger.warning("shopify rate limit exhausted path=%s retries=%s", path, attempt)
                    raise RateLimitError("Shopify", retry_after=max(wait, 1))

                wait = self.backoff_seconds(attempt, retry_after)
                logger.warning("shopify 429 path=%s sleeping=%.2fs attempt=%s", path, wait, attempt + 1)
                await asyncio.sleep(wait)
                attempt += 1

        if resp.status_code >= 400:
            raise HTTPException(status_code=resp.status_code, detail=resp.text)

        ratio = self.call_limit_ratio(resp.headers.get("X-Shopify-Shop-Api-Call-Limit"))
        if ratio >= SHOPIFY_CALL_LIMIT_THRESHOLD:
            logger.info("shopify call limit at %.0f%%, pausing", ratio * 100)
            await asyncio.sleep(SHOPIFY_CALL_LIMIT_PAUSE_SECONDS)

        if resp.text:
            return resp.json()
        return {}

    async def call_shopify_graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        data = await self.call_shopify("POST", "/graphql.json", json=payload)
        if data.get("errors"):
            raise HTTPException(status_code=502, detail=str(data.get("errors")))
        return data

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def get_product(self, product_id: str | int) -> Dict[str, Any]:
        data = await self.call_shopify("GET", f"/products/{product_id}.json")
        return data.get("product") or {}

    async def create_product(self, body: Dict[str, Any]) -> Dict[str, Any]:
        data = await self.call_shopify("POST", "/products.json", json=body)
        product = data.get("product") or {}
        logger.info("shopify product created id=%s", product.get("id"))
        return product

    async def update_product(self, product_id: str | int, body: Dict[str, Any]) -> Dict[str, Any]:
        body["product"]["id"] = int(product_id)
        data = await self.call_shopify("PUT", f"/products/{product_id}.json", json=body)
        return data.get("product") or {}

    async def update_product_status(self, product_id: str | int, status: str) -> Dict[str, Any]:
        payload = {"product": {"id": int(product_id), "status": status}}
        data = await self.call_shopify("PUT", f"/products/{product_id}.json", json=payload)
        return data.get("product") or {}

    async def list_products(self, limit: int = 250, page_info: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": limit}
        if page_info:
            params["page_info"] = page_info
        data = await self.call_shopify("GET", "/products.json", params=params)
        return {"products": data.get("products") or []}

    async def find_product_by_sku(self, sku: str) -> Optional[Dict[str, Any]]:
        """
        Look up a variant by exact SKU.

        Returns {"product_id", "variant_id"} as numeric strings, or None.
        """
        query = (
            "query FindBySku($skuQuery: String!) { "
            "productVariants(first: 5, query: $skuQuery) { "
            "edges { node { id sku product { id } } } } }"
        )
        data = await self.call_shopify_graphql(query, {"skuQuery": f"sku:{sku}"})
        edges = (data.get("data") or {}).get("productVariants", {}).get("edges", [])
        for edge in edges:
            node = edge.get("node") or {}
            if node.get("sku") == sku:
                return {
                    "product_id": self.from_gid((node.get("product") or {}).get("id")),
                    "variant_id": self.from_gid(node.get("id")),
                }
        return None

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    async def update_variant_pricing(
        self,
        variant_id: str | int,
        price: float,
        compare_at_price: float | None = None,
    ) -> Dict[str, Any]:
        variant: Dict[str, Any] = {"id": int(variant_id), "price": f"{price:.2f}"}
        if compare_at_price is not None:
            variant["compare_at_price"] = f"{compare_at_price:.2f}"
        logger.info("shopify update_variant_pricing id=%s payload=%s", variant_id, variant)
        data = await self.call_shopify("PUT", f"/variants/{variant_id}.json", json={"variant": variant})
        return data.get("variant") or {}

    async def set_product_metafields(
        self,
        product_id: str | int,
        metafields: list[Dict[str, Any]],
    ) -> int:
        """POST each metafield; Shopify upserts on (namespace, key). Returns count written."""
        written = 0
        for metafield in metafields:
            await self.call_shopify(
                "POST",
                f"/products/{product_id}/metafields.json",
                json={"metafield": metafield},
            )
            written += 1
        return written
