"""
Product store — products table reads and pricing writes.

The products table is the local source of truth for every catalog row;
Shopify ids are stored on it once a product has been pushed.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from postgrest.exceptions import APIError

from app.db.base_store import BaseStore

logger = logging.getLogger("product_store")

TABLE = "products"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductStore(BaseStore):
    """CRUD for the products table."""

    async def get_product(self, product_id: str) -> Dict[str, Any] | None:
        return await self._select_one(TABLE, {"id": product_id})

    async def get_products_by_ids(self, product_ids: List[str]) -> List[Dict[str, Any]]:
        if not product_ids:
            return []
        query = self._client.table(TABLE).select("*").in_("id", product_ids)
        rows = self._execute(TABLE, "select from", query)
        # Preserve the caller's order
        by_id = {row.get("id"): row for row in rows}
        return [by_id[pid] for pid in product_ids if pid in by_id]

    async def get_product_by_asin(self, asin: str) -> Dict[str, Any] | None:
        return await self._select_one(TABLE, {"asin": asin})

    async def get_product_by_shopify_id(self, shopify_product_id: str | int) -> Dict[str, Any] | None:
        return await self._select_one(TABLE, {"shopify_product_id": str(shopify_product_id)})

    async def list_products(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Paginated listing; returns (rows, total_count)."""
        query = self._client.table(TABLE).select("*", count="exact")
        if status:
            query = query.eq("status", status)
        if search:
            query = query.or_(f"title.ilike.%{search}%,asin.ilike.%{search}%")
        query = query.order("updated_at", desc=True).range(offset, offset + limit - 1)
        try:
            response = query.execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", TABLE, str(e))
            raise HTTPException(status_code=500, detail=f"Supabase select from {TABLE} failed: {e}")
        return response.data or [], response.count or 0

    async def get_products_for_price_check(
        self, stale_hours: int, limit: int = 100, offset: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Products with an ASIN whose last price check is missing or older
        than `stale_hours`, never-checked first, then oldest first.
        `offset` pages through the same ordering.
        """
        cutoff = (datetime.now(timezone.utc) - timedelta(hours=stale_hours)).isoformat()
        query = (
            self._client.table(TABLE)
            .select("*")
            .not_.is_("asin", "null")
            .neq("status", "removed")
            .or_(f"last_price_check.is.null,last_price_check.lt.{cutoff}")
            .order("last_price_check", desc=False, nullsfirst=True)
            .order("id")
            .range(offset, offset + limit - 1)
        )
        return self._execute(TABLE, "select from", query)

    async def get_active_products(self, limit: int = 1000) -> List[Dict[str, Any]]:
        query = self._client.table(TABLE).select("*").in_("status", ["active", "paused"]).limit(limit)
        return self._execute(TABLE, "select from", query)

    async def get_pushable_products(self, limit: int = 500) -> List[Dict[str, Any]]:
        """Products not yet on Shopify that have a usable cost."""
        query = (
            self._client.table(TABLE)
            .select("*")
            .is_("shopify_product_id", "null")
            .gt("cost_price", 0)
            .neq("status", "removed")
            .order("created_at", desc=True)
            .limit(limit)
        )
        return self._execute(TABLE, "select from", query)

    async def upsert_product(self, row: Dict[str, Any]) -> Dict[str, Any] | None:
        payload = {**row, "updated_at": _now_iso()}
        rows = await self._upsert(TABLE, [payload], on_conflict="asin")
        return rows[0] if rows else None

    async def update_product(self, product_id: str, payload: Dict[str, Any]) -> None:
        if not payload:
            return
        await self._update(TABLE, {"id": product_id}, {**payload, "updated_at": _now_iso()})

    async def update_product_pricing(
        self,
        product_id: str,
        cost: float | None = None,
        retail_price: float | None = None,
        compare_at_price: float | None = None,
        profit_percent: float | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> None:
        """Write the pricing fields that are not None (plus any extra columns)."""
        payload: Dict[str, Any] = {}
        if cost is not None:
            payload["cost_price"] = cost
            payload["amazon_price"] = cost
        if retail_price is not None:
            payload["retail_price"] = retail_price
        if compare_at_price is not None:
            payload["compare_at_price"] = compare_at_price
        if profit_percent is not None:
            payload["profit_percent"] = profit_percent
        if extra:
            payload.update(extra)

        if not payload:
            return

        await self.update_product(product_id, payload)
        logger.info(f"Updated product pricing: id={product_id}, changes={payload}")

    async def mark_price_checked(
        self,
        product_id: str,
        stock_status: str | None = None,
        bsr: int | None = None,
        price_hash: str | None = None,
    ) -> None:
        payload: Dict[str, Any] = {"last_price_check": _now_iso()}
        if stock_status is not None:
            payload["stock_status"] = stock_status
        if bsr is not None:
            payload["bsr"] = bsr
        if price_hash is not None:
            payload["price_hash"] = price_hash
        await self.update_product(product_id, payload)

    async def mark_stock_checked(self, product_id: str, stock_status: str, price: float | None = None) -> None:
        payload: Dict[str, Any] = {"stock_status": stock_status, "last_stock_check": _now_iso()}
        if price is not None:
            payload["amazon_price"] = price
        await self.update_product(product_id, payload)

    async def set_shopify_ids(
        self, product_id: str, shopify_product_id: str | int, shopify_variant_id: str | int | None
    ) -> None:
        await self.update_product(
            product_id,
            {
                "shopify_product_id": str(shopify_product_id),
                "shopify_variant_id": str(shopify_variant_id) if shopify_variant_id else None,
                "synced_at": _now_iso(),
            },
        )

    async def mark_removed_by_shopify_id(self, shopify_product_id: str | int) -> None:
        await self._update(
            TABLE,
            {"shopify_product_id": str(shopify_product_id)},
            {"status": "removed", "shopify_product_id": None, "updated_at": _now_iso()},
        )
