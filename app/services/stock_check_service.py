"""
Stock check service — Amazon availability by ASIN.

Rainforest first, Keepa as fallback. A source that errors leaves the
item's stock unknown and the next source is tried.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from app.clients.keepa_client import KeepaClient
from app.clients.rainforest_client import RainforestClient
from app.core.constants.sync import MIN_ASIN_LENGTH, STOCK_CHECK_DELAY_SECONDS
from app.core.exceptions import CommandCenterException, ValidationError
from app.db.product_store import ProductStore

logger = logging.getLogger(__name__)


def _stock_status(in_stock: Optional[bool]) -> str:
    if in_stock is None:
        return "unknown"
    return "in_stock" if in_stock else "out_of_stock"


class StockCheckService:
    def __init__(
        self,
        rainforest: RainforestClient,
        keepa: KeepaClient,
        product_store: ProductStore,
    ) -> None:
        self._rainforest = rainforest
        self._keepa = keepa
        self._products = product_store
        self.delay = STOCK_CHECK_DELAY_SECONDS

    async def check_asin(self, asin: str) -> Dict[str, Any]:
        errors: List[str] = []
        for name, client in (("rainforest", self._rainforest), ("keepa", self._keepa)):
            if not client.configured:
                errors.append(f"{name}: not configured")
                continue
            try:
                data = await client.fetch_product(asin)
            except (HTTPException, CommandCenterException, httpx.HTTPError) as e:
                detail = getattr(e, "detail", None) or str(e)
                logger.warning(f"stock check {name} failed for {asin}: {detail}")
                errors.append(f"{name}: {detail}")
                continue

            in_stock = data.get("in_stock")
            if in_stock is None:
                in_stock = data.get("price") is not None
            return {
                "in_stock": bool(in_stock),
                "price": data.get("price"),
                "source": name,
                "seller": data.get("seller"),
                "error": None,
            }

        return {"in_stock": None, "price": None, "source": "none", "seller": None, "error": "; ".join(errors)}

    async def _items(
        self,
        product_ids: Optional[List[str]],
        asins: Optional[List[str]],
    ) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        if product_ids:
            for product in await self._products.get_products_by_ids(product_ids):
                items.append({"product_id": product["id"], "asin": product.get("asin") or ""})
        for asin in asins or []:
            product = await self._products.get_product_by_asin(asin.strip().upper())
            items.append({"product_id": product["id"] if product else None, "asin": asin.strip().upper()})
        return items

    async def check_stock(
        self,
        product_ids: Optional[List[str]] = None,
        asins: Optional[List[str]] = None,
        update: bool = True,
    ) -> Dict[str, Any]:
        if not product_ids and not asins:
            raise ValidationError("product_ids or asins required")

        results: List[Dict[str, Any]] = []
        for index, item in enumerate(await self._items(product_ids, asins)):
            asin = item["asin"]
            if not asin or len(asin) < MIN_ASIN_LENGTH:
                results.append({
                    **item,
                    "in_stock": None,
                    "price": None,
                    "source": "none",
                    "seller": None,
                    "error": "No valid ASIN",
                    "status": "invalid",
                })
                continue

            if index:
                await asyncio.sleep(self.delay)
            outcome = await self.check_asin(asin)
            result = {**item, **outcome, "status": _stock_status(outcome["in_stock"])}
            results.append(result)

            if update and item["product_id"]:
                await self._products.mark_stock_checked(
                    item["product_id"], result["status"], price=outcome["price"]
                )

        return {
            "results": results,
            "summary": {
                "total": len(results),
                "in_stock": sum(1 for r in results if r["in_stock"] is True),
                "out_of_stock": sum(1 for r in results if r["in_stock"] is False),
                "unknown": sum(1 for r in results if r["in_stock"] is None),
            },
        }
