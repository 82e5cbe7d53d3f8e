"""
Shopify push service — idempotent product upsert, price pushes and bulk push.

Upsert order for one product:
1. stored shopify_product_id -> update that product
2. variant with SKU == ASIN already in Shopify -> update it, adopt its ids
3. otherwise create
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from app.clients.shopify_client import ShopifyClient
from app.core.config import Settings
from app.core.constants.sync import BULK_PUSH_DELAY_SECONDS, PUSHABLE_LIST_LIMIT
from app.core.exceptions import CommandCenterException, ProductNotFoundError, ValidationError
from app.db.product_store import ProductStore
from app.utils.hash_utils import daily_seed
from app.utils.pricing_calculator import (
    calculate_competitor_prices,
    calculate_list_price,
    calculate_profit,
)
from app.utils.shopify_payload_builder import build_price_metafields, build_product_body

logger = logging.getLogger(__name__)


def resolve_pricing(product: Dict[str, Any]) -> Dict[str, Any]:
    """
    Pricing for a push: stored retail price wins over the markup, and
    compare_at is never lowered below what the product already shows.
    """
    cost = float(product.get("cost_price") or product.get("amazon_price") or 0)
    if cost <= 0:
        raise ValidationError(f"Product {product.get('id')} has no cost price")

    retail = product.get("retail_price")
    list_price = float(retail) if retail else calculate_list_price(cost)
    competitors = calculate_competitor_prices(list_price, seed=daily_seed(product.get("id") or product.get("asin")))
    existing = float(product.get("compare_at_price") or 0)
    compare_at = max(existing, competitors["highest"])

    return {
        "cost": cost,
        "list_price": list_price,
        "compare_at_price": compare_at,
        "competitor_prices": {k: competitors[k] for k in ("amazon", "costco", "ebay", "sams")},
        "profit": calculate_profit(cost, list_price),
    }


class ShopifyPushService:
    def __init__(self, shopify: ShopifyClient, product_store: ProductStore, settings: Settings) -> None:
        self._shopify = shopify
        self._products = product_store
        self._settings = settings

    async def push_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        """Create or update one product in Shopify and store the Shopify ids."""
        pricing = resolve_pricing(product)
        body = build_product_body(product, pricing)

        shopify_id = product.get("shopify_product_id")
        variant_id = product.get("shopify_variant_id")
        if not shopify_id and product.get("asin"):
            existing = await self._shopify.find_product_by_sku(product["asin"])
            if existing:
                shopify_id = existing["product_id"]
                variant_id = existing["variant_id"]
                logger.info(f"adopting Shopify product {shopify_id} for ASIN {product['asin']}")

        if shopify_id:
            action = "updated"
            result = await self._shopify.update_product(shopify_id, body)
        else:
            action = "created"
            result = await self._shopify.create_product(body)

        variants = result.get("variants") or []
        shopify_id = result.get("id") or shopify_id
        if variants:
            variant_id = variants[0].get("id") or variant_id

        await self._products.set_shopify_ids(product["id"], shopify_id, variant_id)
        await self._products.update_product_pricing(
            product["id"],
            retail_price=pricing["list_price"],
            compare_at_price=pricing["compare_at_price"],
            profit_percent=pricing["profit"]["percent"],
        )
        logger.info(f"shopify push {action} product={product['id']} shopify_id={shopify_id}")
        return {
            "product_id": product["id"],
            "shopify_product_id": str(shopify_id),
            "shopify_variant_id": str(variant_id) if variant_id else None,
            "handle": result.get("handle"),
            "action": action,
        }

    async def push_product_by_id(self, product_id: str) -> Dict[str, Any]:
        product = await self._products.get_product(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return await self.push_product(product)

    async def push_prices(self, product: Dict[str, Any], pricing: Dict[str, Any]) -> Dict[str, Any]:
        """Update the variant price/compare_at and write the competitor and inventory metafields."""
        shopify_id = product.get("shopify_product_id")
        variant_id = product.get("shopify_variant_id")
        if not shopify_id:
            raise ValidationError(f"Product {product.get('id')} is not on Shopify")

        if not variant_id:
            variants = (await self._shopify.get_product(shopify_id)).get("variants") or []
            if not variants:
                raise HTTPException(status_code=404, detail="Product has no variants")
            variant_id = variants[0].get("id")

        await self._shopify.update_variant_pricing(
            variant_id, pricing["list_price"], pricing.get("compare_at_price")
        )
        written = await self._shopify.set_product_metafields(shopify_id, build_price_metafields(pricing))
        return {"shopify_product_id": str(shopify_id), "variant_id": str(variant_id), "metafields": written}

    async def bulk_push(self, product_ids: List[str]) -> Dict[str, Any]:
        """Push up to bulk_push_max products in sequence; failures do not stop the batch."""
        cap = self._settings.bulk_push_max
        if not product_ids:
            raise ValidationError("product_ids must contain at least one id")
        if len(product_ids) > cap:
            raise ValidationError(f"At most {cap} products per bulk push (got {len(product_ids)})")

        products = {p["id"]: p for p in await self._products.get_products_by_ids(product_ids)}
        results: List[Dict[str, Any]] = []

        for index, product_id in enumerate(product_ids):
            if index:
                await asyncio.sleep(BULK_PUSH_DELAY_SECONDS)
            product = products.get(product_id)
            if product is None:
                results.append({"product_id": product_id, "success": False, "error": "Product not found"})
                continue
            try:
                pushed = await self.push_product(product)
                results.append({**pushed, "success": True})
            except (HTTPException, CommandCenterException, httpx.HTTPError) as e:
                error = getattr(e, "detail", None) or str(e)
                logger.error(f"bulk push failed product={product_id}: {error}")
                results.append({"product_id": product_id, "success": False, "error": str(error)})

        pushed_count = sum(1 for r in results if r["success"])
        return {
            "results": results,
            "summary": {
                "total": len(product_ids),
                "pushed": pushed_count,
                "failed": len(product_ids) - pushed_count,
            },
        }

    async def list_pushable_products(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self._products.get_pushable_products(limit=limit or PUSHABLE_LIST_LIMIT)
