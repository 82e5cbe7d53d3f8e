"""
Keepa HTTP client — fallback Amazon price source.

Keepa prices are integer cents; -1 means "no offer".
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from app.core.config import Settings
from app.core.exceptions import AuthenticationError, ExternalAPIError

logger = logging.getLogger("keepa_client")

# Indices into stats.current
KEEPA_AMAZON_INDEX = 0
KEEPA_BUYBOX_INDEX = 18

# Keepa domain id for amazon.com
KEEPA_DOMAIN_US = 1


def _current_price(stats: Dict[str, Any]) -> Optional[float]:
    current = stats.get("current") or []
    for index in (KEEPA_BUYBOX_INDEX, KEEPA_AMAZON_INDEX):
        if len(current) > index and current[index] is not None and current[index] > 0:
            return round(current[index] / 100, 2)
    return None


def parse_product(asin: str, body: Dict[str, Any]) -> Dict[str, Any]:
    products = body.get("products") or []
    if not products:
        raise ExternalAPIError("Keepa", f"no product returned for {asin}")

    product = products[0]
    price = _current_price(product.get("stats") or {})

    rank = None
    sales_ranks = product.get("salesRanks") or {}
    for history in sales_ranks.values():
        # [time, rank, time, rank, ...] - last rank wins
        if history and len(history) >= 2:
            rank = history[-1]
            break

    return {
        "asin": asin,
        "price": price,
        "in_stock": price is not None,
        "seller": None,
        "title": product.get("title"),
        "brand": product.get("brand"),
        "rating": None,
        "review_count": None,
        "bsr": rank if rank and rank > 0 else None,
        "source": "keepa",
    }


class KeepaClient:
    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.keepa_api_key
        self._base_url = settings.keepa_base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def fetch_product(self, asin: str) -> Dict[str, Any]:
        if not self._api_key:
            raise HTTPException(status_code=500, detail="KEEPA_API_KEY env var is required")

        params = {
            "key": self._api_key,
            "domain": KEEPA_DOMAIN_US,
            "asin": asin,
            "stats": 1,
            "offers": 20,
        }
        logger.info("keepa request asin=%s", asin)

        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.get(f"{self._base_url}/product", params=params)

        logger.info("keepa response status=%s asin=%s", resp.status_code, asin)
        if resp.status_code in (401, 403):
            raise AuthenticationError("Keepa rejected the API key")
        if resp.status_code != 200:
            raise HTTPException(status_code=resp.status_code, detail=f"Keepa error: {resp.text}")

        try:
            body = resp.json()
        except ValueError:
            raise ExternalAPIError("Keepa", "invalid JSON in response", status_code=resp.status_code)
        if body.get("error"):
            raise ExternalAPIError("Keepa", str(body["error"]))
        return parse_product(asin, body)
