"""
Rainforest HTTP client — Amazon product lookups by ASIN.
"""
import logging
import re
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from app.core.config import Settings
from app.core.exceptions import AuthenticationError, ExternalAPIError

logger = logging.getLogger("rainforest_client")

_RANK_RE = re.compile(r"Rank:\s*#?([\d,]+)")


def parse_bsr(product: Dict[str, Any]) -> Optional[int]:
    """Best Sellers Rank from a Rainforest product payload."""
    ranks = product.get("bestsellers_rank") or []
    if ranks and isinstance(ranks, list):
        rank = (ranks[0] or {}).get("rank")
        if rank is not None:
            try:
                return int(rank)
            except (TypeError, ValueError):
                pass
    flat = product.get("bestsellers_rank_flat") or ""
    match = _RANK_RE.search(flat)
    if match:
        return int(match.group(1).replace(",", ""))
    return None


def parse_product(asin: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a Rainforest `type=product` response into a price quote."""
    product = body.get("product") or {}
    buybox = product.get("buybox_winner") or {}

    price = (buybox.get("price") or {}).get("value")
    if price is None:
        price = (product.get("price") or {}).get("value")

    availability = buybox.get("availability") or product.get("availability") or {}
    in_stock = availability.get("type") == "in_stock"

    fulfillment = buybox.get("fulfillment") or {}
    seller = (fulfillment.get("third_party_seller") or {}).get("name")
    if not seller and fulfillment.get("is_sold_by_amazon"):
        seller = "Amazon"

    return {
        "asin": asin,
        "price": float(price) if price is not None else None,
        "in_stock": in_stock,
        "seller": seller,
        "title": product.get("title"),
        "brand": product.get("brand"),
        "rating": product.get("rating"),
        "review_count": product.get("ratings_total"),
        "bsr": parse_bsr(product),
        "is_prime": bool(buybox.get("is_prime")),
        "image": (product.get("main_image") or {}).get("link"),
        "source": "rainforest",
    }


class RainforestClient:
    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.rainforest_api_key
        self._base_url = settings.rainforest_base_url.rstrip("/")
        self._amazon_domain = settings.amazon_domain

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self._api_key:
            raise HTTPException(status_code=500, detail="RAINFOREST_API_KEY env var is required")

        query = {"api_key": self._api_key, "amazon_domain": self._amazon_domain, **params}
        logger.info("rainforest request type=%s asin=%s", params.get("type"), params.get("asin"))

        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.get(f"{self._base_url}/request", params=query)

        logger.info("rainforest response status=%s", resp.status_code)
        if resp.status_code in (401, 403):
            raise AuthenticationError("Rainforest rejected the API key")
        if resp.status_code != 200:
            raise HTTPException(status_code=resp.status_code, detail=f"Rainforest error: {resp.text}")

        try:
            body = resp.json()
        except ValueError:
            raise ExternalAPIError("Rainforest", "invalid JSON in response", status_code=resp.status_code)
        request_info = body.get("request_info") or {}
        if request_info.get("success") is False:
            raise ExternalAPIError("Rainforest", request_info.get("message") or "request failed")
        return body

    async def fetch_product(self, asin: str) -> Dict[str, Any]:
        body = await self._request({"type": "product", "asin": asin})
        return parse_product(asin, body)
