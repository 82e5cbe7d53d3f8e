"""
Price source service — authoritative Amazon price with source fallback.

Order: Rainforest -> Keepa -> page scraper. Only configured sources
are tried; each failure is logged and the next source takes over.
"""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from app.clients.amazon_scraper import AmazonScraper
from app.clients.keepa_client import KeepaClient
from app.clients.rainforest_client import RainforestClient
from app.core.exceptions import CommandCenterException, InvalidAsinError

logger = logging.getLogger(__name__)

_ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")

QUOTE_FIELDS = ("asin", "price", "in_stock", "source", "seller", "title", "rating", "review_count", "bsr")


def normalize_asin(asin: Optional[str]) -> str:
    """Trim and upper-case an ASIN; raise InvalidAsinError if malformed."""
    value = (asin or "").strip().upper()
    if not _ASIN_RE.match(value):
        raise InvalidAsinError(f"Invalid ASIN: {asin!r}")
    return value


def empty_quote(asin: str, error: Optional[str] = None) -> Dict[str, Any]:
    quote: Dict[str, Any] = {field: None for field in QUOTE_FIELDS}
    quote.update({"asin": asin, "in_stock": False, "source": "none", "error": error})
    return quote


class PriceSourceService:
    def __init__(
        self,
        rainforest: RainforestClient,
        keepa: KeepaClient,
        scraper: AmazonScraper,
    ) -> None:
        self._rainforest = rainforest
        self._keepa = keepa
        self._scraper = scraper

    def _sources(self, include_scraper: bool) -> List[tuple]:
        sources = [("rainforest", self._rainforest), ("keepa", self._keepa)]
        if include_scraper:
            sources.append(("scraper", self._scraper))
        return [(name, client) for name, client in sources if client.configured]

    async def get_amazon_price(self, asin: str, include_scraper: bool = True) -> Dict[str, Any]:
        """
        Return a price quote for one ASIN.

        A quote with price=None and source="none" means every source failed;
        `error` then holds each source's failure joined with "; ".
        """
        asin = normalize_asin(asin)
        errors: List[str] = []

        for name, client in self._sources(include_scraper):
            try:
                result = await client.fetch_product(asin)
            except (HTTPException, CommandCenterException, httpx.HTTPError, ValueError) as e:
                detail = getattr(e, "detail", None) or str(e)
                logger.warning(f"price source {name} failed for {asin}: {detail}")
                errors.append(f"{name}: {detail}")
                continue

            if result.get("price") is None:
                logger.info(f"price source {name} returned no price for {asin}")
                errors.append(f"{name}: no price")
                continue

            quote = {field: result.get(field) for field in QUOTE_FIELDS}
            quote["source"] = name
            quote["error"] = None
            logger.info(f"price for {asin}: ${quote['price']} via {name} (in_stock={quote['in_stock']})")
            return quote

        if not errors:
            errors.append("no price source configured")
        return empty_quote(asin, "; ".join(errors))
