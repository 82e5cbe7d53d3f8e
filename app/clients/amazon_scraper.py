"""
Amazon product page scraper — last-resort price source.

Parses the public /dp/{asin} page with BeautifulSoup. Amazon markup
shifts often, so every field has a fallback chain and anything not
found comes back as None rather than raising.
"""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from bs4 import BeautifulSoup

from app.core.config import Settings
from app.core.exceptions import ExternalAPIError

logger = logging.getLogger("amazon_scraper")

_PRICE_RE = re.compile(r"\$\s*([\d,]+(?:\.\d{1,2})?)")
_NUMBER_RE = re.compile(r"([\d,]+)")
_RATING_RE = re.compile(r"([\d.]+)\s+out of\s+5")
_RANK_RE = re.compile(r"#\s*([\d,]+)\s+in\s+")

# Detail rows worth keeping, keyed by lowercase label prefix
_DETAIL_KEYS = {
    "upc": "upc",
    "ean": "ean",
    "item model number": "mpn",
    "manufacturer part number": "mpn",
    "product dimensions": "dimensions",
    "package dimensions": "dimensions",
    "item weight": "weight",
    "manufacturer": "manufacturer",
}


def _text(node) -> Optional[str]:
    if node is None:
        return None
    value = node.get_text(" ", strip=True)
    return value or None


def parse_price(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = _PRICE_RE.search(value)
    if match:
        return float(match.group(1).replace(",", ""))
    try:
        return float(value.replace(",", "").strip())
    except ValueError:
        return None


def _extract_price(soup: BeautifulSoup) -> Optional[float]:
    for selector in (
        "#corePrice_feature_div .a-price .a-offscreen",
        "#corePriceDisplay_desktop_feature_div .a-price .a-offscreen",
        ".a-price .a-offscreen",
        "#priceblock_ourprice",
        "#priceblock_dealprice",
    ):
        price = parse_price(_text(soup.select_one(selector)))
        if price is not None:
            return price

    whole = _text(soup.select_one(".a-price-whole"))
    if whole:
        fraction = _text(soup.select_one(".a-price-fraction")) or "00"
        digits = re.sub(r"[^\d]", "", whole)
        if digits:
            cents = re.sub(r"[^\d]", "", fraction)[:2] or "00"
            return float(f"{digits}.{cents}")

    tagged = soup.find(attrs={"data-asin-price": True})
    if tagged is not None:
        return parse_price(tagged.get("data-asin-price"))
    return None


def _extract_details(soup: BeautifulSoup) -> Dict[str, str]:
    details: Dict[str, str] = {}
    rows = soup.select("#productDetails_techSpec_section_1 tr, #productDetails_detailBullets_sections1 tr")
    for row in rows:
        label = _text(row.find("th"))
        value = _text(row.find("td"))
        if label and value:
            _store_detail(details, label, value)

    for item in soup.select("#detailBullets_feature_div li"):
        spans = item.select("span span")
        if len(spans) >= 2:
            _store_detail(details, _text(spans[0]) or "", _text(spans[1]) or "")
    return details


def _store_detail(details: Dict[str, str], label: str, value: str) -> None:
    label = re.sub("[\u200e\u200f:]", "", label).strip().lower()
    for prefix, key in _DETAIL_KEYS.items():
        if label.startswith(prefix) and key not in details and value:
            details[key] = value.strip()


def _extract_bsr(soup: BeautifulSoup) -> Optional[int]:
    for text in soup.find_all(string=re.compile("Best Sellers Rank")):
        container = text.find_parent(["tr", "li"]) or text.parent
        match = _RANK_RE.search(container.get_text(" ", strip=True))
        if match:
            return int(match.group(1).replace(",", ""))
    return None


def parse_product_page(asin: str, html: str) -> Dict[str, Any]:
    soup = BeautifulSoup(html, "html.parser")

    if soup.select_one("form[action*='validateCaptcha']") is not None:
        raise ExternalAPIError("Amazon", f"captcha page served for {asin}")

    title = _text(soup.select_one("#productTitle"))
    brand = _text(soup.select_one("#bylineInfo"))
    if brand:
        brand = re.sub(r"^(Visit the|Brand:)\s*", "", brand)
        brand = re.sub(r"\s*Store$", "", brand)

    rating = None
    rating_text = _text(soup.select_one("#acrPopover")) or _text(soup.select_one("span.a-icon-alt"))
    if rating_text:
        match = _RATING_RE.search(rating_text)
        if match:
            rating = float(match.group(1))

    review_count = None
    reviews_text = _text(soup.select_one("#acrCustomerReviewText"))
    if reviews_text:
        match = _NUMBER_RE.search(reviews_text)
        if match:
            review_count = int(match.group(1).replace(",", ""))

    availability = _text(soup.select_one("#availability")) or ""
    lowered = availability.lower()
    in_stock = bool(availability) and "unavailable" not in lowered and "out of stock" not in lowered

    image = None
    img = soup.select_one("#landingImage") or soup.select_one("#imgBlkFront")
    if img is not None:
        image = img.get("data-old-hires") or img.get("src")

    bullets: List[str] = [
        text for text in (_text(span) for span in soup.select("#feature-bullets ul li span")) if text
    ]

    price = _extract_price(soup)
    return {
        "asin": asin,
        "title": title,
        "brand": brand,
        "price": price,
        "list_price": parse_price(_text(soup.select_one(".a-text-price .a-offscreen"))),
        "in_stock": in_stock and price is not None,
        "availability": availability or None,
        "rating": rating,
        "review_count": review_count,
        "bsr": _extract_bsr(soup),
        "image": image,
        "bullets": bullets,
        "description": _text(soup.select_one("#productDescription")),
        "details": _extract_details(soup),
        "seller": _text(soup.select_one("#sellerProfileTriggerId")),
        "source": "scraper",
    }


class AmazonScraper:
    def __init__(self, settings: Settings) -> None:
        self._enabled = settings.scraper_enabled
        self._user_agent = settings.scraper_user_agent
        self._domain = settings.amazon_domain

    @property
    def configured(self) -> bool:
        return self._enabled

    async def fetch_product(self, asin: str) -> Dict[str, Any]:
        url = f"https://www.{self._domain}/dp/{asin}"
        headers = {
            "User-Agent": self._user_agent,
            "Accept-Language": "en-US,en;q=0.9",
            "Accept": "text/html,application/xhtml+xml",
        }
        logger.info("amazon scrape asin=%s", asin)

        async with httpx.AsyncClient(timeout=20.0, follow_redirects=True) as client:
            resp = await client.get(url, headers=headers)

        logger.info("amazon scrape status=%s asin=%s", resp.status_code, asin)
        if resp.status_code != 200:
            raise ExternalAPIError("Amazon", f"page fetch failed for {asin}", status_code=resp.status_code)

        return parse_product_page(asin, resp.text)
