"""
Shopify payload builder — pure transformation from a product row to Shopify REST payloads.

Kept apart from ShopifyClient so the client only does HTTP transport
and the payloads can be unit-tested without network calls.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from app.core.constants.publishing import (
    COMPETITOR_METAFIELD_KEYS,
    DEFAULT_INVENTORY_QUANTITY,
    DEFAULT_PRODUCT_TYPE,
    METAFIELD_NAMESPACE,
    METAFIELD_NAMESPACE_COMPETITOR,
    METAFIELD_NAMESPACE_INVENTORY,
    PRODUCT_TAGS,
)

logger = logging.getLogger("shopify_payload_builder")


def _money(value: float | None) -> str | None:
    if value is None:
        return None
    return f"{float(value):.2f}"


# ── Tags / metafields ─────────────────────────────────────────────

def build_tags(product: Dict[str, Any]) -> str:
    tags = list(PRODUCT_TAGS)
    if product.get("asin"):
        tags.append(f"ASIN:{product['asin']}")
    if (product.get("bsr") or 0) > 0:
        tags.append(f"BSR:{product['bsr']}")
    if (product.get("rating") or 0) > 0:
        tags.append(f"Rating:{product['rating']}")
    return ", ".join(tags)


def build_metafields(product: Dict[str, Any], pricing: Dict[str, Any]) -> List[Dict[str, Any]]:
    """command_center namespace metafields attached at create/update time."""
    cost = pricing.get("cost") or 0
    list_price = pricing.get("list_price") or 0
    profit = list_price - cost if cost > 0 and list_price > 0 else 0
    return [
        {"namespace": METAFIELD_NAMESPACE, "key": "asin", "value": product.get("asin") or "", "type": "single_line_text_field"},
        {"namespace": METAFIELD_NAMESPACE, "key": "source_cost", "value": _money(cost), "type": "number_decimal"},
        {"namespace": METAFIELD_NAMESPACE, "key": "profit", "value": _money(profit), "type": "number_decimal"},
        {"namespace": METAFIELD_NAMESPACE, "key": "bsr", "value": str(int(product.get("bsr") or 0)), "type": "number_integer"},
        {
            "namespace": METAFIELD_NAMESPACE,
            "key": "pushed_at",
            "value": datetime.now(timezone.utc).isoformat(),
            "type": "single_line_text_field",
        },
    ]


def build_price_metafields(pricing: Dict[str, Any]) -> List[Dict[str, Any]]:
    """competitor/* and inventory/* metafields written on every price change."""
    metafields: List[Dict[str, Any]] = []
    competitors = pricing.get("competitor_prices") or {}
    for competitor, key in COMPETITOR_METAFIELD_KEYS.items():
        price = competitors.get(competitor)
        if price is None:
            continue
        metafields.append({
            "namespace": METAFIELD_NAMESPACE_COMPETITOR,
            "key": key,
            "value": _money(price),
            "type": "number_decimal",
        })

    if pricing.get("cost") is not None:
        metafields.append({
            "namespace": METAFIELD_NAMESPACE_INVENTORY,
            "key": "cost",
            "value": _money(pricing["cost"]),
            "type": "number_decimal",
        })
    profit = pricing.get("profit") or {}
    if profit.get("percent") is not None:
        metafields.append({
            "namespace": METAFIELD_NAMESPACE_INVENTORY,
            "key": "profit_percent",
            "value": _money(profit["percent"]),
            "type": "number_decimal",
        })
    return metafields


# ── Full payload builder ──────────────────────────────────────────

def build_product_body(product: Dict[str, Any], pricing: Dict[str, Any]) -> Dict[str, Any]:
    """Build the Shopify REST product payload for create or update."""
    title = product.get("title") or product.get("asin") or "Untitled product"
    description = product.get("body_html") or product.get("description") or ""
    if description and not description.lstrip().startswith("<"):
        description = f"<p>{description}</p>"

    variant: Dict[str, Any] = {
        "price": _money(pricing.get("list_price") or 0),
        "compare_at_price": _money(pricing.get("compare_at_price")),
        "inventory_management": "shopify",
        "inventory_policy": "deny",
        "inventory_quantity": DEFAULT_INVENTORY_QUANTITY,
        "requires_shipping": True,
        "taxable": True,
    }
    if product.get("asin"):
        variant["sku"] = product["asin"]

    image = product.get("image_url") or product.get("main_image")
    images = [{"src": image, "alt": title}] if image else []

    return {
        "product": {
            "title": title,
            "body_html": description,
            "vendor": product.get("brand") or product.get("vendor") or "Unknown",
            "product_type": product.get("product_type") or product.get("category") or DEFAULT_PRODUCT_TYPE,
            "tags": build_tags(product),
            "status": "active",
            "variants": [variant],
            "images": images,
            "metafields": build_metafields(product, pricing),
        }
    }
