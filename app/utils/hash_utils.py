"""
Hash utilities — deterministic hashing for price sync change detection.
"""

import hashlib
import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional


def compute_price_hash(
    cost: Optional[float],
    list_price: Optional[float],
    compare_at_price: Optional[float],
    in_stock: Optional[bool],
) -> str:
    """
    Hash the fields that, when changed, require a Shopify update.

    If the hash matches the product's stored price_hash, the sync
    skips the Shopify call.

    Returns:
        SHA-256 hash string (first 16 chars for storage efficiency)
    """
    relevant_data = {
        "cost": cost,
        "list_price": list_price,
        "compare_at_price": compare_at_price,
        "in_stock": in_stock,
    }

    json_str = json.dumps(relevant_data, sort_keys=True, default=str)
    hash_obj = hashlib.sha256(json_str.encode())

    return hash_obj.hexdigest()[:16]


def compute_pricing_hash(pricing: Dict[str, Any], in_stock: Optional[bool]) -> str:
    """compute_price_hash over a calculate_all_prices() result."""
    return compute_price_hash(
        pricing.get("cost"),
        pricing.get("list_price"),
        pricing.get("compare_at_price"),
        in_stock,
    )


def daily_seed(key: Any, day: Optional[date] = None) -> int:
    """
    Stable integer seed for (key, day).

    Competitor display prices drawn with this seed stay fixed for a
    product within one UTC day and move on the next.
    """
    day = day or datetime.now(timezone.utc).date()
    digest = hashlib.sha256(f"{key}:{day.isoformat()}".encode()).hexdigest()
    return int(digest[:12], 16)
