"""
Pricing calculator — markup, competitor display bands, profit, refresh tiers.

Pure functions; no I/O. Every number comes from app.core.constants.pricing.
"""
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.core.constants.pricing import (
    COMPETITOR_RANGES,
    DISCOVERY_MAX_PRICE,
    DISCOVERY_MIN_PRICE,
    DISCOVERY_MIN_RATING,
    DISCOVERY_MIN_REVIEWS,
    DISCOVERY_REQUIRE_PRIME,
    EXCLUDED_TITLE_WORDS,
    MARKUP_FACTOR,
    MIN_COMPETITOR_MULTIPLIER,
    MIN_PROFIT_PERCENT,
    REFRESH_TIERS,
    STALE_AFTER_DAYS,
    TARGET_PROFIT_PERCENT,
)
from app.core.exceptions import ValidationError


def _round2(value: float) -> float:
    return round(value + 1e-9, 2)


def calculate_list_price(cost: float) -> float:
    """Shopify list price for an Amazon source cost."""
    if cost is None or cost <= 0:
        raise ValidationError(f"Cost must be greater than 0, got {cost}")
    return _round2(cost * MARKUP_FACTOR)


def calculate_competitor_prices(list_price: float, seed: Optional[int] = None) -> Dict[str, Any]:
    """
    Draw a display price for each competitor inside its band.

    Args:
        list_price: Our list price
        seed: Makes the draw reproducible (same seed -> same prices)

    Returns:
        dict with one key per competitor, "highest", and "warnings"
        listing any value raised to the MIN_COMPETITOR_MULTIPLIER floor.
    """
    if list_price is None or list_price <= 0:
        raise ValidationError(f"List price must be greater than 0, got {list_price}")

    rng = random.Random(seed) if seed is not None else random.Random()
    floor = _round2(list_price * MIN_COMPETITOR_MULTIPLIER)

    prices: Dict[str, Any] = {}
    warnings: List[str] = []
    for competitor, (low, high) in COMPETITOR_RANGES.items():
        price = _round2(list_price * rng.uniform(low, high))
        if price < floor:
            warnings.append(f"{competitor} price {price} raised to minimum {floor}")
            price = floor
        prices[competitor] = price

    prices["highest"] = max(prices[c] for c in COMPETITOR_RANGES)
    prices["warnings"] = warnings
    return prices


def calculate_profit(cost: float, list_price: float) -> Dict[str, Any]:
    amount = _round2(list_price - cost)
    percent = round((amount / cost) * 100, 2) if cost else 0.0
    return {
        "amount": amount,
        "percent": percent,
        "status": "profitable" if percent >= MIN_PROFIT_PERCENT else "below_threshold",
        "meets_target": percent >= TARGET_PROFIT_PERCENT,
    }


def calculate_all_prices(cost: float, seed: Optional[int] = None) -> Dict[str, Any]:
    """Everything the sync and push paths need for one product."""
    list_price = calculate_list_price(cost)
    competitors = calculate_competitor_prices(list_price, seed=seed)
    return {
        "cost": _round2(cost),
        "list_price": list_price,
        "competitor_prices": {c: competitors[c] for c in COMPETITOR_RANGES},
        "compare_at_price": competitors["highest"],
        "profit": calculate_profit(cost, list_price),
        "warnings": competitors["warnings"],
    }


def calculate_margin_percent(cost: float, retail: float) -> float:
    """Margin on retail: (retail - cost) / retail * 100."""
    if not retail or retail <= 0:
        return 0.0
    return round((retail - cost) / retail * 100, 2)


def get_refresh_interval_days(cost: float) -> int:
    for min_cost, interval_days in REFRESH_TIERS:
        if (cost or 0) >= min_cost:
            return interval_days
    return REFRESH_TIERS[-1][1]


def is_price_stale(
    last_checked: Optional[datetime],
    cost: float,
    now: Optional[datetime] = None,
) -> bool:
    """True when the product is due for a refresh under its tier, or never checked."""
    if last_checked is None:
        return True
    now = now or datetime.now(timezone.utc)
    interval = min(get_refresh_interval_days(cost), STALE_AFTER_DAYS)
    return now - last_checked >= timedelta(days=interval)


def contains_excluded_brand(title: str) -> bool:
    lowered = (title or "").lower()
    return any(
        re.search(rf"\b{re.escape(word)}\b", lowered) for word in EXCLUDED_TITLE_WORDS
    )


def meets_discovery_criteria(product: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Check an Amazon listing against the sourcing criteria.

    Expects keys: price, rating, reviews, is_prime, title.
    """
    reasons: List[str] = []
    price = product.get("price")
    rating = product.get("rating")
    reviews = product.get("reviews")

    if price is None:
        reasons.append("No price available")
    else:
        if price < DISCOVERY_MIN_PRICE:
            reasons.append(f"Price ${price} below minimum ${DISCOVERY_MIN_PRICE}")
        if price > DISCOVERY_MAX_PRICE:
            reasons.append(f"Price ${price} above maximum ${DISCOVERY_MAX_PRICE}")

    if reviews is None or reviews < DISCOVERY_MIN_REVIEWS:
        reasons.append(f"Reviews {reviews or 0} below minimum {DISCOVERY_MIN_REVIEWS}")

    if rating is None or rating < DISCOVERY_MIN_RATING:
        reasons.append(f"Rating {rating or 0} below minimum {DISCOVERY_MIN_RATING}")

    if DISCOVERY_REQUIRE_PRIME and not product.get("is_prime"):
        reasons.append("Not Prime eligible")

    if contains_excluded_brand(product.get("title") or ""):
        reasons.append("Contains excluded brand word")

    return len(reasons) == 0, reasons


def validate_pricing_config() -> List[str]:
    """Sanity-check the pricing constants; returns a list of problems."""
    errors: List[str] = []
    if MARKUP_FACTOR <= 1:
        errors.append(f"MARKUP_FACTOR must be > 1, got {MARKUP_FACTOR}")
    for competitor, (low, high) in COMPETITOR_RANGES.items():
        if low > high:
            errors.append(f"{competitor}: min {low} greater than max {high}")
        if low < MIN_COMPETITOR_MULTIPLIER:
            errors.append(
                f"{competitor}: min {low} below floor {MIN_COMPETITOR_MULTIPLIER}"
            )
    if MIN_PROFIT_PERCENT > TARGET_PROFIT_PERCENT:
        errors.append("MIN_PROFIT_PERCENT exceeds TARGET_PROFIT_PERCENT")
    return errors
