"""
Pricing constants — markup factor, competitor bands, profit thresholds.

Every pricing rule lives here. When markup changes, update ONE file.
"""

# Shopify list price = amazon_cost * MARKUP_FACTOR
MARKUP_FACTOR: float = 1.70

DEFAULT_CURRENCY: str = "USD"

# Competitor display prices are drawn uniformly inside these bands,
# expressed as multipliers of OUR list price.
COMPETITOR_RANGES: dict[str, tuple[float, float]] = {
    "amazon": (1.82, 1.88),
    "costco": (1.80, 1.85),
    "ebay": (1.87, 1.93),
    "sams": (1.80, 1.83),
}

# No competitor display price may sit below list_price * this
MIN_COMPETITOR_MULTIPLIER: float = 1.80

# Profit percent is computed on cost: (list - cost) / cost * 100
MIN_PROFIT_PERCENT: float = 30.0
TARGET_PROFIT_PERCENT: float = 70.0

# Days a product may stay below MIN_PROFIT_PERCENT before auto-pause
GRACE_PERIOD_DAYS: int = 7

# Refresh tiers by source cost: (min_cost, interval_days), checked top-down
REFRESH_TIERS: list[tuple[float, int]] = [
    (20.0, 1),
    (10.0, 3),
    (0.0, 7),
]
STALE_AFTER_DAYS: int = 14

# Margin health is computed on retail: (retail - cost) / retail * 100
MARGIN_HEALTHY_PERCENT: float = 35.0
MARGIN_WARNING_PERCENT: float = 25.0
MARGIN_CRITICAL_ALERT_PERCENT: float = 20.0
SUGGESTED_PRICE_MULTIPLIER: float = 1.35

# Competitor undercut alert: lowest competitor below retail * this
COMPETITOR_UNDERCUT_RATIO: float = 0.90

# Price trend band in percent
TREND_THRESHOLD_PERCENT: float = 2.0

# Default margin rule window when a rule omits bounds
DEFAULT_RULE_MIN_MARGIN: float = 30.0
DEFAULT_RULE_TARGET_SPREAD: float = 15.0
DEFAULT_RULE_MAX_MARGIN: float = 100.0

# Product discovery criteria
DISCOVERY_MIN_PRICE: float = 3.0
DISCOVERY_MAX_PRICE: float = 25.0
DISCOVERY_MIN_REVIEWS: int = 500
DISCOVERY_MIN_RATING: float = 3.5
DISCOVERY_REQUIRE_PRIME: bool = True

EXCLUDED_TITLE_WORDS: list[str] = [
    # Major brands
    "nike", "adidas", "apple", "samsung", "sony", "lg", "philips",
    "bose", "beats", "jbl", "anker", "logitech", "microsoft",
    # Brand indicators
    "branded", "official", "licensed", "authentic", "genuine",
    # Entertainment brands
    "disney", "marvel", "star wars", "pokemon", "nintendo",
    # Condition indicators
    "refurbished", "renewed", "used", "open box",
]
