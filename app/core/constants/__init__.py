"""
Constants package — re-exports from domain-specific modules.

Usage:
    from app.core.constants.pricing import MARKUP_FACTOR
    from app.core.constants.publishing import PRODUCT_TAGS
    # or import everything:
    from app.core.constants import pricing, publishing, sync
"""

from app.core.constants import pricing, publishing, sync
from app.core.constants.pricing import (
    MARKUP_FACTOR,
    DEFAULT_CURRENCY,
    COMPETITOR_RANGES,
    MIN_COMPETITOR_MULTIPLIER,
    MIN_PROFIT_PERCENT,
    TARGET_PROFIT_PERCENT,
    GRACE_PERIOD_DAYS,
)
from app.core.constants.publishing import (
    PRODUCT_TAGS,
    METAFIELD_NAMESPACE,
    METAFIELD_NAMESPACE_COMPETITOR,
    METAFIELD_NAMESPACE_INVENTORY,
    DEFAULT_INVENTORY_QUANTITY,
)
from app.core.constants.sync import (
    PRICE_SOURCE_DELAY_SECONDS,
    STOCK_CHECK_DELAY_SECONDS,
    BULK_PUSH_DELAY_SECONDS,
    SHOPIFY_BACKOFF_BASE_SECONDS,
    SHOPIFY_BACKOFF_MAX_SECONDS,
)

__all__ = [
    "pricing",
    "publishing",
    "sync",
    "MARKUP_FACTOR",
    "DEFAULT_CURRENCY",
    "COMPETITOR_RANGES",
    "MIN_COMPETITOR_MULTIPLIER",
    "MIN_PROFIT_PERCENT",
    "TARGET_PROFIT_PERCENT",
    "GRACE_PERIOD_DAYS",
    "PRODUCT_TAGS",
    "METAFIELD_NAMESPACE",
    "METAFIELD_NAMESPACE_COMPETITOR",
    "METAFIELD_NAMESPACE_INVENTORY",
    "DEFAULT_INVENTORY_QUANTITY",
    "PRICE_SOURCE_DELAY_SECONDS",
    "STOCK_CHECK_DELAY_SECONDS",
    "BULK_PUSH_DELAY_SECONDS",
    "SHOPIFY_BACKOFF_BASE_SECONDS",
    "SHOPIFY_BACKOFF_MAX_SECONDS",
]
