"""
Sync constants — pacing delays, retry bounds, batch caps.
"""

# Pause between products in sequential loops (seconds)
PRICE_SOURCE_DELAY_SECONDS: float = 1.1
STOCK_CHECK_DELAY_SECONDS: float = 1.2
BULK_PUSH_DELAY_SECONDS: float = 0.25

# Shopify 429 handling: sleep min(BASE * 2**attempt, MAX) unless Retry-After is sent
SHOPIFY_BACKOFF_BASE_SECONDS: float = 1.0
SHOPIFY_BACKOFF_MAX_SECONDS: float = 30.0

# Slow down once the REST call bucket is this full (X-Shopify-Shop-Api-Call-Limit)
SHOPIFY_CALL_LIMIT_THRESHOLD: float = 0.8
SHOPIFY_CALL_LIMIT_PAUSE_SECONDS: float = 1.0

# Seconds between staggered per-product task countdowns from the dispatcher
DISPATCH_STAGGER_SECONDS: float = 1.1

# Max error entries kept on a price_sync_jobs row
MAX_JOB_ERRORS: int = 200

# Stale-candidate pages read while filling one sync batch with due products
MAX_CANDIDATE_PAGES: int = 10

# Products listed by GET /api/shopify-push
PUSHABLE_LIST_LIMIT: int = 500

MIN_ASIN_LENGTH: int = 5
