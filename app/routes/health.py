"""
Health routes — liveness probe plus configuration and rate limiter status.
"""
from fastapi import APIRouter

from app.core.config import settings
from app.utils.pricing_calculator import validate_pricing_config
from app.utils.rate_limiter import get_rainforest_rate_limiter, get_shopify_rate_limiter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/details")
async def health_details():
    """Which integrations are configured, pricing sanity, token bucket levels."""
    pricing_errors = validate_pricing_config()
    return {
        "status": "healthy" if not pricing_errors else "degraded",
        "integrations": {
            "supabase": bool(settings.supabase_url and settings.supabase_service_role_key),
            "shopify": bool(settings.shopify_store_domain and settings.shopify_admin_api_token),
            "rainforest": bool(settings.rainforest_api_key),
            "keepa": bool(settings.keepa_api_key),
            "scraper": settings.scraper_enabled,
            "webhook_hmac": bool(settings.shopify_webhook_secret),
            "cron_secret": bool(settings.cron_secret),
        },
        "pricing_config_errors": pricing_errors,
        "rate_limiters": {
            "shopify": get_shopify_rate_limiter().get_status(),
            "rainforest": get_rainforest_rate_limiter().get_status(),
        },
    }
