import os
from typing import Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


def _env_bool(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Supabase
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    # HS256 secret used to verify dashboard user tokens issued by Supabase Auth
    supabase_jwt_secret: str | None = os.getenv("SUPABASE_JWT_SECRET")
    supabase_jwt_audience: str = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

    # Shopify
    shopify_store_domain: str | None = os.getenv("SHOPIFY_STORE_DOMAIN")
    shopify_admin_api_token: str | None = os.getenv("SHOPIFY_ADMIN_API_TOKEN")
    shopify_api_version: str = os.getenv("SHOPIFY_API_VERSION", "2024-10")
    shopify_webhook_secret: str | None = os.getenv("SHOPIFY_WEBHOOK_SECRET")
    shopify_max_retries: int = int(os.getenv("SHOPIFY_MAX_RETRIES", "3"))

    # Amazon price sources
    rainforest_api_key: str | None = os.getenv("RAINFOREST_API_KEY")
    rainforest_base_url: str = os.getenv("RAINFOREST_BASE_URL", "https://api.rainforestapi.com")
    keepa_api_key: str | None = os.getenv("KEEPA_API_KEY")
    keepa_base_url: str = os.getenv("KEEPA_BASE_URL", "https://api.keepa.com")
    amazon_domain: str = os.getenv("AMAZON_DOMAIN", "amazon.com")
    scraper_enabled: bool = _env_bool("SCRAPER_ENABLED", "true")
    scraper_user_agent: str = os.getenv(
        "SCRAPER_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    )

    # Cron endpoints (Authorization: Bearer <CRON_SECRET>)
    cron_secret: Optional[str] = os.getenv("CRON_SECRET")

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", os.getenv("REDIS_URL", "redis://localhost:6379/0"))

    # Rate limits (Celery annotations)
    shopify_api_rate_limit: str = os.getenv("SHOPIFY_API_RATE_LIMIT", "120/m")
    rainforest_api_rate_limit: str = os.getenv("RAINFOREST_API_RATE_LIMIT", "50/m")

    # Token buckets (Redis)
    shopify_rate_limit_capacity: int = int(os.getenv("SHOPIFY_RATE_LIMIT_CAPACITY", "40"))
    shopify_rate_limit_refill: int = int(os.getenv("SHOPIFY_RATE_LIMIT_REFILL", "120"))
    rainforest_rate_limit_capacity: int = int(os.getenv("RAINFOREST_RATE_LIMIT_CAPACITY", "5"))
    rainforest_rate_limit_refill: int = int(os.getenv("RAINFOREST_RATE_LIMIT_REFILL", "50"))

    # Price sync scheduling
    price_sync_enabled: bool = _env_bool("PRICE_SYNC_ENABLED", "true")
    price_sync_hour: int = int(os.getenv("PRICE_SYNC_HOUR", "5"))
    price_sync_minute: int = int(os.getenv("PRICE_SYNC_MINUTE", "0"))
    price_sync_batch_size: int = int(os.getenv("PRICE_SYNC_BATCH_SIZE", "100"))
    price_stale_hours: int = int(os.getenv("PRICE_STALE_HOURS", "24"))
    margin_check_hour: int = int(os.getenv("MARGIN_CHECK_HOUR", "6"))
    stock_check_hour: int = int(os.getenv("STOCK_CHECK_HOUR", "4"))

    # Pushing
    bulk_push_max: int = int(os.getenv("BULK_PUSH_MAX", "5"))

    # Local dev: FastAPI spawns its own worker and beat
    auto_start_celery: bool = _env_bool("AUTO_START_CELERY", "true")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
