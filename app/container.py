"""
Lazy DI container — singleton access to clients, stores, and services.

Works in both FastAPI (async) and Celery (sync) contexts.
Import individual getters to avoid circular imports.
"""

from functools import lru_cache

from app.core.config import settings
from app.clients.supabase_client import SupabaseClient
from app.clients.shopify_client import ShopifyClient
from app.clients.rainforest_client import RainforestClient
from app.clients.keepa_client import KeepaClient
from app.clients.amazon_scraper import AmazonScraper
from app.db.product_store import ProductStore
from app.db.competitor_price_store import CompetitorPriceStore
from app.db.price_history_store import PriceHistoryStore
from app.db.sync_job_store import SyncJobStore
from app.db.margin_store import MarginStore
from app.db.webhook_log_store import WebhookLogStore
from app.services.price_source_service import PriceSourceService
from app.services.shopify_push_service import ShopifyPushService
from app.services.margin_service import MarginService
from app.services.price_sync_service import PriceSyncService
from app.services.stock_check_service import StockCheckService
from app.services.webhook_service import WebhookService


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_supabase_client():
    return SupabaseClient(settings)


@lru_cache(maxsize=1)
def get_shopify_client():
    return ShopifyClient(settings)


@lru_cache(maxsize=1)
def get_rainforest_client():
    return RainforestClient(settings)


@lru_cache(maxsize=1)
def get_keepa_client():
    return KeepaClient(settings)


@lru_cache(maxsize=1)
def get_amazon_scraper():
    return AmazonScraper(settings)


# -- DB Stores -------------------------------------------------------------

@lru_cache(maxsize=1)
def get_product_store():
    return ProductStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_competitor_price_store():
    return CompetitorPriceStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_price_history_store():
    return PriceHistoryStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_sync_job_store():
    return SyncJobStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_margin_store():
    return MarginStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_webhook_log_store():
    return WebhookLogStore(get_supabase_client())


# -- Services --------------------------------------------------------------

@lru_cache(maxsize=1)
def get_price_source_service():
    return PriceSourceService(
        rainforest=get_rainforest_client(),
        keepa=get_keepa_client(),
        scraper=get_amazon_scraper(),
    )


@lru_cache(maxsize=1)
def get_shopify_push_service():
    return ShopifyPushService(
        shopify=get_shopify_client(),
        product_store=get_product_store(),
        settings=settings,
    )


@lru_cache(maxsize=1)
def get_margin_service():
    return MarginService(
        product_store=get_product_store(),
        margin_store=get_margin_store(),
        history_store=get_price_history_store(),
        shopify=get_shopify_client(),
    )


@lru_cache(maxsize=1)
def get_price_sync_service():
    return PriceSyncService(
        price_source=get_price_source_service(),
        push_service=get_shopify_push_service(),
        margin_service=get_margin_service(),
        product_store=get_product_store(),
        competitor_store=get_competitor_price_store(),
        history_store=get_price_history_store(),
        job_store=get_sync_job_store(),
        settings=settings,
    )


@lru_cache(maxsize=1)
def get_stock_check_service():
    return StockCheckService(
        rainforest=get_rainforest_client(),
        keepa=get_keepa_client(),
        product_store=get_product_store(),
    )


@lru_cache(maxsize=1)
def get_webhook_service():
    return WebhookService(
        settings=settings,
        product_store=get_product_store(),
        log_store=get_webhook_log_store(),
    )
