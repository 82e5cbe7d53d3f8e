"""
Celery configuration — broker, queues, task routes, beat schedule.

Note: On Windows, Celery's prefork pool doesn't work properly.
Use --pool=solo or --pool=threads on Windows.

=============================================================================
RUNNING WORKERS
=============================================================================

All queues in one terminal:
    celery -A app.celery_app worker --pool=solo -Q default,price_sync,shopify_push,stock_check -l info -n all@%h

Price sync on its own worker (keeps Rainforest pacing predictable):
    celery -A app.celery_app worker --pool=solo -Q price_sync --concurrency=1 -l info -n prices@%h

Celery Beat (scheduler):
    celery -A app.celery_app beat -l info

When running workers manually, set AUTO_START_CELERY=false so FastAPI
does not start a duplicate worker competing for the same queues.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================
    PRICE_SYNC_ENABLED: "true" or "false": master switch for scheduled jobs (default: true)
    PRICE_SYNC_HOUR / PRICE_SYNC_MINUTE: UTC time of the daily price sync (default: 05:00)
    MARGIN_CHECK_HOUR: UTC hour of the daily margin / grace-period check (default: 6)
    STOCK_CHECK_HOUR: UTC hour of the daily stock check (default: 4)
    SHOPIFY_API_RATE_LIMIT: Celery rate limit for Shopify push tasks (default: 120/m)
    RAINFOREST_API_RATE_LIMIT: Celery rate limit for per-product sync tasks (default: 50/m)
"""
import logging
import platform

from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from app.core.config import settings

logger = logging.getLogger(__name__)

IS_WINDOWS = platform.system() == "Windows"

SHOPIFY_RATE_LIMIT = settings.shopify_api_rate_limit
RAINFOREST_RATE_LIMIT = settings.rainforest_api_rate_limit


def _build_beat_schedule() -> dict:
    """Daily price sync, margin enforcement and stock check; empty when disabled."""
    if not settings.price_sync_enabled:
        logger.info("scheduled price sync disabled (PRICE_SYNC_ENABLED=false)")
        return {}

    return {
        "dispatch-daily-price-sync": {
            "task": "tasks.price_sync.dispatch_price_sync",
            "schedule": crontab(minute=settings.price_sync_minute, hour=settings.price_sync_hour),
            "options": {"queue": "default"},
        },
        "enforce-margins": {
            "task": "tasks.margins.enforce_margins",
            "schedule": crontab(minute=0, hour=settings.margin_check_hour),
            "options": {"queue": "default"},
        },
        "daily-stock-check": {
            "task": "tasks.stock_check.check_stock_batch",
            "schedule": crontab(minute=30, hour=settings.stock_check_hour),
            "options": {"queue": "stock_check"},
        },
    }


celery_app = Celery(
    "command_center",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.celery_app.tasks.price_sync",
        "app.celery_app.tasks.shopify_push",
        "app.celery_app.tasks.stock_check",
        "app.celery_app.tasks.margins",
    ]
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    task_queues=(
        Queue("default"),
        Queue("price_sync"),
        Queue("shopify_push"),
        Queue("stock_check"),
    ),
    task_routes={
        # Dispatcher and full runs stay on default so per-product tasks are never starved
        "tasks.price_sync.dispatch_price_sync": {"queue": "default"},
        "tasks.price_sync.run_full_sync": {"queue": "default"},
        "tasks.price_sync.*": {"queue": "price_sync"},
        "tasks.shopify_push.*": {"queue": "shopify_push"},
        "tasks.stock_check.*": {"queue": "stock_check"},
        "tasks.margins.*": {"queue": "default"},
    },

    # Rate limiting (configurable via env)
    task_annotations={
        "tasks.price_sync.sync_product_price": {
            "rate_limit": RAINFOREST_RATE_LIMIT,
        },
        "tasks.shopify_push.push_product": {
            "rate_limit": SHOPIFY_RATE_LIMIT,
        },
    },

    beat_schedule=_build_beat_schedule(),

    # Result expiration
    result_expires=3600,  # 1 hour

    # Retry settings
    task_default_retry_delay=30,
    task_max_retries=3,

    # Worker pool configuration for Windows compatibility
    worker_pool="solo" if IS_WINDOWS else "prefork",

    # Visibility timeout
    broker_transport_options={"visibility_timeout": 3600},

    # Custom log format
    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s] [%(task_name)s] %(message)s",
)
