"""
Price sync tasks — daily dispatch, per-product sync, sequential full runs.

Tasks:
- dispatch_price_sync: Beat entry; fans out one sync task per stale product
- sync_product_price: Reconciles a single product (rate limited)
- run_full_sync: Sequential batch run with job bookkeeping
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from app.celery_app.celery_config import celery_app
from app.celery_app.tasks.base import (
    BaseTask,
    classify_http_error,
    get_price_sync_service,
    get_product_store,
    run_async,
)
from app.core.constants.sync import DISPATCH_STAGGER_SECONDS
from app.core.exceptions import NonRetryableError, ProductNotFoundError, RetryableError
from app.utils.rate_limiter import get_rainforest_rate_limiter

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.price_sync.dispatch_price_sync",
    max_retries=1,
)
def dispatch_price_sync(self, limit: Optional[int] = None, dry_run: bool = False):
    """Enqueue sync_product_price for every product due a price check."""
    products = run_async(get_price_sync_service().select_products(limit=limit))
    if not products:
        logger.info("price sync dispatch: nothing stale")
        return {"status": "no_products", "dispatched": 0}

    for index, product in enumerate(products):
        sync_product_price.apply_async(
            args=[product["id"], dry_run],
            countdown=round(index * DISPATCH_STAGGER_SECONDS, 2),
        )

    logger.info(f"price sync dispatch: {len(products)} products queued")
    return {"status": "dispatched", "dispatched": len(products)}


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.price_sync.sync_product_price",
    autoretry_for=(RetryableError, httpx.ConnectError, httpx.ReadTimeout),
    dont_autoretry_for=(NonRetryableError,),
    retry_backoff=True,
    max_retries=3,
)
def sync_product_price(self, product_id: str, dry_run: bool = False) -> Dict[str, Any]:
    """Reconcile one product's price against Amazon and push it to Shopify."""
    if not get_rainforest_rate_limiter().wait_for_token(timeout=120):
        logger.warning(f"rate limiter timeout for product {product_id}, requeueing")
        raise RetryableError("Rainforest rate limiter timeout")

    product_store = get_product_store()
    service = get_price_sync_service()

    try:
        product = run_async(product_store.get_product(product_id))
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        result = run_async(service.sync_product(product, dry_run=dry_run))
    except HTTPException as e:
        logger.error(f"price sync failed for {product_id}: {e.status_code} {e.detail}")
        raise classify_http_error(e)

    logger.info(f"price sync {product_id}: {result['status']}")
    return result


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.price_sync.run_full_sync",
    max_retries=0,
)
def run_full_sync(
    self,
    product_ids: Optional[List[str]] = None,
    dry_run: bool = False,
    triggered_by: str = "task",
) -> Dict[str, Any]:
    """Run the sequential batch sync in one worker; per-product failures land in the summary."""
    service = get_price_sync_service()
    return run_async(service.run_sync(product_ids=product_ids, dry_run=dry_run, triggered_by=triggered_by))
