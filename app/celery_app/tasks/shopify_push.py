"""
Shopify push tasks — queued create-or-update of a single product.
"""
import logging
from typing import Any, Dict

import httpx
from fastapi import HTTPException

from app.celery_app.celery_config import celery_app
from app.celery_app.tasks.base import (
    BaseTask,
    classify_http_error,
    get_shopify_push_service,
    run_async,
)
from app.core.exceptions import NonRetryableError, RetryableError
from app.utils.rate_limiter import get_shopify_rate_limiter

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.shopify_push.push_product",
    autoretry_for=(RetryableError, httpx.ConnectError, httpx.ReadTimeout),
    dont_autoretry_for=(NonRetryableError,),
    retry_backoff=True,
    max_retries=3,
)
def push_product(self, product_id: str) -> Dict[str, Any]:
    """Create or update one product in Shopify."""
    if not get_shopify_rate_limiter().wait_for_token(timeout=120):
        raise RetryableError("Shopify rate limiter timeout")

    service = get_shopify_push_service()
    try:
        result = run_async(service.push_product_by_id(product_id))
    except HTTPException as e:
        logger.error(f"shopify push failed for {product_id}: {e.status_code} {e.detail}")
        raise classify_http_error(e)

    logger.info(f"shopify push {product_id}: {result['action']} ({result['shopify_product_id']})")
    return result
