"""
Stock check tasks — batch Amazon availability refresh.
"""
import logging
from typing import Any, Dict, List, Optional

from app.celery_app.celery_config import celery_app
from app.celery_app.tasks.base import (
    BaseTask,
    get_product_store,
    get_stock_check_service,
    run_async,
)

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.stock_check.check_stock_batch",
    max_retries=0,
)
def check_stock_batch(self, product_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """Check stock for the given products, or every active product with an ASIN."""
    if not product_ids:
        products = run_async(get_product_store().get_active_products())
        product_ids = [p["id"] for p in products if p.get("asin")]
    if not product_ids:
        logger.info("stock check: no products")
        return {"results": [], "summary": {"total": 0, "in_stock": 0, "out_of_stock": 0, "unknown": 0}}

    result = run_async(get_stock_check_service().check_stock(product_ids=product_ids, update=True))
    logger.info(f"stock check summary: {result['summary']}")
    return result
