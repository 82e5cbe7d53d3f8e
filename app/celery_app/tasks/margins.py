"""
Margin tasks — daily grace-period and margin rule enforcement.
"""
import logging
from typing import Any, Dict

from app.celery_app.celery_config import celery_app
from app.celery_app.tasks.base import BaseTask, get_margin_service, run_async

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.margins.enforce_margins",
    max_retries=0,
)
def enforce_margins(self) -> Dict[str, Any]:
    result = run_async(get_margin_service().enforce_all())
    logger.info(f"margin enforcement: {result['total']} products, actions={result['actions']}")
    return result
