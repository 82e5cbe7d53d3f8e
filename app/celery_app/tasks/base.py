"""
Base task class — retry policy, lifecycle logging and worker-side lookups.

Provides:
- Service getters resolved inside the worker process, after fork
- HTTPException classification into retryable and permanent failures
- run_async for calling async services from sync Celery tasks
"""
import asyncio
import logging

from celery import Task
from fastapi import HTTPException

from app.core.exceptions import NonRetryableError, RetryableError

logger = logging.getLogger(__name__)


def _describe(args, kwargs) -> str:
    """Short argument summary for log lines (product id, job id, batch size)."""
    parts = [str(a) for a in args if isinstance(a, (str, int))]
    parts += [f"{k}={v}" for k, v in (kwargs or {}).items() if isinstance(v, (str, int, bool))]
    return ", ".join(parts) or "-"


class BaseTask(Task):
    """Parent of every price sync, push, stock and margin task."""

    abstract = True

    # autoretry_for is declared per task; only the backoff shape is shared.
    retry_backoff = True
    retry_backoff_max = 300
    retry_jitter = True
    max_retries = 3
    track_started = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            "task %s[%s] failed (%s): %s: %s",
            self.name, task_id, _describe(args, kwargs), type(exc).__name__, exc,
        )

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(
            "task %s[%s] retry %s/%s (%s): %s",
            self.name, task_id, self.request.retries + 1, self.max_retries, _describe(args, kwargs), exc,
        )

    def on_success(self, retval, task_id, args, kwargs):
        logger.info("task %s[%s] done (%s)", self.name, task_id, _describe(args, kwargs))


def classify_http_error(e: HTTPException) -> Exception:
    """4xx from an upstream API will not fix itself; 5xx might."""
    message = f"HTTP {e.status_code}: {e.detail}"
    if 400 <= e.status_code < 500:
        return NonRetryableError(message)
    return RetryableError(message)


def run_async(coro):
    """Run a service coroutine on a fresh event loop (one per task call)."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# Container imports stay inside the getters: Supabase clients must be
# built in the worker, not in the parent before fork.
def get_price_sync_service():
    from app.container import get_price_sync_service as _get
    return _get()


def get_shopify_push_service():
    from app.container import get_shopify_push_service as _get
    return _get()


def get_stock_check_service():
    from app.container import get_stock_check_service as _get
    return _get()


def get_margin_service():
    from app.container import get_margin_service as _get
    return _get()


def get_product_store():
    from app.container import get_product_store as _get
    return _get()