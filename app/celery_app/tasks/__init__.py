"""
Celery task exports — all tasks registered from submodules.
"""
from app.celery_app.tasks.price_sync import dispatch_price_sync, sync_product_price, run_full_sync
from app.celery_app.tasks.shopify_push import push_product
from app.celery_app.tasks.stock_check import check_stock_batch
from app.celery_app.tasks.margins import enforce_margins

__all__ = [
    "dispatch_price_sync",
    "sync_product_price",
    "run_full_sync",
    "push_product",
    "check_stock_batch",
    "enforce_margins",
]
