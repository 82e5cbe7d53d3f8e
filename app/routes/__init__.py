"""
Route aggregator — mounts all API routers under the /api prefix.

Health routes are exported separately for main.py to mount at root.
"""
from fastapi import APIRouter

from app.routes.products import router as products_router
from app.routes.prices import router as prices_router
from app.routes.margins import router as margins_router
from app.routes.bulk_push import router as bulk_push_router
from app.routes.shopify_push import router as shopify_push_router
from app.routes.stock_check import router as stock_check_router
from app.routes.webhooks import router as webhooks_router
from app.routes.cron import router as cron_router
from app.routes.health import router as health_router

api_router = APIRouter(prefix="/api")

api_router.include_router(products_router)
api_router.include_router(prices_router)
api_router.include_router(margins_router)
api_router.include_router(bulk_push_router)
api_router.include_router(shopify_push_router)
api_router.include_router(stock_check_router)
api_router.include_router(webhooks_router)
api_router.include_router(cron_router)

__all__ = ["api_router", "health_router"]
