"""
Price routes — competitor prices, history/trend, sync triggers, jobs, intelligence.

Provides:
- GET  /prices/amazon/{asin}                        – live Amazon quote
- POST /prices/sync                                 – queue (or run inline) a price sync
- GET  /prices/jobs, /prices/jobs/{job_id}          – sync job status
- GET  /prices/intelligence/stats                   – tracking overview
- GET  /prices/intelligence/{product_id}/analysis   – margin analysis
- GET  /prices/{product_id}, /prices/{product_id}/trend
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from app.celery_app.tasks.price_sync import run_full_sync
from app.container import (
    get_competitor_price_store,
    get_margin_service,
    get_price_history_store,
    get_price_source_service,
    get_price_sync_service,
    get_product_store,
    get_sync_job_store,
)
from app.core.auth import get_current_user
from app.core.exceptions import PriceUnavailableError, ProductNotFoundError
from app.db.competitor_price_store import CompetitorPriceStore
from app.db.price_history_store import PriceHistoryStore
from app.db.product_store import ProductStore
from app.db.sync_job_store import SyncJobStore
from app.schemas.prices import (
    AmazonPriceQuote,
    PriceSyncRequest,
    PriceTrend,
    ProductPricesResponse,
    SyncJobStatus,
    SyncQueuedResponse,
)
from app.services.margin_service import MarginService, get_price_trend
from app.services.price_source_service import PriceSourceService
from app.services.price_sync_service import PriceSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/prices", tags=["prices"], dependencies=[Depends(get_current_user)])


@router.get("/amazon/{asin}", response_model=AmazonPriceQuote)
async def get_amazon_price(
    asin: str,
    price_source: PriceSourceService = Depends(get_price_source_service),
    current_user: dict = Depends(get_current_user),
):
    quote = await price_source.get_amazon_price(asin)
    if quote["price"] is None:
        raise PriceUnavailableError(f"No price for {asin}: {quote['error']}")
    return quote


@router.post("/sync")
async def trigger_price_sync(
    payload: Optional[PriceSyncRequest] = Body(None),
    sync_service: PriceSyncService = Depends(get_price_sync_service),
    current_user: dict = Depends(get_current_user),
):
    """Queue a full sync, or with wait=true run it inline and return the summary."""
    payload = payload or PriceSyncRequest()
    triggered_by = f"user:{current_user['user_id']}"
    if payload.wait:
        summary = await sync_service.run_sync(
            product_ids=payload.product_ids,
            dry_run=payload.dry_run,
            limit=payload.limit,
            triggered_by=triggered_by,
        )
        return SyncJobStatus(**summary)

    task = run_full_sync.delay(payload.product_ids, payload.dry_run, triggered_by)
    return SyncQueuedResponse(task_id=task.id, message="Price sync queued")


@router.get("/jobs")
async def list_sync_jobs(
    limit: int = Query(20, ge=1, le=100),
    job_store: SyncJobStore = Depends(get_sync_job_store),
    current_user: dict = Depends(get_current_user),
):
    return {"jobs": await job_store.list_jobs(limit=limit)}


@router.get("/jobs/{job_id}")
async def get_sync_job(
    job_id: str,
    job_store: SyncJobStore = Depends(get_sync_job_store),
    current_user: dict = Depends(get_current_user),
):
    job = await job_store.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("/intelligence/stats")
async def price_tracking_stats(
    margin_service: MarginService = Depends(get_margin_service),
    current_user: dict = Depends(get_current_user),
):
    return await margin_service.get_price_tracking_stats()


@router.get("/intelligence/{product_id}/analysis")
async def product_margin_analysis(
    product_id: str,
    margin_service: MarginService = Depends(get_margin_service),
    current_user: dict = Depends(get_current_user),
):
    return await margin_service.analyze(product_id)


@router.get("/{product_id}", response_model=ProductPricesResponse)
async def get_product_prices(
    product_id: str,
    days: int = Query(30, ge=1, le=365),
    product_store: ProductStore = Depends(get_product_store),
    competitor_store: CompetitorPriceStore = Depends(get_competitor_price_store),
    history_store: PriceHistoryStore = Depends(get_price_history_store),
    current_user: dict = Depends(get_current_user),
):
    product = await product_store.get_product(product_id)
    if not product:
        raise ProductNotFoundError(f"Product {product_id} not found")
    return ProductPricesResponse(
        product_id=product_id,
        retail_price=product.get("retail_price"),
        compare_at_price=product.get("compare_at_price"),
        cost_price=product.get("cost_price"),
        competitor_prices=await competitor_store.get_prices(product_id),
        history=await history_store.get_history(product_id, days=days),
    )


@router.get("/{product_id}/trend", response_model=PriceTrend)
async def get_product_price_trend(
    product_id: str,
    days: int = Query(30, ge=1, le=365),
    history_store: PriceHistoryStore = Depends(get_price_history_store),
    current_user: dict = Depends(get_current_user),
):
    history = await history_store.get_history(product_id, days=days)
    return get_price_trend(history)
