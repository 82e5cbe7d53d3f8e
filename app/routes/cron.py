"""
Cron routes — scheduler-invoked price sync, guarded by CRON_SECRET.

GET runs the stale-product sync inline (external cron);
POST takes {product_ids?, dry_run?} for a manual run.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from app.container import get_price_sync_service
from app.core.auth import verify_cron_secret
from app.schemas.prices import CronSyncRequest, SyncJobStatus
from app.services.price_sync_service import PriceSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/price-sync", response_model=SyncJobStatus)
async def cron_price_sync(sync_service: PriceSyncService = Depends(get_price_sync_service)):
    logger.info("cron price sync started")
    return await sync_service.run_sync(triggered_by="cron")


@router.post("/price-sync", response_model=SyncJobStatus)
async def manual_price_sync(
    payload: Optional[CronSyncRequest] = Body(None),
    sync_service: PriceSyncService = Depends(get_price_sync_service),
):
    payload = payload or CronSyncRequest()
    return await sync_service.run_sync(
        product_ids=payload.product_ids,
        dry_run=payload.dry_run,
        triggered_by="cron:manual",
    )
