"""
Shopify push routes — list unpublished products, queue push tasks.
"""
import logging

from fastapi import APIRouter, Body, Depends, Query

from app.celery_app.tasks.shopify_push import push_product
from app.container import get_shopify_push_service
from app.core.auth import get_current_user
from app.core.constants.sync import PUSHABLE_LIST_LIMIT
from app.schemas.publishing import PushQueuedResponse, PushRequest, QueuedPush
from app.services.shopify_push_service import ShopifyPushService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shopify-push", tags=["publishing"], dependencies=[Depends(get_current_user)])


@router.get("")
async def list_pushable(
    limit: int = Query(PUSHABLE_LIST_LIMIT, ge=1, le=PUSHABLE_LIST_LIMIT),
    push_service: ShopifyPushService = Depends(get_shopify_push_service),
    current_user: dict = Depends(get_current_user),
):
    products = await push_service.list_pushable_products(limit=limit)
    return {"products": products, "total": len(products)}


@router.post("", response_model=PushQueuedResponse)
async def queue_push(
    payload: PushRequest = Body(...),
    current_user: dict = Depends(get_current_user),
):
    queued = []
    for product_id in payload.product_ids:
        task = push_product.delay(product_id)
        queued.append(QueuedPush(product_id=product_id, task_id=task.id))
    logger.info(f"queued {len(queued)} shopify pushes for {current_user['user_id']}")
    return PushQueuedResponse(queued=queued, message=f"{len(queued)} products queued for Shopify push")
