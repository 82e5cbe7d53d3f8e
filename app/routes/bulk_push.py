"""
Bulk push route — synchronous push of a handful of products to Shopify.
"""
import logging

from fastapi import APIRouter, Body, Depends

from app.container import get_shopify_push_service
from app.core.auth import get_current_user
from app.schemas.publishing import BulkPushResponse, PushRequest
from app.services.shopify_push_service import ShopifyPushService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bulk-push", tags=["publishing"], dependencies=[Depends(get_current_user)])


@router.post("", response_model=BulkPushResponse)
async def bulk_push(
    payload: PushRequest = Body(...),
    push_service: ShopifyPushService = Depends(get_shopify_push_service),
    current_user: dict = Depends(get_current_user),
):
    """Push up to BULK_PUSH_MAX products inline; larger sets go through /shopify-push."""
    return await push_service.bulk_push(payload.product_ids)
