"""
Webhook routes — Shopify webhook receiver.

Headers used:
- X-Shopify-Hmac-Sha256: base64 HMAC of the raw body
- X-Shopify-Topic, X-Shopify-Shop-Domain, X-Shopify-Webhook-Id
"""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.container import get_webhook_service
from app.core.exceptions import WebhookVerificationError
from app.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/shopify")
async def shopify_webhook(
    request: Request,
    webhook_service: WebhookService = Depends(get_webhook_service),
):
    raw_body = await request.body()
    headers = request.headers

    if not webhook_service.verify_hmac(raw_body, headers.get("x-shopify-hmac-sha256")):
        logger.error("shopify webhook HMAC verification failed")
        raise WebhookVerificationError("Invalid signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON")

    return await webhook_service.handle(
        topic=headers.get("x-shopify-topic", "unknown"),
        webhook_id=headers.get("x-shopify-webhook-id", ""),
        shop_domain=headers.get("x-shopify-shop-domain", "unknown"),
        payload=payload,
    )
