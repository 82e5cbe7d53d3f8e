"""
Webhook service — Shopify webhook verification, idempotency and topic handlers.

Every delivery that passes verification is written to webhook_logs,
successful or not; a webhook_id already in the log is not reprocessed.
"""
import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import HTTPException

from app.core.config import Settings
from app.core.constants.publishing import LOCAL_STATUS_MAP
from app.core.exceptions import CommandCenterException
from app.db.product_store import ProductStore
from app.db.webhook_log_store import WebhookLogStore
from app.utils.type_converters import to_float

logger = logging.getLogger(__name__)

PAYLOAD_SUMMARY_CHARS = 500
RAW_ORDER_CHARS = 5000


def compute_hmac(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


class WebhookService:
    def __init__(
        self,
        settings: Settings,
        product_store: ProductStore,
        log_store: WebhookLogStore,
    ) -> None:
        self._settings = settings
        self._products = product_store
        self._logs = log_store
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[str]]] = {
            "orders/create": self._order_created,
            "orders/paid": self._order_paid,
            "products/update": self._product_updated,
            "products/delete": self._product_deleted,
            "inventory_levels/update": self._inventory_updated,
        }

    def verify_hmac(self, raw_body: bytes, header: Optional[str]) -> bool:
        secret = self._settings.shopify_webhook_secret
        if not secret:
            logger.warning("SHOPIFY_WEBHOOK_SECRET not set, skipping HMAC verification")
            return True
        if not header:
            return False
        # Bytes: compare_digest rejects non-ASCII str
        return hmac.compare_digest(compute_hmac(raw_body, secret).encode(), header.encode())

    async def handle(
        self,
        topic: str,
        webhook_id: str,
        shop_domain: str,
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        started = time.monotonic()
        logger.info(f"webhook received topic={topic} shop={shop_domain} id={webhook_id}")

        if webhook_id and await self._logs.is_processed(webhook_id):
            logger.info(f"webhook {webhook_id} already processed")
            return {"status": "already_processed"}

        handler = self._handlers.get(topic)
        if handler is None:
            result = {"success": True, "message": f"Unhandled topic: {topic}"}
        else:
            try:
                result = {"success": True, "message": await handler(payload)}
            except (HTTPException, CommandCenterException, KeyError, ValueError, TypeError) as e:
                message = getattr(e, "detail", None) or str(e)
                logger.error(f"webhook {topic} handler failed: {message}")
                result = {"success": False, "message": f"{topic} error: {message}"}

        await self._logs.record(
            webhook_id=webhook_id or f"manual-{int(time.time() * 1000)}",
            topic=topic,
            shop_domain=shop_domain,
            success=result["success"],
            message=result["message"],
            payload_summary=json.dumps(payload, default=str)[:PAYLOAD_SUMMARY_CHARS],
            processing_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    # -- Topic handlers --------------------------------------------------

    async def _order_created(self, payload: Dict[str, Any]) -> str:
        order_number = payload.get("order_number") or payload.get("name")
        total = to_float(payload.get("total_price")) or 0.0
        line_items = payload.get("line_items") or []
        await self._logs.insert_order({
            "shopify_order_id": str(payload["id"]),
            "order_number": str(order_number) if order_number is not None else None,
            "total_price": total,
            "currency": payload.get("currency") or "USD",
            "financial_status": payload.get("financial_status") or "pending",
            "fulfillment_status": payload.get("fulfillment_status"),
            "customer_email": payload.get("email"),
            "line_item_count": len(line_items),
            "source": "shopify_webhook",
            "raw_data": json.dumps(payload, default=str)[:RAW_ORDER_CHARS],
            "created_at": payload.get("created_at") or datetime.now(timezone.utc).isoformat(),
        })
        return f"Order #{order_number} processed ({len(line_items)} items, ${total:.2f})"

    async def _order_paid(self, payload: Dict[str, Any]) -> str:
        order_id = str(payload["id"])
        await self._logs.mark_order_paid(order_id)
        return f"Order {order_id} marked as paid"

    async def _product_updated(self, payload: Dict[str, Any]) -> str:
        shopify_id = payload["id"]
        product = await self._products.get_product_by_shopify_id(shopify_id)
        if not product:
            return f"Product {shopify_id} not tracked"

        changes: Dict[str, Any] = {"synced_at": datetime.now(timezone.utc).isoformat()}
        if payload.get("title"):
            changes["title"] = payload["title"]
        variant = (payload.get("variants") or [{}])[0]
        price = to_float(variant.get("price"))
        if price is not None:
            changes["retail_price"] = price
        compare_at = to_float(variant.get("compare_at_price"))
        if compare_at is not None:
            changes["compare_at_price"] = compare_at
        local_status = LOCAL_STATUS_MAP.get(payload.get("status") or "")
        if local_status:
            changes["status"] = local_status

        await self._products.update_product(product["id"], changes)
        return f"Product {shopify_id} synced"

    async def _product_deleted(self, payload: Dict[str, Any]) -> str:
        shopify_id = payload["id"]
        await self._products.mark_removed_by_shopify_id(shopify_id)
        return f"Product {shopify_id} marked as removed"

    async def _inventory_updated(self, payload: Dict[str, Any]) -> str:
        return (
            f"Inventory update for item {payload.get('inventory_item_id')}: "
            f"{payload.get('available')} available"
        )
