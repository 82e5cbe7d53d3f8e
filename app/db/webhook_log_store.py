"""
Webhook log store — webhook_logs (idempotency + audit) and unified_orders.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from app.db.base_store import BaseStore

logger = logging.getLogger("webhook_log_store")

LOGS_TABLE = "webhook_logs"
ORDERS_TABLE = "unified_orders"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class WebhookLogStore(BaseStore):

    async def is_processed(self, webhook_id: str) -> bool:
        if not webhook_id:
            return False
        row = await self._select_one(LOGS_TABLE, {"webhook_id": webhook_id}, columns="id")
        return row is not None

    async def record(
        self,
        webhook_id: str,
        topic: str,
        shop_domain: str,
        success: bool,
        message: str,
        payload_summary: str,
        processing_ms: int,
    ) -> None:
        await self._insert(
            LOGS_TABLE,
            [{
                "webhook_id": webhook_id,
                "topic": topic,
                "shop_domain": shop_domain,
                "success": success,
                "message": message,
                "payload_summary": payload_summary,
                "processing_ms": processing_ms,
                "created_at": _now_iso(),
            }],
        )

    async def insert_order(self, row: Dict[str, Any]) -> None:
        await self._upsert(ORDERS_TABLE, [row], on_conflict="shopify_order_id")

    async def mark_order_paid(self, shopify_order_id: str) -> None:
        await self._update(
            ORDERS_TABLE,
            {"shopify_order_id": shopify_order_id},
            {"financial_status": "paid", "updated_at": _now_iso()},
        )
