"""
Price history store — append-only log of retail price changes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from app.db.base_store import BaseStore

logger = logging.getLogger("price_history_store")

TABLE = "price_history"


class PriceHistoryStore(BaseStore):

    async def record(
        self,
        product_id: str,
        old_price: float | None,
        new_price: float,
        cost: float | None = None,
        source: str = "price_sync",
        reason: str | None = None,
    ) -> None:
        change_percent = None
        if old_price:
            change_percent = round((new_price - old_price) / old_price * 100, 2)
        await self._insert(
            TABLE,
            [{
                "product_id": product_id,
                "old_price": old_price,
                "new_price": new_price,
                "cost": cost,
                "change_percent": change_percent,
                "source": source,
                "reason": reason,
                "recorded_at": datetime.now(timezone.utc).isoformat(),
            }],
        )

    async def get_history(self, product_id: str, days: int = 30) -> List[Dict[str, Any]]:
        """Oldest first, within the last `days` days."""
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        query = (
            self._client.table(TABLE)
            .select("*")
            .eq("product_id", product_id)
            .gte("recorded_at", since)
            .order("recorded_at", desc=False)
        )
        return self._execute(TABLE, "select from", query)
