"""
Competitor price store — one row per (product, competitor).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from app.db.base_store import BaseStore

logger = logging.getLogger("competitor_price_store")

TABLE = "competitor_prices"


class CompetitorPriceStore(BaseStore):

    async def upsert_prices(
        self,
        product_id: str,
        prices: Dict[str, float],
        asin: str | None = None,
        source: str = "calculated",
    ) -> None:
        """Idempotent write: re-running a sync overwrites the same rows."""
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            {
                "product_id": product_id,
                "competitor": competitor,
                "price": price,
                "asin": asin,
                "source": source,
                "fetched_at": now,
            }
            for competitor, price in prices.items()
            if price is not None
        ]
        await self._upsert(TABLE, rows, on_conflict="product_id,competitor")
        logger.info("competitor prices upserted product_id=%s count=%s", product_id, len(rows))

    async def get_prices(self, product_id: str) -> List[Dict[str, Any]]:
        return await self._select(TABLE, filters={"product_id": product_id})
