"""
Price sync service — batch reconciliation of Amazon cost against Shopify prices.

Per product:
1. Fetch the Amazon quote (Rainforest -> Keepa -> scraper)
2. Derive list / compare-at / competitor prices from the cost
3. Skip Shopify when the change hash matches the stored one
4. Push prices + metafields, persist pricing, competitor rows, history
5. Re-check the profit grace period

Batches run sequentially with a fixed delay between products; one
product failing never aborts the batch.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from app.core.config import Settings
from app.core.constants.sync import MAX_CANDIDATE_PAGES, MAX_JOB_ERRORS, PRICE_SOURCE_DELAY_SECONDS
from app.core.exceptions import CommandCenterException
from app.db.competitor_price_store import CompetitorPriceStore
from app.db.price_history_store import PriceHistoryStore
from app.db.product_store import ProductStore
from app.db.sync_job_store import SyncJobStore
from app.services.margin_service import MarginService
from app.services.price_source_service import PriceSourceService
from app.services.shopify_push_service import ShopifyPushService
from app.utils.hash_utils import compute_pricing_hash, daily_seed
from app.utils.pricing_calculator import calculate_all_prices, is_price_stale
from app.utils.type_converters import parse_timestamp, to_float

logger = logging.getLogger(__name__)


def _stock_status(in_stock: Optional[bool]) -> str:
    if in_stock is None:
        return "unknown"
    return "in_stock" if in_stock else "out_of_stock"


class PriceSyncService:
    def __init__(
        self,
        price_source: PriceSourceService,
        push_service: ShopifyPushService,
        margin_service: MarginService,
        product_store: ProductStore,
        competitor_store: CompetitorPriceStore,
        history_store: PriceHistoryStore,
        job_store: SyncJobStore,
        settings: Settings,
    ) -> None:
        self._source = price_source
        self._push = push_service
        self._margins = margin_service
        self._products = product_store
        self._competitors = competitor_store
        self._history = history_store
        self._jobs = job_store
        self._settings = settings
        self.source_delay = PRICE_SOURCE_DELAY_SECONDS

    async def sync_product(self, product: Dict[str, Any], dry_run: bool = False) -> Dict[str, Any]:
        """
        Reconcile one product.

        Returns a dict with `status` in:
        skipped | no_price | unchanged | dry_run | updated
        """
        product_id = product["id"]
        asin = product.get("asin")
        if not asin:
            return {"product_id": product_id, "status": "skipped", "reason": "no ASIN"}

        quote = await self._source.get_amazon_price(asin)
        if quote.get("price") is None:
            if not dry_run:
                await self._products.mark_price_checked(product_id, stock_status="unknown")
            return {"product_id": product_id, "asin": asin, "status": "no_price", "reason": quote.get("error")}

        pricing = calculate_all_prices(quote["price"], seed=daily_seed(product_id))
        in_stock = quote.get("in_stock")
        price_hash = compute_pricing_hash(pricing, in_stock)
        old_price = product.get("retail_price")

        result: Dict[str, Any] = {
            "product_id": product_id,
            "asin": asin,
            "source": quote.get("source"),
            "cost": pricing["cost"],
            "old_price": old_price,
            "new_price": pricing["list_price"],
            "compare_at_price": pricing["compare_at_price"],
            "competitor_prices": pricing["competitor_prices"],
            "profit_percent": pricing["profit"]["percent"],
            "in_stock": in_stock,
        }

        on_shopify = bool(product.get("shopify_product_id"))
        if price_hash == product.get("price_hash") and on_shopify:
            if not dry_run:
                await self._products.mark_price_checked(
                    product_id, stock_status=_stock_status(in_stock), bsr=quote.get("bsr")
                )
            return {**result, "status": "unchanged"}

        if dry_run:
            return {**result, "status": "dry_run", "warnings": pricing["warnings"]}

        if on_shopify:
            await self._push.push_prices(product, pricing)

        await self._products.update_product_pricing(
            product_id,
            cost=pricing["cost"],
            retail_price=pricing["list_price"],
            compare_at_price=pricing["compare_at_price"],
            profit_percent=pricing["profit"]["percent"],
            extra={"competitor_prices": pricing["competitor_prices"]},
        )
        await self._products.mark_price_checked(
            product_id,
            stock_status=_stock_status(in_stock),
            bsr=quote.get("bsr"),
            price_hash=price_hash,
        )
        await self._competitors.upsert_prices(product_id, pricing["competitor_prices"], asin=asin)

        if old_price is None or round(float(old_price), 2) != pricing["list_price"]:
            await self._history.record(
                product_id,
                float(old_price) if old_price is not None else None,
                pricing["list_price"],
                cost=pricing["cost"],
                source=quote.get("source") or "price_sync",
                reason="price sync",
            )

        result["grace_period"] = await self._margins.enforce_grace_period(
            product, pricing["profit"]["percent"]
        )
        result["pushed"] = on_shopify
        return {**result, "status": "updated"}

    async def select_products(
        self, product_ids: Optional[List[str]] = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Explicit ids in caller order, else stale products that are due under their refresh tier."""
        if product_ids:
            return await self._products.get_products_by_ids(product_ids)
        batch = limit or self._settings.price_sync_batch_size
        due: List[Dict[str, Any]] = []
        not_due = 0

        # Cheap products refresh less often than expensive ones, so a page of
        # stale candidates may hold few due products; keep paging until the
        # batch is full or the candidates run out.
        for page in range(MAX_CANDIDATE_PAGES):
            candidates = await self._products.get_products_for_price_check(
                stale_hours=self._settings.price_stale_hours,
                limit=batch,
                offset=page * batch,
            )
            for product in candidates:
                if is_price_stale(
                    parse_timestamp(product.get("last_price_check")),
                    to_float(product.get("cost_price")) or 0.0,
                ):
                    due.append(product)
                else:
                    not_due += 1
            if len(due) >= batch or len(candidates) < batch:
                break

        if not_due:
            logger.info(f"price sync: {not_due} products not due under their refresh tier")
        return due[:batch]

    async def run_sync(
        self,
        product_ids: Optional[List[str]] = None,
        dry_run: bool = False,
        limit: Optional[int] = None,
        triggered_by: str = "system",
    ) -> Dict[str, Any]:
        """Sequential sync over explicit ids or the stalest products."""
        started = time.monotonic()
        products = await self.select_products(product_ids, limit)
        total = len(products)

        job_id = None
        if not dry_run:
            job_id = await self._jobs.create_job(total, triggered_by=triggered_by)

        counts = {"processed": 0, "updated": 0, "unchanged": 0, "skipped": 0, "failed": 0}
        errors: List[Dict[str, Any]] = []
        results: List[Dict[str, Any]] = []
        status = "failed"

        try:
            for index, product in enumerate(products):
                if index:
                    await asyncio.sleep(self.source_delay)
                try:
                    outcome = await self.sync_product(product, dry_run=dry_run)
                except (HTTPException, CommandCenterException, httpx.HTTPError) as e:
                    self._record_failure(product, getattr(e, "detail", None) or str(e), counts, errors)
                except Exception as e:
                    logger.exception(f"price sync crashed on product={product.get('id')}")
                    self._record_failure(product, f"{type(e).__name__}: {e}", counts, errors)
                else:
                    outcome_status = outcome["status"]
                    if outcome_status in ("updated", "dry_run"):
                        counts["updated"] += 1
                    elif outcome_status == "unchanged":
                        counts["unchanged"] += 1
                    else:
                        counts["skipped"] += 1
                    if dry_run:
                        results.append(outcome)
                counts["processed"] += 1

                if job_id:
                    await self._jobs.update_job(
                        job_id, processed=counts["processed"], failed=counts["failed"], errors=counts["failed"]
                    )

            status = "failed" if total and counts["failed"] == total else "completed"
        finally:
            # Runs on cancellation too, so the job row never stays "running"
            duration = round(time.monotonic() - started, 2)
            if job_id:
                await self._jobs.update_job(
                    job_id,
                    status=status,
                    processed=counts["processed"],
                    failed=counts["failed"],
                    errors=counts["failed"],
                    error_log=errors,
                )
                await self._jobs.log_run({
                    "job_id": job_id,
                    "total": total,
                    "updated": counts["updated"],
                    "unchanged": counts["unchanged"],
                    "skipped": counts["skipped"],
                    "failed": counts["failed"],
                    "duration_seconds": duration,
                    "triggered_by": triggered_by,
                })

        logger.info(
            f"price sync {status}: total={total} updated={counts['updated']} "
            f"unchanged={counts['unchanged']} skipped={counts['skipped']} failed={counts['failed']} "
            f"in {duration}s"
        )
        summary: Dict[str, Any] = {
            "job_id": job_id,
            "status": status,
            "total": total,
            **counts,
            "errors": errors,
            "dry_run": dry_run,
            "duration_seconds": duration,
        }
        if dry_run:
            summary["results"] = results
        return summary

    @staticmethod
    def _record_failure(
        product: Dict[str, Any], error: str, counts: Dict[str, int], errors: List[Dict[str, Any]]
    ) -> None:
        logger.error(f"price sync failed product={product.get('id')} asin={product.get('asin')}: {error}")
        counts["failed"] += 1
        # error_log is capped; counts["failed"] is not
        if len(errors) < MAX_JOB_ERRORS:
            errors.append({"product_id": product.get("id"), "asin": product.get("asin"), "error": str(error)})
