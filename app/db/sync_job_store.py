"""
Sync job store — price_sync_jobs bookkeeping and price_sync_logs summaries.

Job status flow: pending -> running -> completed | failed
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from app.db.base_store import BaseStore

logger = logging.getLogger("sync_job_store")

JOBS_TABLE = "price_sync_jobs"
LOGS_TABLE = "price_sync_logs"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncJobStore(BaseStore):

    async def create_job(self, total: int, triggered_by: str = "system") -> str:
        job_id = str(uuid.uuid4())
        await self._insert(
            JOBS_TABLE,
            [{
                "id": job_id,
                "status": "running",
                "total_products": total,
                "processed": 0,
                "failed": 0,
                "errors": 0,
                "error_log": [],
                "triggered_by": triggered_by,
                "started_at": _now_iso(),
            }],
        )
        logger.info("price sync job created id=%s total=%s", job_id, total)
        return job_id

    async def update_job(self, job_id: str, **fields: Any) -> None:
        if not fields:
            return
        if fields.get("status") in ("completed", "failed"):
            fields.setdefault("completed_at", _now_iso())
        await self._update(JOBS_TABLE, {"id": job_id}, fields)

    async def get_job(self, job_id: str) -> Dict[str, Any] | None:
        return await self._select_one(JOBS_TABLE, {"id": job_id})

    async def list_jobs(self, limit: int = 20) -> List[Dict[str, Any]]:
        query = self._client.table(JOBS_TABLE).select("*").order("started_at", desc=True).limit(limit)
        return self._execute(JOBS_TABLE, "select from", query)

    async def log_run(self, summary: Dict[str, Any]) -> None:
        await self._insert(LOGS_TABLE, [{**summary, "created_at": _now_iso()}])
