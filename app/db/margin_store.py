"""
Margin store — margin_rules configuration and margin_alerts.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.db.base_store import BaseStore

logger = logging.getLogger("margin_store")

RULES_TABLE = "margin_rules"
ALERTS_TABLE = "margin_alerts"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MarginStore(BaseStore):

    # -- Rules -----------------------------------------------------------

    async def get_active_rules(self) -> List[Dict[str, Any]]:
        """Active rules, highest priority first."""
        query = (
            self._client.table(RULES_TABLE)
            .select("*")
            .eq("is_active", True)
            .order("priority", desc=True)
        )
        return self._execute(RULES_TABLE, "select from", query)

    async def list_rules(self) -> List[Dict[str, Any]]:
        query = self._client.table(RULES_TABLE).select("*").order("priority", desc=True)
        return self._execute(RULES_TABLE, "select from", query)

    async def get_rule(self, rule_id: str) -> Dict[str, Any] | None:
        return await self._select_one(RULES_TABLE, {"id": rule_id})

    async def create_rule(self, rule: Dict[str, Any]) -> Dict[str, Any] | None:
        rows = await self._insert(RULES_TABLE, [{**rule, "created_at": _now_iso()}])
        return rows[0] if rows else None

    async def update_rule(self, rule_id: str, changes: Dict[str, Any]) -> Dict[str, Any] | None:
        rows = await self._update(RULES_TABLE, {"id": rule_id}, {**changes, "updated_at": _now_iso()})
        return rows[0] if rows else None

    async def delete_rule(self, rule_id: str) -> bool:
        rows = await self._delete(RULES_TABLE, {"id": rule_id})
        return bool(rows)

    # -- Alerts ----------------------------------------------------------

    async def create_alert(
        self,
        product_id: str,
        alert_type: str,
        code: str,
        message: str,
        severity: str = "high",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._insert(
            ALERTS_TABLE,
            [{
                "product_id": product_id,
                "alert_type": alert_type,
                "alert_code": code,
                "message": message,
                "severity": severity,
                "details": details or {},
                "is_resolved": False,
                "created_at": _now_iso(),
            }],
        )
        logger.info("margin alert created product_id=%s type=%s code=%s", product_id, alert_type, code)

    async def list_alerts(self, resolved: bool = False, limit: int = 100) -> List[Dict[str, Any]]:
        query = (
            self._client.table(ALERTS_TABLE)
            .select("*")
            .eq("is_resolved", resolved)
            .order("created_at", desc=True)
            .limit(limit)
        )
        return self._execute(ALERTS_TABLE, "select from", query)

    async def count_open_alerts(self) -> int:
        rows = await self._select(ALERTS_TABLE, columns="id", filters={"is_resolved": False})
        return len(rows)

    async def resolve_alert(self, alert_id: str) -> bool:
        rows = await self._update(
            ALERTS_TABLE,
            {"id": alert_id},
            {"is_resolved": True, "resolved_at": _now_iso()},
        )
        return bool(rows)
