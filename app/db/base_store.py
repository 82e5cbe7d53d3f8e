"""
Base store — postgrest query helpers shared by the table stores.

Every helper returns the affected rows and turns a postgrest ``APIError``
into ``HTTPException(500)`` naming the table.
"""

import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from postgrest.exceptions import APIError

from app.core.config import settings
from app.clients.supabase_client import SupabaseClient

logger = logging.getLogger("base_store")

Row = Dict[str, Any]


def apply_filters(query, filters: Dict[str, Any] | None):
    """Equality filters; a list value becomes ``in``, ``None`` becomes ``is null``."""
    for column, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set)):
            query = query.in_(column, list(value))
        elif value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


class BaseStore:
    """Parent of the products, pricing, sync-job and webhook stores."""

    def __init__(self, supabase_client: SupabaseClient | None = None) -> None:
        self._supabase_client = supabase_client or SupabaseClient(settings)

    @property
    def _client(self):
        return self._supabase_client.client

    def _execute(self, table: str, action: str, query) -> List[Row]:
        try:
            return query.execute().data or []
        except APIError as e:
            logger.warning("supabase %s failed table=%s detail=%s", action, table, e)
            raise HTTPException(status_code=500, detail=f"Supabase {action} {table} failed: {e}")

    async def _insert(self, table: str, rows: List[Row]) -> List[Row]:
        if not rows:
            return []
        return self._execute(table, "insert into", self._client.table(table).insert(rows))

    async def _upsert(self, table: str, rows: List[Row], on_conflict: str | None = None) -> List[Row]:
        """Insert or update; ``on_conflict`` names the unique columns."""
        if not rows:
            return []
        kwargs = {"on_conflict": on_conflict} if on_conflict else {}
        return self._execute(table, "upsert into", self._client.table(table).upsert(rows, **kwargs))

    async def _select(self, table: str, columns: str = "*", filters: Dict[str, Any] | None = None) -> List[Row]:
        query = apply_filters(self._client.table(table).select(columns), filters)
        return self._execute(table, "select from", query)

    async def _select_one(self, table: str, filters: Dict[str, Any], columns: str = "*") -> Row | None:
        query = apply_filters(self._client.table(table).select(columns), filters).limit(1)
        rows = self._execute(table, "select from", query)
        return rows[0] if rows else None

    async def _update(self, table: str, filters: Dict[str, Any], payload: Row) -> List[Row]:
        query = apply_filters(self._client.table(table).update(payload), filters)
        return self._execute(table, "update", query)

    async def _delete(self, table: str, filters: Dict[str, Any]) -> List[Row]:
        # An unfiltered delete would wipe the table.
        if not filters:
            raise ValueError(f"refusing to delete from {table} without filters")
        return self._execute(table, "delete from", apply_filters(self._client.table(table).delete(), filters))
