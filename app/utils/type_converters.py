"""
Type converters — coercion of loosely typed Supabase and Shopify values.
"""
from datetime import datetime, timezone
from typing import Any, Optional


def to_float(value: Any) -> Optional[float]:
    """Money-ish value -> float; unparseable and zero both give None."""
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    return number or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Supabase ISO timestamp (or datetime) -> aware datetime; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
