"""
Price schemas — sync requests, job status, price lookups.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PriceSyncRequest(BaseModel):
    product_ids: Optional[List[str]] = None
    limit: Optional[int] = Field(default=None, ge=1, le=1000)
    dry_run: bool = False
    wait: bool = Field(default=False, description="Run inline and return the summary instead of queueing")


class CronSyncRequest(BaseModel):
    product_ids: Optional[List[str]] = None
    dry_run: bool = False


class SyncError(BaseModel):
    product_id: Optional[str] = None
    asin: Optional[str] = None
    error: str


class SyncJobStatus(BaseModel):
    job_id: Optional[str] = None
    status: str
    total: int = 0
    processed: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[SyncError] = []
    dry_run: bool = False
    duration_seconds: float = 0.0
    results: Optional[List[Dict[str, Any]]] = None


class SyncQueuedResponse(BaseModel):
    status: str = "queued"
    task_id: str
    message: str


class AmazonPriceQuote(BaseModel):
    asin: str
    price: Optional[float] = None
    in_stock: Optional[bool] = False
    source: str
    seller: Optional[str] = None
    title: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    bsr: Optional[int] = None
    error: Optional[str] = None


class PriceTrend(BaseModel):
    trend: str  # 'up', 'down', 'stable'
    change_percent: float
    points: int
    first_price: Optional[float] = None
    last_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class ProductPricesResponse(BaseModel):
    product_id: str
    retail_price: Optional[float] = None
    compare_at_price: Optional[float] = None
    cost_price: Optional[float] = None
    competitor_prices: List[Dict[str, Any]]
    history: List[Dict[str, Any]]
