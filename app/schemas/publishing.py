"""
Publishing schemas — bulk push and queued Shopify push requests.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class PushRequest(BaseModel):
    product_ids: List[str] = Field(..., min_length=1)


class PushResult(BaseModel):
    product_id: str
    success: bool
    shopify_product_id: Optional[str] = None
    shopify_variant_id: Optional[str] = None
    handle: Optional[str] = None
    action: Optional[str] = None  # 'created', 'updated'
    error: Optional[str] = None


class PushSummary(BaseModel):
    total: int
    pushed: int
    failed: int


class BulkPushResponse(BaseModel):
    results: List[PushResult]
    summary: PushSummary


class QueuedPush(BaseModel):
    product_id: str
    task_id: str


class PushQueuedResponse(BaseModel):
    queued: List[QueuedPush]
    message: str
