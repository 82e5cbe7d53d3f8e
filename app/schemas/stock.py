"""
Stock check schemas.
"""
from typing import List, Optional

from pydantic import BaseModel


class StockCheckRequest(BaseModel):
    product_ids: Optional[List[str]] = None
    asins: Optional[List[str]] = None
    update: bool = True


class StockResult(BaseModel):
    asin: str
    product_id: Optional[str] = None
    in_stock: Optional[bool] = None
    price: Optional[float] = None
    source: str  # 'rainforest', 'keepa', 'none'
    seller: Optional[str] = None
    error: Optional[str] = None
    status: str  # 'in_stock', 'out_of_stock', 'unknown', 'invalid'


class StockSummary(BaseModel):
    total: int
    in_stock: int
    out_of_stock: int
    unknown: int


class StockCheckResponse(BaseModel):
    results: List[StockResult]
    summary: StockSummary
