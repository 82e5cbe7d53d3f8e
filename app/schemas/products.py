"""
Product schemas — catalog rows as returned by the products API.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class Product(BaseModel):
    id: str
    asin: Optional[str] = None
    title: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    status: Optional[str] = None
    cost_price: Optional[float] = None
    amazon_price: Optional[float] = None
    retail_price: Optional[float] = None
    compare_at_price: Optional[float] = None
    profit_percent: Optional[float] = None
    competitor_prices: Optional[Dict[str, Any]] = None
    stock_status: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    bsr: Optional[int] = None
    shopify_product_id: Optional[str] = None
    shopify_variant_id: Optional[str] = None
    below_threshold_since: Optional[str] = None
    last_price_check: Optional[str] = None
    last_stock_check: Optional[str] = None
    synced_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProductListResponse(BaseModel):
    products: List[Product]
    total: int
    limit: int
    offset: int


class DiscoveryCandidate(BaseModel):
    """An Amazon listing considered for import."""
    asin: Optional[str] = None
    title: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    is_prime: bool = False


class DiscoveryEvaluation(BaseModel):
    asin: Optional[str] = None
    eligible: bool
    reasons: List[str]
    pricing: Optional[Dict[str, Any]] = None
