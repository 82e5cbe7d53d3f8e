"""
Product routes — catalog listing, detail and sourcing evaluation.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.container import get_product_store
from app.core.auth import get_current_user
from app.core.exceptions import ProductNotFoundError
from app.db.product_store import ProductStore
from app.schemas.products import (
    DiscoveryCandidate,
    DiscoveryEvaluation,
    Product,
    ProductListResponse,
)
from app.utils.pricing_calculator import calculate_all_prices, meets_discovery_criteria

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=ProductListResponse)
async def list_products(
    status: Optional[str] = Query(None, description="Filter by product status"),
    search: Optional[str] = Query(None, description="Search title or ASIN"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    product_store: ProductStore = Depends(get_product_store),
    current_user: dict = Depends(get_current_user),
):
    rows, total = await product_store.list_products(status=status, limit=limit, offset=offset, search=search)
    return ProductListResponse(products=rows, total=total, limit=limit, offset=offset)


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    product_store: ProductStore = Depends(get_product_store),
    current_user: dict = Depends(get_current_user),
):
    product = await product_store.get_product(product_id)
    if not product:
        raise ProductNotFoundError(f"Product {product_id} not found")
    return product


@router.post("/evaluate", response_model=DiscoveryEvaluation)
async def evaluate_candidate(
    candidate: DiscoveryCandidate,
    current_user: dict = Depends(get_current_user),
):
    """Check a listing against the sourcing criteria and preview its pricing."""
    eligible, reasons = meets_discovery_criteria(candidate.model_dump())
    pricing = calculate_all_prices(candidate.price) if candidate.price else None
    return DiscoveryEvaluation(asin=candidate.asin, eligible=eligible, reasons=reasons, pricing=pricing)
