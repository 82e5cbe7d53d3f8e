"""
Stock check route.
"""
from fastapi import APIRouter, Body, Depends

from app.container import get_stock_check_service
from app.core.auth import get_current_user
from app.schemas.stock import StockCheckRequest, StockCheckResponse
from app.services.stock_check_service import StockCheckService

router = APIRouter(prefix="/stock-check", tags=["stock"], dependencies=[Depends(get_current_user)])


@router.post("", response_model=StockCheckResponse)
async def check_stock(
    payload: StockCheckRequest = Body(...),
    stock_service: StockCheckService = Depends(get_stock_check_service),
    current_user: dict = Depends(get_current_user),
):
    return await stock_service.check_stock(
        product_ids=payload.product_ids,
        asins=payload.asins,
        update=payload.update,
    )
