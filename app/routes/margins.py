"""
Margin routes — rule CRUD, alerts, manual rule application.
"""
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from app.container import get_margin_service, get_margin_store
from app.core.auth import get_current_user, require_admin
from app.db.margin_store import MarginStore
from app.schemas.margins import MarginRule, MarginRuleCreate, MarginRuleUpdate
from app.services.margin_service import MarginService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/margins", tags=["margins"], dependencies=[Depends(get_current_user)])


@router.get("/rules")
async def list_rules(
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(get_current_user),
):
    return {"rules": await margin_store.list_rules()}


@router.post("/rules", status_code=201, response_model=MarginRule)
async def create_rule(
    payload: MarginRuleCreate = Body(...),
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(get_current_user),
):
    rule = await margin_store.create_rule(payload.model_dump())
    if not rule:
        raise HTTPException(status_code=500, detail="Rule was not created")
    logger.info(f"margin rule created by {current_user['user_id']}: {payload.name}")
    return rule


@router.put("/rules/{rule_id}", response_model=MarginRule)
async def update_rule(
    rule_id: str,
    payload: MarginRuleUpdate = Body(...),
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    rule = await margin_store.update_rule(rule_id, changes)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule


@router.delete("/rules/{rule_id}")
async def delete_rule(
    rule_id: str,
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(require_admin),
):
    if not await margin_store.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail="Rule not found")
    return {"deleted": True, "id": rule_id}


@router.get("/alerts")
async def list_alerts(
    resolved: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(get_current_user),
):
    return {"alerts": await margin_store.list_alerts(resolved=resolved, limit=limit)}


@router.post("/alerts/{alert_id}/resolve")
async def resolve_alert(
    alert_id: str,
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(get_current_user),
):
    if not await margin_store.resolve_alert(alert_id):
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"resolved": True, "id": alert_id}


@router.post("/apply/{product_id}")
async def apply_rule(
    product_id: str,
    rule_id: str | None = Query(None, description="Apply this rule instead of the best match"),
    margin_service: MarginService = Depends(get_margin_service),
    margin_store: MarginStore = Depends(get_margin_store),
    current_user: dict = Depends(get_current_user),
):
    rule = None
    if rule_id:
        rule = await margin_store.get_rule(rule_id)
        if not rule:
            raise HTTPException(status_code=404, detail="Rule not found")
    return await margin_service.apply_margin_rule(product_id, rule)
