"""
Margin schemas — margin rules and alerts.
"""
from typing import Optional

from pydantic import BaseModel, Field


class MarginRuleCreate(BaseModel):
    name: str = Field(..., min_length=1)
    min_margin: float = Field(default=30, ge=0)
    target_margin: Optional[float] = Field(default=None, ge=0)
    max_margin: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    sku_pattern: Optional[str] = None
    action: str = Field(default="alert", pattern="^(alert|auto-adjust)$")
    priority: int = 0
    is_active: bool = True


class MarginRuleUpdate(BaseModel):
    name: Optional[str] = None
    min_margin: Optional[float] = Field(default=None, ge=0)
    target_margin: Optional[float] = Field(default=None, ge=0)
    max_margin: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    sku_pattern: Optional[str] = None
    action: Optional[str] = Field(default=None, pattern="^(alert|auto-adjust)$")
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class MarginRule(MarginRuleCreate):
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
