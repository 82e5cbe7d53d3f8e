"""
Margin service — margin rules, health analysis, grace-period auto-pause,
price alerts and trend reporting.

Two percentages are in play:
- profit_percent: on cost, (retail - cost) / cost * 100. Drives profit
  thresholds, the grace period and margin rule windows.
- margin_percent: on retail, (retail - cost) / retail * 100. Drives the
  healthy / warning / critical bands and alert severities.
"""
import fnmatch
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from app.clients.shopify_client import ShopifyClient
from app.core.constants.pricing import (
    COMPETITOR_UNDERCUT_RATIO,
    DEFAULT_RULE_MAX_MARGIN,
    DEFAULT_RULE_MIN_MARGIN,
    DEFAULT_RULE_TARGET_SPREAD,
    GRACE_PERIOD_DAYS,
    MARGIN_CRITICAL_ALERT_PERCENT,
    MARGIN_HEALTHY_PERCENT,
    MARGIN_WARNING_PERCENT,
    MIN_PROFIT_PERCENT,
    SUGGESTED_PRICE_MULTIPLIER,
    TREND_THRESHOLD_PERCENT,
)
from app.core.constants.publishing import SHOPIFY_STATUS_MAP
from app.core.exceptions import ProductNotFoundError, ValidationError
from app.db.margin_store import MarginStore
from app.db.price_history_store import PriceHistoryStore
from app.db.product_store import ProductStore
from app.utils.pricing_calculator import calculate_margin_percent
from app.utils.type_converters import parse_timestamp

logger = logging.getLogger(__name__)


def profit_percent(cost: float, retail: float) -> float:
    if not cost or cost <= 0:
        return 0.0
    return round((retail - cost) / cost * 100, 2)


def margin_health(margin_percent: float) -> str:
    if margin_percent >= MARGIN_HEALTHY_PERCENT:
        return "healthy"
    if margin_percent >= MARGIN_WARNING_PERCENT:
        return "warning"
    return "critical"


def rule_window(rule: Dict[str, Any]) -> Dict[str, float]:
    """min / target / max profit percent for a rule, with defaults filled in."""
    min_margin = rule.get("min_margin")
    min_margin = float(min_margin) if min_margin is not None else DEFAULT_RULE_MIN_MARGIN
    target = rule.get("target_margin")
    target = float(target) if target is not None else min_margin + DEFAULT_RULE_TARGET_SPREAD
    max_margin = rule.get("max_margin")
    max_margin = float(max_margin) if max_margin is not None else DEFAULT_RULE_MAX_MARGIN
    return {"min": min_margin, "target": target, "max": max_margin}


def rule_matches(product: Dict[str, Any], rule: Dict[str, Any]) -> bool:
    for field in ("category", "vendor", "product_type"):
        expected = rule.get(field)
        if expected and expected != product.get(field):
            return False
    pattern = rule.get("sku_pattern")
    if pattern:
        sku = product.get("sku") or product.get("asin") or ""
        if not fnmatch.fnmatchcase(sku, pattern):
            return False
    return True


def match_rule(product: Dict[str, Any], rules: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Highest-priority active rule that matches the product."""
    candidates = [r for r in rules if r.get("is_active", True) and rule_matches(product, r)]
    if not candidates:
        return None
    return max(candidates, key=lambda r: r.get("priority") or 0)


def analyze_product_margin(
    product: Dict[str, Any],
    rules: List[Dict[str, Any]],
) -> Dict[str, Any]:
    cost = float(product.get("cost_price") or 0)
    retail = float(product.get("retail_price") or 0)
    margin_pct = calculate_margin_percent(cost, retail)
    profit_pct = profit_percent(cost, retail)
    health = margin_health(margin_pct)

    analysis: Dict[str, Any] = {
        "product_id": product.get("id"),
        "title": product.get("title"),
        "cost": cost,
        "retail_price": retail,
        "margin_amount": round(retail - cost, 2),
        "margin_percent": margin_pct,
        "profit_percent": profit_pct,
        "health": health,
        "suggested_price": None,
        "rule": None,
        "rule_status": None,
        "recommendation": None,
    }

    if health != "healthy" and cost > 0:
        analysis["suggested_price"] = round(cost * SUGGESTED_PRICE_MULTIPLIER, 2)

    rule = match_rule(product, rules)
    if rule:
        window = rule_window(rule)
        if profit_pct < window["min"]:
            status = "critical"
            required = round(cost * (1 + window["min"] / 100), 2)
            analysis["recommendation"] = (
                f"Margin is below minimum ({profit_pct:.1f}% < {window['min']}%). "
                f"Increase price to ${required:.2f}"
            )
        elif profit_pct < window["target"]:
            status = "warning"
            analysis["recommendation"] = (
                f"Margin is below target ({profit_pct:.1f}% < {window['target']}%)."
            )
        elif profit_pct > window["max"]:
            status = "above_max"
        else:
            status = "ok"
        analysis["rule"] = {
            "id": rule.get("id"),
            "name": rule.get("name"),
            "action": rule.get("action", "alert"),
            **window,
        }
        analysis["rule_status"] = status

    return analysis


def check_price_alerts(
    product: Dict[str, Any],
    competitor_prices: Dict[str, float] | None = None,
) -> List[Dict[str, Any]]:
    cost = float(product.get("cost_price") or 0)
    retail = float(product.get("retail_price") or 0)
    margin_pct = calculate_margin_percent(cost, retail)
    alerts: List[Dict[str, Any]] = []

    if retail > 0:
        if margin_pct < MARGIN_CRITICAL_ALERT_PERCENT:
            alerts.append({
                "type": "low_margin",
                "severity": "critical",
                "message": f"Margin {margin_pct:.1f}% below {MARGIN_CRITICAL_ALERT_PERCENT}%",
            })
        elif margin_pct < MARGIN_WARNING_PERCENT:
            alerts.append({
                "type": "low_margin",
                "severity": "high",
                "message": f"Margin {margin_pct:.1f}% below {MARGIN_WARNING_PERCENT}%",
            })

    prices = [p for p in (competitor_prices or {}).values() if p]
    if prices and retail > 0:
        lowest = min(prices)
        if lowest < retail * COMPETITOR_UNDERCUT_RATIO:
            alerts.append({
                "type": "competitor_undercut",
                "severity": "medium",
                "message": f"Competitor at ${lowest:.2f} undercuts retail ${retail:.2f} by more than 10%",
            })

    return alerts


def get_price_trend(history: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Trend across a price_history series (oldest first)."""
    prices = [row.get("new_price") for row in history if row.get("new_price") is not None]
    if len(prices) < 2 or not prices[0]:
        return {"trend": "stable", "change_percent": 0.0, "points": len(prices)}

    change = round((prices[-1] - prices[0]) / prices[0] * 100, 2)
    if change > TREND_THRESHOLD_PERCENT:
        trend = "up"
    elif change < -TREND_THRESHOLD_PERCENT:
        trend = "down"
    else:
        trend = "stable"
    return {
        "trend": trend,
        "change_percent": change,
        "points": len(prices),
        "first_price": prices[0],
        "last_price": prices[-1],
        "min_price": min(prices),
        "max_price": max(prices),
    }


class MarginService:
    def __init__(
        self,
        product_store: ProductStore,
        margin_store: MarginStore,
        history_store: PriceHistoryStore,
        shopify: ShopifyClient,
    ) -> None:
        self._products = product_store
        self._margins = margin_store
        self._history = history_store
        self._shopify = shopify

    async def analyze(self, product_id: str) -> Dict[str, Any]:
        product = await self._products.get_product(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        rules = await self._margins.get_active_rules()
        analysis = analyze_product_margin(product, rules)
        analysis["alerts"] = check_price_alerts(product)
        return analysis

    async def apply_margin_rule(
        self,
        product_id: str,
        rule: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Clamp the product's retail price into its rule's profit window.

        Below min -> price for target; above max -> price for max.
        With no rule given, the best matching active rule is used.
        """
        product = await self._products.get_product(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")

        if rule is None:
            rule = match_rule(product, await self._margins.get_active_rules())
        if rule is None:
            return {"product_id": product_id, "changed": False, "reason": "no matching rule"}

        cost = float(product.get("cost_price") or 0)
        if cost <= 0:
            raise ValidationError(f"Product {product_id} has no cost price")

        old_price = float(product.get("retail_price") or 0)
        window = rule_window(rule)
        current = profit_percent(cost, old_price)

        if current < window["min"]:
            new_price = round(cost * (1 + window["target"] / 100), 2)
            reason = f"below minimum margin {window['min']}%"
        elif current > window["max"]:
            new_price = round(cost * (1 + window["max"] / 100), 2)
            reason = f"above maximum margin {window['max']}%"
        else:
            return {"product_id": product_id, "changed": False, "old_price": old_price, "profit_percent": current}

        await self._products.update_product_pricing(
            product_id,
            retail_price=new_price,
            profit_percent=profit_percent(cost, new_price),
        )
        await self._history.record(
            product_id, old_price or None, new_price, cost=cost,
            source="margin_rule", reason=f"{rule.get('name') or 'rule'}: {reason}",
        )
        logger.info(f"margin rule applied product={product_id} {old_price} -> {new_price} ({reason})")
        return {
            "product_id": product_id,
            "changed": True,
            "old_price": old_price,
            "new_price": new_price,
            "profit_percent": profit_percent(cost, new_price),
            "reason": reason,
        }

    async def evaluate_rules(self, product: Dict[str, Any], rules: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Alert on or auto-adjust a product whose profit is below its rule minimum."""
        analysis = analyze_product_margin(product, rules)
        if analysis["rule_status"] != "critical":
            return analysis

        rule = analysis["rule"]
        if rule["action"] == "auto-adjust":
            analysis["adjustment"] = await self.apply_margin_rule(product["id"], match_rule(product, rules))
        else:
            await self._margins.create_alert(
                product["id"],
                alert_type="margin_critical",
                code="margin_below_minimum",
                message=(
                    f"Product margin {analysis['profit_percent']:.1f}% is below minimum ({rule['min']}%)"
                ),
                severity="critical",
                details={"rule_id": rule["id"], "recommendation": analysis["recommendation"]},
            )
        return analysis

    async def enforce_grace_period(
        self,
        product: Dict[str, Any],
        profit_pct: float,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Track how long a product has been below the profit minimum.

        Returns one of: "ok", "recovered", "flagged", "in_grace", "paused".
        """
        now = now or datetime.now(timezone.utc)
        product_id = product["id"]
        since = parse_timestamp(product.get("below_threshold_since"))

        if profit_pct >= MIN_PROFIT_PERCENT:
            if since is None:
                return "ok"
            await self._products.update_product(product_id, {"below_threshold_since": None})
            logger.info(f"product {product_id} recovered to {profit_pct}% profit")
            return "recovered"

        if since is None:
            await self._products.update_product(product_id, {"below_threshold_since": now.isoformat()})
            logger.info(f"product {product_id} below threshold ({profit_pct}%), grace period started")
            return "flagged"

        if now - since < timedelta(days=GRACE_PERIOD_DAYS):
            return "in_grace"

        if product.get("status") == "paused":
            return "paused"

        await self._products.update_product(product_id, {"status": "paused"})
        shopify_id = product.get("shopify_product_id")
        if shopify_id:
            try:
                await self._shopify.update_product_status(shopify_id, SHOPIFY_STATUS_MAP["paused"])
            except HTTPException as e:
                logger.error(f"could not draft Shopify product {shopify_id}: {e.detail}")
        await self._margins.create_alert(
            product_id,
            alert_type="auto_pause",
            code="grace_period_expired",
            message=(
                f"Paused after {GRACE_PERIOD_DAYS} days below {MIN_PROFIT_PERCENT}% profit "
                f"(now {profit_pct}%)"
            ),
            severity="critical",
            details={"below_threshold_since": since.isoformat(), "profit_percent": profit_pct},
        )
        logger.warning(f"product {product_id} auto-paused after grace period")
        return "paused"

    async def enforce_all(self, limit: int = 1000) -> Dict[str, Any]:
        """Re-run the grace period and rule checks for every active product."""
        products = await self._products.get_active_products(limit=limit)
        rules = await self._margins.get_active_rules()
        counts: Dict[str, int] = {}
        for product in products:
            cost = float(product.get("cost_price") or 0)
            retail = float(product.get("retail_price") or 0)
            if cost <= 0 or retail <= 0:
                counts["skipped"] = counts.get("skipped", 0) + 1
                continue
            action = await self.enforce_grace_period(product, profit_percent(cost, retail))
            counts[action] = counts.get(action, 0) + 1
            if action != "paused":
                await self.evaluate_rules(product, rules)
        return {"total": len(products), "actions": counts}

    async def get_price_tracking_stats(self) -> Dict[str, Any]:
        products = await self._products.get_active_products()
        now = datetime.now(timezone.utc)
        stale_cutoff = now - timedelta(hours=24)

        tracked = [p for p in products if p.get("asin")]
        stale = 0
        margins: List[float] = []
        health_counts = {"healthy": 0, "warning": 0, "critical": 0}
        for product in tracked:
            checked = parse_timestamp(product.get("last_price_check"))
            if checked is None or checked < stale_cutoff:
                stale += 1
            cost = float(product.get("cost_price") or 0)
            retail = float(product.get("retail_price") or 0)
            if cost > 0 and retail > 0:
                margin_pct = calculate_margin_percent(cost, retail)
                margins.append(margin_pct)
                health_counts[margin_health(margin_pct)] += 1

        return {
            "tracked_products": len(tracked),
            "stale_products": stale,
            "open_alerts": await self._margins.count_open_alerts(),
            "average_margin_percent": round(sum(margins) / len(margins), 2) if margins else 0.0,
            "margin_health": health_counts,
        }
