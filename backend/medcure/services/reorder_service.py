# Overview: Reorder recommendations from effective stock and sales velocity.

"""
Reorder Advisor

FORMULA:
    daily_velocity  = avg_monthly_sales / 30
    reorder_point   = daily_velocity * lead_time_days + safety_stock
    recommended_qty = ceil(max(reorder_point - effective_stock, safety_stock))
    estimated_cost  = recommended_qty * cost_price

safety_stock is the global low-stock threshold. Without sales history the
velocity falls back to a fixed assumption (30 units / month).

recommend() is pure. average_monthly_sales() and reorder_suggestions()
read sales history through the ProductStore.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Any, Mapping

from ..validation import ValidationError
from .product_store import ProductStore
from .stock_service import (
    DEFAULT_THRESHOLDS,
    TIER_CRITICAL,
    TIER_GOOD,
    TIER_LOW,
    TIER_OUT,
    StockThresholds,
    effective_stock,
    money_value,
    read_field,
    stock_status,
)
from medcure.time_utils import utcnow


DEFAULT_AVG_MONTHLY_SALES = 30.0
LEAD_TIME_DAYS = 7
DAYS_PER_MONTH = 30

# Stock tier -> reorder urgency
URGENCY_BY_TIER = {
    TIER_OUT: "critical",
    TIER_CRITICAL: "high",
    TIER_LOW: "medium",
    TIER_GOOD: "low",
}
URGENCY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class SalesHistory:
    avg_monthly_sales: float


@dataclass(frozen=True)
class ReorderRecommendation:
    product_id: int | None
    product_name: str | None
    current_stock: int
    reorder_point: float
    recommended_quantity: int
    urgency: str
    estimated_cost: float
    days_until_stockout: int | None

    def to_dict(self) -> dict:
        return asdict(self)


def _monthly_velocity(sales_history: Any, default: float) -> float:
    if sales_history is None:
        return default
    if isinstance(sales_history, SalesHistory):
        raw = sales_history.avg_monthly_sales
    elif isinstance(sales_history, Mapping):
        raw = sales_history.get("avg_monthly_sales")
    else:
        raise ValidationError("sales_history must be a mapping with avg_monthly_sales")

    if raw is None:
        return default
    try:
        velocity = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("avg_monthly_sales must be a number")
    if velocity < 0 or not math.isfinite(velocity):
        raise ValidationError("avg_monthly_sales must be a finite number >= 0")
    return velocity


def recommend(
    product: Any,
    sales_history: Any = None,
    thresholds: Mapping | None = None,
    *,
    defaults: StockThresholds = DEFAULT_THRESHOLDS,
    lead_time_days: int = LEAD_TIME_DAYS,
    default_monthly_sales: float = DEFAULT_AVG_MONTHLY_SALES,
) -> ReorderRecommendation:
    velocity = _monthly_velocity(sales_history, default_monthly_sales)
    daily_velocity = velocity / DAYS_PER_MONTH
    safety_stock = defaults.low

    current_stock = effective_stock(product)
    reorder_point = daily_velocity * lead_time_days + safety_stock
    recommended_quantity = math.ceil(max(reorder_point - current_stock, safety_stock))

    tier = stock_status(product, thresholds, defaults=defaults).tier

    unit_cost = money_value(read_field(product, "cost_price"))

    if current_stock <= 0:
        days_until_stockout = 0
    elif daily_velocity > 0:
        days_until_stockout = math.floor(current_stock / daily_velocity)
    else:
        days_until_stockout = None

    return ReorderRecommendation(
        product_id=read_field(product, "id"),
        product_name=read_field(product, "name"),
        current_stock=current_stock,
        reorder_point=round(reorder_point, 2),
        recommended_quantity=recommended_quantity,
        urgency=URGENCY_BY_TIER[tier],
        estimated_cost=round(recommended_quantity * unit_cost, 2),
        days_until_stockout=days_until_stockout,
    )


def average_monthly_sales(store: ProductStore, product_id: int, *, months: int = 3) -> float:
    """Units sold per 30 days, averaged over the last `months` months."""
    if months <= 0:
        raise ValidationError("months must be > 0")
    since = utcnow() - timedelta(days=months * DAYS_PER_MONTH)
    return store.units_sold_since(product_id, since) / months


def reorder_suggestions(
    store: ProductStore,
    *,
    defaults: StockThresholds = DEFAULT_THRESHOLDS,
    lead_time_days: int = LEAD_TIME_DAYS,
    default_monthly_sales: float = DEFAULT_AVG_MONTHLY_SALES,
    history_months: int = 3,
) -> list[ReorderRecommendation]:
    """
    Recommendations for every active product that is not in the good tier,
    most urgent first, then soonest stockout.

    Products with no sales in the window use the default velocity.
    """
    suggestions = []
    for product in store.list_products(archived=False):
        if stock_status(product, defaults=defaults).tier == TIER_GOOD:
            continue
        measured = average_monthly_sales(store, product.id, months=history_months)
        history = SalesHistory(avg_monthly_sales=measured) if measured > 0 else None
        suggestions.append(recommend(
            product,
            history,
            defaults=defaults,
            lead_time_days=lead_time_days,
            default_monthly_sales=default_monthly_sales,
        ))

    def _sort_key(rec: ReorderRecommendation):
        stockout = rec.days_until_stockout if rec.days_until_stockout is not None else math.inf
        return (-URGENCY_RANK[rec.urgency], stockout, rec.product_name or "")

    return sorted(suggestions, key=_sort_key)
