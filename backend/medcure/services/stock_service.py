# Overview: Pure stock resolution; canonical quantity and status tiers for a product record.

"""
Stock Resolver

WHY THIS EXISTS:
Products carry two overlapping quantity fields (`total_stock` and `stock`)
from legacy schema drift. Every consumer reads stock through
effective_stock() so the fallback rule lives in exactly one place.

TIERS (highest priority first):
    out       stock <= 0                          priority 4
    critical  stock <= critical threshold         priority 3
    low       stock <= effective low threshold    priority 2
    good      otherwise                           priority 1

Threshold precedence: caller override > product.reorder_level > global default.
The out boundary is fixed at 0.

All functions accept a mapping (e.g. Product.to_dict()) or a Product model
and never mutate their input. No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from ..validation import ValidationError, coerce_int


OUT_OF_STOCK = 0

TIER_OUT = "out"
TIER_CRITICAL = "critical"
TIER_LOW = "low"
TIER_GOOD = "good"

TIER_PRIORITY = {
    TIER_OUT: 4,
    TIER_CRITICAL: 3,
    TIER_LOW: 2,
    TIER_GOOD: 1,
}

TIER_LABELS = {
    TIER_OUT: "Out of Stock",
    TIER_CRITICAL: "Critical",
    TIER_LOW: "Low Stock",
    TIER_GOOD: "In Stock",
}

ALERT_FILTER = "alerts"
VALID_STATUS_FILTERS = set(TIER_PRIORITY) | {ALERT_FILTER}


@dataclass(frozen=True)
class StockThresholds:
    """Global thresholds; routes build one from app config."""
    low: int = 10
    critical: int = 5

    @classmethod
    def from_config(cls, config: Mapping) -> "StockThresholds":
        return cls(
            low=int(config.get("STOCK_LOW_THRESHOLD", cls.low)),
            critical=int(config.get("STOCK_CRITICAL_THRESHOLD", cls.critical)),
        )


DEFAULT_THRESHOLDS = StockThresholds()


@dataclass(frozen=True)
class StockStatus:
    tier: str
    priority: int
    label: str

    def to_dict(self) -> dict:
        return {"tier": self.tier, "priority": self.priority, "label": self.label}


def read_field(product: Any, name: str) -> Any:
    """Field access that works for mappings and model objects alike."""
    if product is None:
        return None
    if isinstance(product, Mapping):
        return product.get(name)
    return getattr(product, name, None)


def _to_quantity(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = int(Decimal(str(raw).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return None
    return value


def money_value(raw: Any) -> float:
    """Monetary field as float; missing or unparseable counts as 0."""
    if raw is None or raw == "":
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def effective_stock(product: Any) -> int:
    """
    Canonical stock: total_stock if present, else stock, else 0.

    Unparseable values count as absent; negative values clamp to 0.
    """
    primary = _to_quantity(read_field(product, "total_stock"))
    if primary is not None:
        return max(primary, OUT_OF_STOCK)
    fallback = _to_quantity(read_field(product, "stock"))
    if fallback is not None:
        return max(fallback, OUT_OF_STOCK)
    return 0


def parse_threshold_overrides(overrides: Mapping | None) -> dict[str, int]:
    """
    Validate caller threshold overrides.

    Accepts keys "low" / "critical" in any case; rejects anything else.
    """
    if overrides is None:
        return {}
    if isinstance(overrides, StockThresholds):
        return {"low": overrides.low, "critical": overrides.critical}
    if not isinstance(overrides, Mapping):
        raise ValidationError("thresholds must be a mapping")

    parsed: dict[str, int] = {}
    for key, raw in overrides.items():
        name = str(key).strip().lower()
        if name not in ("low", "critical"):
            raise ValidationError(f"Unknown threshold '{key}'")
        if raw is None:
            continue
        value = coerce_int(raw, f"{name} threshold")
        if value < 0:
            raise ValidationError(f"{name} threshold must be >= 0")
        parsed[name] = value
    return parsed


def stock_status(
    product: Any,
    thresholds: Mapping | None = None,
    *,
    defaults: StockThresholds = DEFAULT_THRESHOLDS,
) -> StockStatus:
    """Classify a product's effective stock into a tier."""
    overrides = parse_threshold_overrides(thresholds)
    stock = effective_stock(product)

    critical = overrides.get("critical", defaults.critical)

    low = overrides.get("low")
    if low is None:
        reorder_level = _to_quantity(read_field(product, "reorder_level"))
        low = reorder_level if reorder_level is not None else defaults.low

    if stock <= OUT_OF_STOCK:
        tier = TIER_OUT
    elif stock <= critical:
        tier = TIER_CRITICAL
    elif stock <= low:
        tier = TIER_LOW
    else:
        tier = TIER_GOOD

    return StockStatus(tier=tier, priority=TIER_PRIORITY[tier], label=TIER_LABELS[tier])


def is_out_of_stock(product: Any) -> bool:
    return effective_stock(product) <= OUT_OF_STOCK


def is_critical_stock(product: Any, *, defaults: StockThresholds = DEFAULT_THRESHOLDS) -> bool:
    return stock_status(product, defaults=defaults).tier == TIER_CRITICAL


def is_low_stock(
    product: Any,
    threshold: int | None = None,
    *,
    defaults: StockThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """At or below the effective low threshold (includes critical and out)."""
    overrides = {"low": threshold} if threshold is not None else None
    return stock_status(product, overrides, defaults=defaults).tier != TIER_GOOD


def normalize_product(
    product: Any,
    thresholds: Mapping | None = None,
    *,
    defaults: StockThresholds = DEFAULT_THRESHOLDS,
) -> dict:
    """
    Return a new dict in the canonical shape downstream consumers expect.

    stock / total_stock / current_stock all carry the effective stock.
    """
    if hasattr(product, "to_dict") and not isinstance(product, Mapping):
        normalized = product.to_dict()
    else:
        normalized = dict(product or {})

    stock = effective_stock(product)
    status = stock_status(product, thresholds, defaults=defaults)

    selling_price = read_field(product, "selling_price")
    price = read_field(product, "price")

    normalized.update({
        "total_stock": stock,
        "stock": stock,
        "current_stock": stock,
        "stock_status": status.tier,
        "stock_status_label": status.label,
        "stock_priority": status.priority,
        "selling_price": money_value(selling_price if selling_price is not None else price),
        "price": money_value(price if price is not None else selling_price),
    })
    return normalized


def filter_by_stock_status(
    products: Iterable[Any],
    status: str,
    *,
    low_threshold: int | None = None,
    defaults: StockThresholds = DEFAULT_THRESHOLDS,
) -> list:
    """
    Filter products by tier; "alerts" keeps everything that is not good.
    """
    if status not in VALID_STATUS_FILTERS:
        raise ValidationError(
            f"Invalid stock status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUS_FILTERS))}"
        )
    overrides = {"low": low_threshold} if low_threshold is not None else None

    selected = []
    for product in products:
        tier = stock_status(product, overrides, defaults=defaults).tier
        if status == ALERT_FILTER:
            if tier != TIER_GOOD:
                selected.append(product)
        elif tier == status:
            selected.append(product)
    return selected


def stock_analytics(products: Iterable[Any], *, defaults: StockThresholds = DEFAULT_THRESHOLDS) -> dict:
    """Inventory health summary for dashboards."""
    counts = {tier: 0 for tier in TIER_PRIORITY}
    total_products = 0
    total_units = 0
    cost_value = 0.0
    retail_value = 0.0

    for product in products:
        total_products += 1
        stock = effective_stock(product)
        counts[stock_status(product, defaults=defaults).tier] += 1

        selling_price = read_field(product, "selling_price")
        if selling_price is None:
            selling_price = read_field(product, "price")

        total_units += stock
        cost_value += stock * money_value(read_field(product, "cost_price"))
        retail_value += stock * money_value(selling_price)

    needs_attention = counts[TIER_OUT] + counts[TIER_CRITICAL] + counts[TIER_LOW]
    return {
        "total_products": total_products,
        "out_of_stock": counts[TIER_OUT],
        "critical_stock": counts[TIER_CRITICAL],
        "low_stock": counts[TIER_LOW],
        "in_stock": counts[TIER_GOOD],
        "total_stock_value": round(cost_value, 2),
        "total_retail_value": round(retail_value, 2),
        "average_stock_level": round(total_units / total_products, 2) if total_products else 0,
        "stock_health": {
            "healthy": counts[TIER_GOOD],
            "needs_attention": needs_attention,
            "health_percentage": round(counts[TIER_GOOD] / total_products * 100, 2) if total_products else 0,
        },
    }
