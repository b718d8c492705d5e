# Overview: Flask API routes for stock and expiry views; parses input and returns JSON responses.

# backend/medcure/routes/inventory.py
"""
Inventory read routes.

Every product leaving these routes goes through normalize_product(), so the
client only ever sees the effective stock under stock / total_stock /
current_stock. Thresholds come from app config (STOCK_*_THRESHOLD).
"""
from flask import Blueprint, request, current_app

from ..services import expiry_service, reorder_service, stock_service
from ..services.product_store import ProductNotFoundError, ProductStore, StoreError
from ..services.stock_service import StockThresholds, normalize_product
from ..validation import ValidationError, coerce_id, coerce_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _thresholds() -> StockThresholds:
    return StockThresholds.from_config(current_app.config)


def _store() -> ProductStore:
    return ProductStore(retry_attempts=current_app.config.get("COMMIT_RETRY_ATTEMPTS", 3))


def _present(product, defaults: StockThresholds, overrides=None) -> dict:
    data = normalize_product(product, overrides, defaults=defaults)
    data["expiry"] = expiry_service.expiry_status(product).to_dict()
    return data


@inventory_bp.get("/products")
def list_products():
    """
    List active products, normalized.

    Query params:
    - status: out | critical | low | good | alerts (optional)
    - low_threshold: int (optional) - overrides the low threshold for filtering and stock_status
    - search: str (optional) - matches name, generic name, category
    - category: str (optional)
    """
    status = request.args.get("status")
    raw_low = request.args.get("low_threshold")
    search = request.args.get("search")
    category = request.args.get("category")
    defaults = _thresholds()

    try:
        low_threshold = coerce_int(raw_low, "low_threshold") if raw_low is not None else None
        products = _store().list_products(archived=False, search=search, category=category)
        if status:
            products = stock_service.filter_by_stock_status(
                products, status, low_threshold=low_threshold, defaults=defaults
            )
        overrides = {"low": low_threshold} if low_threshold is not None else None
        items = [_present(p, defaults, overrides) for p in products]
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError as e:
        current_app.logger.exception("Failed to list products")
        return {"error": str(e)}, 500

    return {"items": items, "count": len(items)}


@inventory_bp.get("/analytics")
def analytics():
    """Stock health summary over active products."""
    try:
        products = _store().list_products(archived=False)
    except StoreError as e:
        current_app.logger.exception("Failed to load products for analytics")
        return {"error": str(e)}, 500

    return stock_service.stock_analytics(products, defaults=_thresholds())


@inventory_bp.get("/alerts/stock")
def stock_alerts():
    """Active products that are not in the good tier, most urgent first."""
    defaults = _thresholds()
    try:
        products = _store().list_products(archived=False)
    except StoreError as e:
        current_app.logger.exception("Failed to load products for stock alerts")
        return {"error": str(e)}, 500

    alerts = [
        normalize_product(p, defaults=defaults)
        for p in stock_service.filter_by_stock_status(products, stock_service.ALERT_FILTER, defaults=defaults)
    ]
    alerts.sort(key=lambda p: (-p["stock_priority"], p["current_stock"], p["name"] or ""))

    return {
        "items": alerts,
        "count": len(alerts),
        "summary": {
            "out_of_stock": sum(1 for p in alerts if p["stock_status"] == stock_service.TIER_OUT),
            "critical": sum(1 for p in alerts if p["stock_status"] == stock_service.TIER_CRITICAL),
            "low": sum(1 for p in alerts if p["stock_status"] == stock_service.TIER_LOW),
        },
    }


@inventory_bp.get("/alerts/expiry")
def expiry_alerts():
    """
    Expired and expiring active products.

    Query params:
    - days: int (optional) - window for "expiring soon" (default EXPIRY_WARNING_DAYS)
    """
    raw_days = request.args.get("days")
    defaults = _thresholds()

    try:
        if raw_days is not None:
            days = coerce_int(raw_days, "days")
        else:
            days = current_app.config.get("EXPIRY_WARNING_DAYS", expiry_service.WARNING_MAX_DAYS)
        products = _store().list_products(archived=False)
        buckets = expiry_service.expiry_alerts(products, within_days=days)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError as e:
        current_app.logger.exception("Failed to load products for expiry alerts")
        return {"error": str(e)}, 500

    result = {
        name: [_present(p, defaults) for p in bucket]
        for name, bucket in buckets.items()
    }
    result["within_days"] = days
    result["count"] = sum(len(bucket) for bucket in buckets.values())
    return result


@inventory_bp.get("/products/<int:product_id>/reorder")
def product_reorder(product_id: int):
    """Reorder recommendation for one product, using its recent sales velocity."""
    config = current_app.config
    store = _store()

    try:
        product_id = coerce_id(product_id, "product_id")
        product = store.require(product_id)
        measured = reorder_service.average_monthly_sales(
            store, product_id, months=config.get("REORDER_HISTORY_MONTHS", 3)
        )
        history = reorder_service.SalesHistory(avg_monthly_sales=measured) if measured > 0 else None
        rec = reorder_service.recommend(
            product,
            history,
            defaults=_thresholds(),
            lead_time_days=config.get("REORDER_LEAD_TIME_DAYS", reorder_service.LEAD_TIME_DAYS),
            default_monthly_sales=config.get(
                "REORDER_DEFAULT_MONTHLY_SALES", reorder_service.DEFAULT_AVG_MONTHLY_SALES
            ),
        )
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError as e:
        current_app.logger.exception("Failed to compute reorder recommendation")
        return {"error": str(e)}, 500

    return {"recommendation": rec.to_dict()}


@inventory_bp.get("/reorder-suggestions")
def reorder_suggestions():
    config = current_app.config
    try:
        suggestions = reorder_service.reorder_suggestions(
            _store(),
            defaults=_thresholds(),
            lead_time_days=config.get("REORDER_LEAD_TIME_DAYS", reorder_service.LEAD_TIME_DAYS),
            default_monthly_sales=config.get(
                "REORDER_DEFAULT_MONTHLY_SALES", reorder_service.DEFAULT_AVG_MONTHLY_SALES
            ),
            history_months=config.get("REORDER_HISTORY_MONTHS", 3),
        )
    except StoreError as e:
        current_app.logger.exception("Failed to build reorder suggestions")
        return {"error": str(e)}, 500

    items = [s.to_dict() for s in suggestions]
    return {
        "items": items,
        "count": len(items),
        "total_estimated_cost": round(sum(s.estimated_cost for s in suggestions), 2),
    }
