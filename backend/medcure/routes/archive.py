# Overview: Flask API routes for the product archive lifecycle; parses input and returns JSON responses.

# backend/medcure/routes/archive.py
"""
Product Archive Lifecycle API Routes

These routes handle state transitions for products:
- POST   /api/archive/products/:id              - Archive (ACTIVE -> ARCHIVED)
- POST   /api/archive/products/:id/restore      - Restore (ARCHIVED -> ACTIVE)
- POST   /api/archive/products/bulk-archive     - Archive many
- POST   /api/archive/products/bulk-restore     - Restore many
- POST   /api/archive/products/bulk-delete      - Permanently delete many (guarded)
- DELETE /api/archive/products/:id              - Permanently delete one (guarded)
- GET    /api/archive/products                  - Archived products
- GET    /api/archive/stats                     - Archive totals
- GET    /api/archive/logs                      - Audit trail
- GET    /api/archive/anomalies                 - Inconsistent archive metadata

The acting user is read from the "actor" body field (default "System").
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import archive_service, bulk_archive_service, deletion_service
from ..services.deletion_service import SKIP_NOT_FOUND
from ..services.product_store import ProductNotFoundError, ProductStore, StoreError
from ..validation import ValidationError, coerce_id


archive_bp = Blueprint("archive", __name__, url_prefix="/api/archive")


def _store() -> ProductStore:
    return ProductStore(retry_attempts=current_app.config.get("COMMIT_RETRY_ATTEMPTS", 3))


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@archive_bp.post("/products/<int:product_id>")
def archive_product_route(product_id: int):
    """
    Archive an ACTIVE product.

    Request body:
        {"reason": "Discontinued", "actor": "jane"}

    Archiving an already archived product succeeds with changed=false.

    Error responses:
        400: Missing reason
        404: Product not found
    """
    payload = _payload()
    try:
        result = archive_service.archive_product(
            product_id,
            reason=payload.get("reason"),
            actor=payload.get("actor"),
            store=_store(),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StoreError as e:
        current_app.logger.exception("Failed to archive product %s", product_id)
        return jsonify({"error": str(e)}), 500

    message = (
        f"Product {product_id} archived successfully"
        if result.changed
        else f"Product {product_id} was already archived"
    )
    return jsonify({**result.to_dict(), "message": message}), 200


@archive_bp.post("/products/<int:product_id>/restore")
def restore_product_route(product_id: int):
    """
    Restore an ARCHIVED product.

    Restoring an active product succeeds with changed=false.
    """
    payload = _payload()
    try:
        result = archive_service.restore_product(
            product_id,
            actor=payload.get("actor"),
            store=_store(),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StoreError as e:
        current_app.logger.exception("Failed to restore product %s", product_id)
        return jsonify({"error": str(e)}), 500

    message = (
        f"Product {product_id} restored successfully"
        if result.changed
        else f"Product {product_id} was not archived"
    )
    return jsonify({**result.to_dict(), "message": message}), 200


@archive_bp.post("/products/bulk-archive")
def bulk_archive_route():
    """
    Request body:
        {"product_ids": [1, 2, 3], "reason": "Seasonal", "actor": "jane"}
    """
    payload = _payload()
    try:
        result = bulk_archive_service.bulk_archive(
            payload.get("product_ids"),
            reason=payload.get("reason"),
            actor=payload.get("actor"),
            store=_store(),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        current_app.logger.exception("Bulk archive failed")
        return jsonify({"error": str(e)}), 500

    return jsonify(result.to_dict()), 200


@archive_bp.post("/products/bulk-restore")
def bulk_restore_route():
    payload = _payload()
    try:
        result = bulk_archive_service.bulk_restore(
            payload.get("product_ids"),
            actor=payload.get("actor"),
            store=_store(),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        current_app.logger.exception("Bulk restore failed")
        return jsonify({"error": str(e)}), 500

    return jsonify(result.to_dict()), 200


@archive_bp.post("/products/bulk-delete")
def bulk_delete_route():
    """
    Permanently delete archived products without sales history.

    Products that cannot be deleted are reported in skipped_products;
    partial deletion is still a 200.
    """
    payload = _payload()
    try:
        report = deletion_service.bulk_permanently_delete(
            payload.get("product_ids"),
            actor=payload.get("actor"),
            store=_store(),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        current_app.logger.exception("Bulk delete failed")
        return jsonify({"error": str(e)}), 500

    return jsonify(report.to_dict()), 200


@archive_bp.delete("/products/<int:product_id>")
def delete_product_route(product_id: int):
    """
    Permanently delete one archived product.

    Error responses:
        404: Product not found
        409: Product is still active or has sales history
    """
    payload = _payload()
    try:
        report = deletion_service.permanently_delete_product(
            product_id,
            actor=payload.get("actor"),
            store=_store(),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return jsonify({"error": str(e)}), 500

    if report.deleted_ids:
        return jsonify(report.to_dict()), 200

    reason = report.skipped_products[0]["reason"]
    if reason == SKIP_NOT_FOUND:
        return jsonify({"error": f"Product {product_id} not found", "reason": reason}), 404
    return jsonify({"error": f"Product {product_id} cannot be deleted", "reason": reason}), 409


@archive_bp.get("/products")
def list_archived_route():
    """
    Query params:
    - search: str (optional) - matches name, generic name, category, archive reason
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    search = request.args.get("search")
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    try:
        return archive_service.list_archived_products(
            search=search, page=page, per_page=per_page, store=_store()
        )
    except StoreError as e:
        current_app.logger.exception("Failed to list archived products")
        return {"error": str(e)}, 500


@archive_bp.get("/stats")
def archive_stats_route():
    try:
        return archive_service.archive_stats(store=_store())
    except StoreError as e:
        current_app.logger.exception("Failed to compute archive stats")
        return {"error": str(e)}, 500


@archive_bp.get("/logs")
def archive_logs_route():
    """
    Query params:
    - item_id: int (optional) - entries for one product
    - limit: int (optional) - default 100, max 500
    """
    raw_item_id = request.args.get("item_id")
    limit = min(request.args.get("limit", default=100, type=int), 500)

    try:
        item_id = coerce_id(raw_item_id, "item_id") if raw_item_id is not None else None
        logs = _store().list_archive_logs(item_id=item_id, limit=limit)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError as e:
        current_app.logger.exception("Failed to list archive logs")
        return {"error": str(e)}, 500

    return {"items": [entry.to_dict() for entry in logs], "count": len(logs)}


@archive_bp.get("/anomalies")
def archive_anomalies_route():
    try:
        anomalies = archive_service.find_archive_anomalies(store=_store())
    except StoreError as e:
        current_app.logger.exception("Failed to scan archive metadata")
        return {"error": str(e)}, 500

    return {"items": anomalies, "count": len(anomalies)}
