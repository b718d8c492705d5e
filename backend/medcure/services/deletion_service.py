# Overview: Permanent deletion of archived products, guarded against sales history.

"""
Safe Bulk Deletion

================================================================================
RULE: a product row is removed only if it is ARCHIVED and no sale line
references it. Both conditions live in the DELETE statement itself.
================================================================================

Each id is its own statement + commit. One item failing (sales history,
already gone, store error) never aborts the rest of the batch; it is
reported in skipped_products instead.

SKIP REASONS:
    not_found             no such product (or deleted concurrently)
    not_archived          product is still active
    has_sales_history     at least one sale_items row references it
    store_error           the DELETE itself failed
    changed_concurrently  the row changed between the DELETE and the follow-up read

One summary audit entry is written per call, after all deletes, whatever
the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..models.archive import BULK_DELETION_ATTEMPT, PRODUCT_PERMANENTLY_DELETED
from ..validation import normalize_actor, parse_product_ids
from .audit_service import record_archive_event
from .product_store import ProductStore, StoreError


SKIP_NOT_FOUND = "not_found"
SKIP_NOT_ARCHIVED = "not_archived"
SKIP_HAS_SALES_HISTORY = "has_sales_history"
SKIP_STORE_ERROR = "store_error"
SKIP_CHANGED_CONCURRENTLY = "changed_concurrently"


@dataclass
class DeletionReport:
    total_requested: int
    deleted_ids: list[int] = field(default_factory=list)
    skipped_products: list[dict] = field(default_factory=list)

    @property
    def success(self) -> bool:
        # Partial deletion is still a successful call
        return True

    @property
    def total_deleted(self) -> int:
        return len(self.deleted_ids)

    @property
    def total_skipped(self) -> int:
        return len(self.skipped_products)

    @property
    def has_skipped_items(self) -> bool:
        return self.total_skipped > 0

    @property
    def message(self) -> str:
        if not self.has_skipped_items:
            return f"All {self.total_deleted} products deleted successfully."
        return (
            f"{self.total_deleted} products deleted successfully. "
            f"{self.total_skipped} products were skipped because they have "
            f"sales history or couldn't be found."
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "total_requested": self.total_requested,
            "total_deleted": self.total_deleted,
            "total_skipped": self.total_skipped,
            "deleted_ids": self.deleted_ids,
            "skipped_products": self.skipped_products,
            "message": self.message,
            "has_skipped_items": self.has_skipped_items,
        }


def _skip_reason(store: ProductStore, product_id: int) -> str:
    """Explain why the guarded DELETE matched no row."""
    product = store.get(product_id)
    if product is None:
        return SKIP_NOT_FOUND
    if not product.is_archived:
        return SKIP_NOT_ARCHIVED
    if store.has_historical_references(product_id):
        return SKIP_HAS_SALES_HISTORY
    return SKIP_CHANGED_CONCURRENTLY


def _delete_all(store: ProductStore, ids: list[int]) -> DeletionReport:
    report = DeletionReport(total_requested=len(ids))

    for pid in ids:
        try:
            deleted = store.delete_if_unreferenced(pid)
            if deleted:
                report.deleted_ids.append(pid)
                continue
            reason = _skip_reason(store, pid)
        except StoreError:
            current_app.logger.warning("Permanent delete of product %s failed", pid, exc_info=True)
            reason = SKIP_STORE_ERROR
        report.skipped_products.append({"id": pid, "reason": reason})

    return report


def bulk_permanently_delete(
    product_ids,
    *,
    actor: str | None = None,
    store: ProductStore | None = None,
) -> DeletionReport:
    """
    Permanently delete archived products that have no sales history.

    Raises:
        ValidationError: empty/malformed id list (before any store call)
        StoreError: the pre-delete snapshot read failed
    """
    ids = parse_product_ids(product_ids)
    actor = normalize_actor(actor)
    store = store if store is not None else ProductStore()

    snapshots = {pid: p.to_dict() for pid, p in store.get_many(ids).items()}
    report = _delete_all(store, ids)

    record_archive_event(
        store,
        type=BULK_DELETION_ATTEMPT,
        actor=actor,
        reason="bulk permanent delete",
        metadata={
            "total_requested": report.total_requested,
            "total_deleted": report.total_deleted,
            "total_skipped": report.total_skipped,
            "deleted_ids": report.deleted_ids,
            "skipped_products": report.skipped_products,
            "deleted_products": [
                {"id": pid, "name": snapshots[pid]["name"]}
                for pid in report.deleted_ids
                if pid in snapshots
            ],
        },
    )

    current_app.logger.info("Bulk delete by %s: %s", actor, report.message)
    return report


def permanently_delete_product(
    product_id,
    *,
    actor: str | None = None,
    store: ProductStore | None = None,
) -> DeletionReport:
    """Single-product delete through the same guard."""
    ids = parse_product_ids([product_id])
    actor = normalize_actor(actor)
    store = store if store is not None else ProductStore()

    pid = ids[0]
    before = store.get(pid)
    snapshot = before.to_dict() if before is not None else None

    report = _delete_all(store, ids)

    if report.deleted_ids:
        record_archive_event(
            store,
            type=PRODUCT_PERMANENTLY_DELETED,
            item_id=pid,
            item_name=snapshot["name"] if snapshot else None,
            reason=snapshot.get("archive_reason") if snapshot else None,
            actor=actor,
            original_data=snapshot,
        )
    return report
