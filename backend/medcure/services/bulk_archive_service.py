# Overview: Batch archive/restore; one conditional UPDATE per batch, per-item outcomes reported.

"""
Bulk Archive / Restore

WHY ONE STATEMENT:
The eligibility predicate (is_archived = false for archive, = true for
restore) is evaluated by the database inside a single UPDATE ... RETURNING.
Two overlapping bulk calls therefore split the rows between them instead of
both "winning" on a stale snapshot.

Ids that did not transition are SKIPPED, not errors:
    already_archived / not_archived / not_found / unverified

Once the UPDATE has committed the result is built from its RETURNING ids.
Reads after that point are best effort: a failed read costs detail in the
report and the audit snapshots, never the report itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..models.archive import PRODUCT_ARCHIVED, PRODUCT_RESTORED
from ..validation import normalize_actor, parse_product_ids, require_reason
from .archive_service import Active, Archived, state_columns
from .audit_service import record_archive_event
from .product_store import ProductStore, StoreError
from .stock_service import effective_stock
from medcure.time_utils import utcnow


SKIP_NOT_FOUND = "not_found"
SKIP_ALREADY_ARCHIVED = "already_archived"
SKIP_NOT_ARCHIVED = "not_archived"
# The batch committed but the leftover ids could not be looked up
SKIP_UNVERIFIED = "unverified"


@dataclass
class BulkTransitionResult:
    action: str
    total_requested: int
    ids: list[int] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.ids)

    @property
    def message(self) -> str:
        noun = "product" if self.count == 1 else "products"
        msg = f"{self.count} {noun} {self.action} successfully."
        if self.skipped:
            msg += f" {len(self.skipped)} skipped."
        return msg

    def to_dict(self) -> dict:
        return {
            "success": True,
            "total_requested": self.total_requested,
            "count": self.count,
            "ids": self.ids,
            "skipped": self.skipped,
            "message": self.message,
        }


def _skipped(store: ProductStore, product_ids: list[int], transitioned: list[int], in_place_reason: str) -> list[dict]:
    """Explain every requested id that did not transition."""
    moved = set(transitioned)
    leftover = [pid for pid in product_ids if pid not in moved]
    existing = _read_committed(store, leftover)
    if existing is None:
        return [{"id": pid, "reason": SKIP_UNVERIFIED} for pid in leftover]
    return [
        {"id": pid, "reason": in_place_reason if pid in existing else SKIP_NOT_FOUND}
        for pid in leftover
    ]


def _read_committed(store: ProductStore, product_ids: list[int]) -> dict | None:
    """get_many after the batch committed; None if the read failed."""
    try:
        return store.get_many(product_ids)
    except StoreError:
        current_app.logger.warning(
            "Reading products %s after a committed batch failed", product_ids, exc_info=True
        )
        return None


def bulk_archive(
    product_ids,
    *,
    reason: str,
    actor: str | None = None,
    store: ProductStore | None = None,
) -> BulkTransitionResult:
    """
    Archive every currently-active product among `product_ids`.

    Raises:
        ValidationError: empty/malformed id list or blank reason
        StoreError: the batch UPDATE itself failed
    """
    ids = parse_product_ids(product_ids)
    reason = require_reason(reason)
    actor = normalize_actor(actor)
    store = store if store is not None else ProductStore()

    state = Archived(date=utcnow(), by=actor, reason=reason)
    archived_ids = store.bulk_update_where(ids, state_columns(state), is_archived=False)

    result = BulkTransitionResult(
        action="archived",
        total_requested=len(ids),
        ids=archived_ids,
        skipped=_skipped(store, ids, archived_ids, SKIP_ALREADY_ARCHIVED),
    )

    products = _read_committed(store, archived_ids) or {}
    for pid in archived_ids:
        product = products.get(pid)
        snapshot = product.to_dict() if product is not None else None
        record_archive_event(
            store,
            type=PRODUCT_ARCHIVED,
            item_id=pid,
            item_name=snapshot["name"] if snapshot else None,
            reason=reason,
            actor=actor,
            original_data=snapshot,
            metadata={
                "bulk_operation": True,
                "original_stock": effective_stock(snapshot) if snapshot else None,
            },
        )

    current_app.logger.info("Bulk archive by %s: %s", actor, result.message)
    return result


def bulk_restore(
    product_ids,
    *,
    actor: str | None = None,
    store: ProductStore | None = None,
) -> BulkTransitionResult:
    """
    Restore every currently-archived product among `product_ids`.

    Raises:
        ValidationError: empty/malformed id list
        StoreError: the batch UPDATE itself failed
    """
    ids = parse_product_ids(product_ids)
    actor = normalize_actor(actor)
    store = store if store is not None else ProductStore()

    # Snapshots for the audit trail only; eligibility is decided by the UPDATE
    before = {pid: p.to_dict() for pid, p in store.get_many(ids).items()}

    restored_ids = store.bulk_update_where(ids, state_columns(Active()), is_archived=True)

    result = BulkTransitionResult(
        action="restored",
        total_requested=len(ids),
        ids=restored_ids,
        skipped=_skipped(store, ids, restored_ids, SKIP_NOT_ARCHIVED),
    )

    for pid in restored_ids:
        previous = before.get(pid) or {}
        record_archive_event(
            store,
            type=PRODUCT_RESTORED,
            item_id=pid,
            item_name=previous.get("name"),
            reason=previous.get("archive_reason"),
            actor=actor,
            original_data=previous or None,
            metadata={
                "bulk_operation": True,
                "archived_date": previous.get("archived_date"),
                "archived_by": previous.get("archived_by"),
            },
        )

    current_app.logger.info("Bulk restore by %s: %s", actor, result.message)
    return result
