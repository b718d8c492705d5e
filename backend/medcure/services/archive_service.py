# Overview: Service-layer operations for the product archive lifecycle.

"""
Product Archive Lifecycle Service

================================================================================
PURPOSE: Enforce Active -> Archived -> Active for a single product
================================================================================

STATE MACHINE:
    ACTIVE --archive--> ARCHIVED --restore--> ACTIVE
    ARCHIVED --permanent delete--> (row removed; see deletion_service)

    ACTIVE:   is_archived = false, archived_date / archived_by / archive_reason NULL
    ARCHIVED: is_archived = true, archive trio set together

RULES:
1. Archiving an ARCHIVED product is a no-op success; metadata is not rewritten.
2. Restoring an ACTIVE product is a no-op success.
3. The precondition is part of the UPDATE (WHERE is_archived = ...), never a
   separate read, so concurrent calls cannot overwrite each other.
4. The audit entry is written after the transition commits. A failed write is
   a warning, never an error.

In code the state is a tagged value (Active | Archived); the flat nullable
columns only exist at the store boundary (lifecycle_state / state_columns).
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from flask import current_app

from ..models.archive import PRODUCT_ARCHIVED, PRODUCT_RESTORED
from ..validation import coerce_id, normalize_actor, require_reason
from .audit_service import record_archive_event
from .product_store import ProductNotFoundError, ProductStore, StoreError
from .stock_service import effective_stock, money_value, read_field
from medcure.time_utils import to_utc_z, utcnow


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Archived:
    date: datetime
    by: str
    reason: str


LifecycleState = Union[Active, Archived]


class ArchiveAnomalyError(ValueError):
    """Raised when a row's archive flag and metadata disagree."""


def lifecycle_state(product: Any) -> LifecycleState:
    """
    Project the flat columns onto the tagged state.

    Raises ArchiveAnomalyError for rows that are neither cleanly active nor
    cleanly archived.
    """
    is_archived = bool(read_field(product, "is_archived"))
    archived_date = read_field(product, "archived_date")
    archived_by = read_field(product, "archived_by")
    archive_reason = read_field(product, "archive_reason")

    if not is_archived:
        if archived_date is not None or archived_by is not None or archive_reason is not None:
            raise ArchiveAnomalyError(
                f"Product {read_field(product, 'id')} has archive metadata but is_archived = false"
            )
        return Active()

    if archived_date is None:
        raise ArchiveAnomalyError(
            f"Product {read_field(product, 'id')} is archived without an archived_date"
        )
    return Archived(date=archived_date, by=archived_by or "", reason=archive_reason or "")


def state_columns(state: LifecycleState) -> dict:
    """Project a tagged state back onto the flat columns."""
    if isinstance(state, Archived):
        return {
            "is_archived": True,
            "archived_date": state.date,
            "archived_by": state.by,
            "archive_reason": state.reason,
        }
    return {
        "is_archived": False,
        "archived_date": None,
        "archived_by": None,
        "archive_reason": None,
    }


@dataclass(frozen=True)
class TransitionResult:
    product: dict
    changed: bool

    def to_dict(self) -> dict:
        return {"product": self.product, "changed": self.changed}


def _store(store: ProductStore | None) -> ProductStore:
    return store if store is not None else ProductStore()


def _product_id(product: Any) -> int:
    """Accept an id or a product record."""
    if isinstance(product, (int, str)):
        return coerce_id(product, "product_id")
    return coerce_id(read_field(product, "id"), "product_id")


def _committed_snapshot(store: ProductStore, product_id: int) -> dict | None:
    """
    Re-read a product whose transition has already committed.

    Returns None when the row cannot be read back; the transition stands.
    """
    try:
        product = store.get(product_id)
    except StoreError:
        current_app.logger.warning(
            "Reloading product %s after its transition committed failed", product_id, exc_info=True
        )
        return None
    return product.to_dict() if product is not None else None


def _state_view(product_id: int, state: LifecycleState) -> dict:
    """Minimal record built from the state that was written."""
    columns = state_columns(state)
    columns["archived_date"] = to_utc_z(columns["archived_date"])
    return {"id": product_id, **columns}


def archive_product(
    product_id: int,
    *,
    reason: str,
    actor: str | None = None,
    store: ProductStore | None = None,
) -> TransitionResult:
    """
    Archive an ACTIVE product (ACTIVE -> ARCHIVED).

    Raises:
        ValidationError: blank reason or malformed id (before any store call)
        ProductNotFoundError: no such product
        StoreError: the store call failed
    """
    product_id = _product_id(product_id)
    reason = require_reason(reason)
    actor = normalize_actor(actor)
    store = _store(store)

    state = Archived(date=utcnow(), by=actor, reason=reason)
    changed = store.update_where(product_id, state_columns(state), is_archived=False)

    if not changed:
        product = store.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return TransitionResult(product=product.to_dict(), changed=False)

    snapshot = _committed_snapshot(store, product_id)
    record_archive_event(
        store,
        type=PRODUCT_ARCHIVED,
        item_id=product_id,
        item_name=snapshot["name"] if snapshot else None,
        reason=reason,
        actor=actor,
        original_data=snapshot,
        metadata={"original_stock": effective_stock(snapshot) if snapshot else None},
    )

    return TransitionResult(product=snapshot or _state_view(product_id, state), changed=True)


def restore_product(
    product_id: int,
    *,
    actor: str | None = None,
    store: ProductStore | None = None,
) -> TransitionResult:
    """
    Restore an ARCHIVED product (ARCHIVED -> ACTIVE).

    Raises:
        ProductNotFoundError: no such product
        StoreError: the store call failed
    """
    product_id = _product_id(product_id)
    actor = normalize_actor(actor)
    store = _store(store)

    before = store.get(product_id)
    if before is None:
        raise ProductNotFoundError(product_id)
    previous = before.to_dict()

    changed = store.update_where(product_id, state_columns(Active()), is_archived=True)

    if not changed:
        product = store.get(product_id)
        if product is None:
            # Permanently deleted between the two statements
            raise ProductNotFoundError(product_id)
        return TransitionResult(product=product.to_dict(), changed=False)

    snapshot = _committed_snapshot(store, product_id)
    record_archive_event(
        store,
        type=PRODUCT_RESTORED,
        item_id=product_id,
        item_name=previous.get("name"),
        reason=previous.get("archive_reason"),
        actor=actor,
        original_data=previous,
        metadata={
            "archived_date": previous.get("archived_date"),
            "archived_by": previous.get("archived_by"),
        },
    )

    return TransitionResult(product=snapshot or _state_view(product_id, Active()), changed=True)


def list_archived_products(
    *,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
    store: ProductStore | None = None,
) -> dict:
    """
    Archived products, newest archive first, with optional pagination.
    """
    store = _store(store)
    products = [p.to_dict() for p in store.list_products(archived=True, search=search)]

    # If no pagination requested, return all items
    if page is None:
        return {"items": products, "count": len(products)}

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = len(products)
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    items = products[(page - 1) * per_page: page * per_page]

    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def archive_stats(*, store: ProductStore | None = None) -> dict:
    store = _store(store)
    archived = store.list_products(archived=True)
    return {
        "archived_products": len(archived),
        "archived_units": sum(effective_stock(p) for p in archived),
        "archived_stock_value": round(
            sum(effective_stock(p) * money_value(p.cost_price) for p in archived), 2
        ),
    }


def find_archive_anomalies(*, store: ProductStore | None = None) -> list[dict]:
    """
    Products whose archive flag and metadata disagree, with the problem found.
    """
    store = _store(store)
    anomalies = []
    for product in store.find_archive_anomalies():
        try:
            lifecycle_state(product)
        except ArchiveAnomalyError as e:
            anomalies.append({"product": product.to_dict(), "problem": str(e)})

    if anomalies:
        current_app.logger.warning(
            "Detected %d product(s) with inconsistent archive metadata", len(anomalies)
        )
    return anomalies


def repair_archive_anomalies(*, store: ProductStore | None = None) -> list[int]:
    """
    Clear stray archive metadata on non-archived rows.

    Archived rows missing archived_date are reported, not guessed at.
    """
    store = _store(store)
    repaired = store.clear_stray_archive_metadata()
    if repaired:
        current_app.logger.info("Cleared stray archive metadata on products %s", repaired)
    return repaired

