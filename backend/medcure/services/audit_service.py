# Overview: Best-effort archive audit trail; never part of the mutation's failure domain.

from __future__ import annotations

from flask import current_app

from ..models import ArchiveLog
from ..models.archive import ARCHIVE_LOG_TYPES
from .product_store import ProductStore
"""
Archive Log Invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- Written AFTER the lifecycle transition has committed, in a separate
  transaction. The transition is already durable when logging starts.
- A failed write is logged as a warning and reported as None; it never
  raises to the caller and never rolls back the transition.
"""


def record_archive_event(
    store: ProductStore,
    *,
    type: str,
    item_id: int | None = None,
    item_name: str | None = None,
    reason: str | None = None,
    actor: str | None = None,
    original_data: dict | None = None,
    metadata: dict | None = None,
) -> ArchiveLog | None:
    """
    Append an archive log entry; returns None if the write failed.
    """
    if type not in ARCHIVE_LOG_TYPES:
        raise ValueError(f"Unknown archive log type '{type}'")

    try:
        return store.insert_log(
            type=type,
            item_id=item_id,
            item_name=item_name,
            reason=reason,
            actor=actor,
            original_data=original_data,
            metadata=metadata,
        )
    except Exception:
        store.rollback()
        current_app.logger.warning(
            "Archive log write failed (type=%s, item_id=%s); transition kept",
            type,
            item_id,
            exc_info=True,
        )
        return None
