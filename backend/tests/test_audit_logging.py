# Overview: Pytest coverage for the best-effort archive audit trail.

import logging

import pytest

from medcure.models import ArchiveLog, Product
from medcure.services.archive_service import archive_product, restore_product
from medcure.services.audit_service import record_archive_event
from medcure.services.bulk_archive_service import bulk_archive
from medcure.services.deletion_service import bulk_permanently_delete
from medcure.services.product_store import StoreError


@pytest.fixture
def broken_log(store, monkeypatch):
    """Make every audit insert fail."""
    def _fail(**kwargs):
        raise StoreError("Writing archive log failed: disk I/O error")

    monkeypatch.setattr(store, "insert_log", _fail)
    return store


def test_log_failure_keeps_archive(db_session, broken_log, make_product, caplog):
    pid = make_product()

    with caplog.at_level(logging.WARNING):
        result = archive_product(pid, reason="Recall", store=broken_log)

    assert result.changed is True
    assert db_session.get(Product, pid).is_archived is True
    assert db_session.query(ArchiveLog).count() == 0
    assert any("Archive log write failed" in r.getMessage() for r in caplog.records)


def test_log_failure_keeps_restore(db_session, broken_log, archived_product, caplog):
    pid = archived_product()

    with caplog.at_level(logging.WARNING):
        result = restore_product(pid, store=broken_log)

    assert result.changed is True
    assert db_session.get(Product, pid).is_archived is False
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_log_failure_keeps_bulk_operations(db_session, broken_log, make_product, archived_product):
    ids = [make_product(), make_product()]
    result = bulk_archive(ids, reason="Batch", store=broken_log)
    assert result.count == 2

    doomed = archived_product()
    report = bulk_permanently_delete([doomed], store=broken_log)
    assert report.deleted_ids == [doomed]
    assert db_session.query(Product).filter(Product.id == doomed).first() is None


def test_record_returns_entry(db_session, store):
    entry = record_archive_event(
        store,
        type="product_archived",
        item_id=7,
        item_name="Loratadine",
        reason="Test",
        actor="alice",
        original_data={"id": 7},
        metadata={"original_stock": 3},
    )

    assert entry is not None
    data = entry.to_dict()
    assert data["type"] == "product_archived"
    assert data["metadata"] == {"original_stock": 3}
    assert data["original_data"] == {"id": 7}
    assert data["created_at"].endswith("Z")


def test_unknown_type_rejected(store):
    with pytest.raises(ValueError):
        record_archive_event(store, type="product_vanished", item_id=1)


def test_logs_listed_newest_first(db_session, store, make_product):
    pid = make_product()
    archive_product(pid, reason="One", store=store)
    restore_product(pid, store=store)
    archive_product(pid, reason="Two", store=store)

    logs = store.list_archive_logs(item_id=pid)
    assert [log.type for log in logs] == ["product_archived", "product_restored", "product_archived"]
    assert logs[0].reason == "Two"
