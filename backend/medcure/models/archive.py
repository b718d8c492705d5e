from __future__ import annotations

from ..extensions import db
from medcure.time_utils import to_utc_z


# Audit entry types
PRODUCT_ARCHIVED = "product_archived"
PRODUCT_RESTORED = "product_restored"
PRODUCT_PERMANENTLY_DELETED = "product_permanently_deleted"
BULK_DELETION_ATTEMPT = "bulk_deletion_attempt"

ARCHIVE_LOG_TYPES = {
    PRODUCT_ARCHIVED,
    PRODUCT_RESTORED,
    PRODUCT_PERMANENTLY_DELETED,
    BULK_DELETION_ATTEMPT,
}


class ArchiveLog(db.Model):
    """
    Append-only audit trail for product lifecycle transitions.

    Rows are written after the transition commits and are never updated.
    item_id is not a foreign key: entries outlive permanently deleted products.
    """
    __tablename__ = "archive_logs"
    __table_args__ = (
        db.Index("ix_archive_logs_item_created", "item_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(48), nullable=False, index=True)
    item_id = db.Column(db.Integer, nullable=True)
    item_name = db.Column(db.String(255), nullable=True)
    reason = db.Column(db.String(255), nullable=True)
    actor = db.Column(db.String(120), nullable=True)

    # Product snapshot at transition time
    original_data = db.Column(db.JSON, nullable=True)
    # "metadata" is reserved on declarative models
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "reason": self.reason,
            "actor": self.actor,
            "original_data": self.original_data,
            "metadata": self.meta,
            "created_at": to_utc_z(self.created_at),
        }
