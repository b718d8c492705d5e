from __future__ import annotations

from ..extensions import db
from medcure.time_utils import to_utc_z


def _money(value):
    return float(value) if value is not None else None


class Product(db.Model):
    """
    Pharmacy product master data.

    STOCK FIELDS:
    `stock` and `total_stock` overlap (legacy schema drift). Never read them
    directly in business logic; go through services.stock_service.effective_stock.

    ARCHIVE FIELDS:
    `is_archived` plus the archived_date / archived_by / archive_reason trio.
    The trio is set together on archive and cleared together on restore.
    Metadata on a non-archived row is an anomaly (see archive_service).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_archived_name", "is_archived", "name"),
        db.Index("ix_products_expiry_date", "expiry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    generic_name = db.Column(db.String(255), nullable=True)
    brand_name = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(120), nullable=True, index=True)
    manufacturer = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    batch_number = db.Column(db.String(64), nullable=True)

    # Legacy duplication: total_stock is primary, stock is the fallback
    stock = db.Column(db.Integer, nullable=True)
    total_stock = db.Column(db.Integer, nullable=True)

    # Per-product low-stock threshold; NULL means use the global default
    reorder_level = db.Column(db.Integer, nullable=True)

    cost_price = db.Column(db.Numeric(12, 2), nullable=True)
    selling_price = db.Column(db.Numeric(12, 2), nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=True)

    # NULL means no expiry tracking
    expiry_date = db.Column(db.Date, nullable=True)

    is_archived = db.Column(db.Boolean, nullable=False, default=False)
    archived_date = db.Column(db.DateTime(timezone=True), nullable=True)
    archived_by = db.Column(db.String(120), nullable=True)
    archive_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} is_archived={self.is_archived}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "generic_name": self.generic_name,
            "brand_name": self.brand_name,
            "category": self.category,
            "manufacturer": self.manufacturer,
            "description": self.description,
            "batch_number": self.batch_number,
            "stock": self.stock,
            "total_stock": self.total_stock,
            "reorder_level": self.reorder_level,
            "cost_price": _money(self.cost_price),
            "selling_price": _money(self.selling_price),
            "price": _money(self.price),
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "is_archived": self.is_archived,
            "archived_date": to_utc_z(self.archived_date),
            "archived_by": self.archived_by,
            "archive_reason": self.archive_reason,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
