from __future__ import annotations

from ..extensions import db
from medcure.time_utils import to_utc_z


class SalesTransaction(db.Model):
    """POS sale header. Only its line items matter to the inventory lifecycle."""
    __tablename__ = "sales_transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_number = db.Column(db.String(64), nullable=True, unique=True)
    customer_name = db.Column(db.String(255), nullable=True)
    payment_method = db.Column(db.String(32), nullable=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    items = db.relationship("SaleItem", backref="transaction", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "customer_name": self.customer_name,
            "payment_method": self.payment_method,
            "total_amount": float(self.total_amount) if self.total_amount is not None else None,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """
    Sale line referencing a product.

    Any row here is a historical reference: the referenced product can be
    archived but never permanently deleted.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.Index("ix_sale_items_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("sales_transactions.id"), nullable=False, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price) if self.unit_price is not None else None,
            "created_at": to_utc_z(self.created_at),
        }
