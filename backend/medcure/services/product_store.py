# Overview: Record store for products and archive logs; the only place that issues SQL.

"""
Product Store

WHY THIS EXISTS:
Lifecycle services never read-then-write. Every precondition ("is this
product still active?", "does it have sales?") is part of the statement
that mutates the row, so concurrent callers cannot overwrite each other's
state from a stale read.

Each mutating method is one atomic unit: statement + commit, retried on
lock contention. SQLAlchemy failures surface as StoreError with the
original exception chained.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import delete, exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import ArchiveLog, Product, SaleItem, SalesTransaction
from .concurrency import run_with_retry


# Sale statuses that no longer count toward sales velocity
VOIDED_SALE_STATUSES = ("cancelled", "refunded")


class ProductNotFoundError(LookupError):
    """Raised when a referenced product id does not exist."""

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class StoreError(RuntimeError):
    """Raised when the underlying database call fails."""


class ProductStore:
    """
    Store handle passed explicitly to every lifecycle service.

    Defaults to the Flask-SQLAlchemy request session.
    """

    def __init__(self, session=None, *, retry_attempts: int = 3):
        self.session = session if session is not None else db.session
        self.retry_attempts = retry_attempts

    def _run(self, description: str, func):
        try:
            return run_with_retry(func, session=self.session, attempts=self.retry_attempts)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"{description} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, product_id: int, *, is_archived: bool | None = None) -> Product | None:
        """Select by id, optionally conditioned on the archive flag."""
        def _op():
            q = self.session.query(Product).filter(Product.id == product_id)
            if is_archived is not None:
                q = q.filter(Product.is_archived.is_(is_archived))
            return q.first()
        return self._run(f"Loading product {product_id}", _op)

    def require(self, product_id: int) -> Product:
        product = self.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_many(self, product_ids: Iterable[int]) -> dict[int, Product]:
        ids = list(product_ids)
        if not ids:
            return {}

        def _op():
            rows = self.session.query(Product).filter(Product.id.in_(ids)).all()
            return {p.id: p for p in rows}
        return self._run("Loading products", _op)

    def list_products(
        self,
        *,
        archived: bool = False,
        search: str | None = None,
        category: str | None = None,
    ) -> list[Product]:
        def _op():
            q = self.session.query(Product).filter(Product.is_archived.is_(archived))
            if search:
                pattern = f"%{search.strip()}%"
                q = q.filter(or_(
                    Product.name.ilike(pattern),
                    Product.generic_name.ilike(pattern),
                    Product.category.ilike(pattern),
                    Product.archive_reason.ilike(pattern),
                ))
            if category:
                q = q.filter(Product.category == category)
            if archived:
                q = q.order_by(Product.archived_date.desc(), Product.id.desc())
            else:
                q = q.order_by(Product.name.asc(), Product.id.asc())
            return q.all()
        return self._run("Listing products", _op)

    def has_historical_references(self, product_id: int) -> bool:
        """True iff at least one sale line references the product."""
        def _op():
            return bool(self.session.query(
                exists().where(SaleItem.product_id == product_id)
            ).scalar())
        return self._run(f"Checking sales history of product {product_id}", _op)

    def units_sold_since(self, product_id: int, since: datetime) -> int:
        """Units sold on non-voided transactions since `since`."""
        def _op():
            total = (
                self.session.query(func.coalesce(func.sum(SaleItem.quantity), 0))
                .join(SalesTransaction, SalesTransaction.id == SaleItem.transaction_id)
                .filter(
                    SaleItem.product_id == product_id,
                    SaleItem.created_at >= since,
                    SalesTransaction.status.notin_(VOIDED_SALE_STATUSES),
                )
                .scalar()
            )
            return int(total or 0)
        return self._run(f"Summing sales of product {product_id}", _op)

    def find_archive_anomalies(self) -> list[Product]:
        """
        Rows whose flag and metadata disagree:
        - metadata present while is_archived = false
        - is_archived = true without an archived_date
        """
        def _op():
            stray_metadata = (
                Product.is_archived.is_(False)
                & or_(
                    Product.archived_date.isnot(None),
                    Product.archived_by.isnot(None),
                    Product.archive_reason.isnot(None),
                )
            )
            missing_date = Product.is_archived.is_(True) & Product.archived_date.is_(None)
            return (
                self.session.query(Product)
                .filter(or_(stray_metadata, missing_date))
                .order_by(Product.id.asc())
                .all()
            )
        return self._run("Scanning archive metadata", _op)

    def list_archive_logs(self, *, item_id: int | None = None, limit: int = 100) -> list[ArchiveLog]:
        def _op():
            q = self.session.query(ArchiveLog)
            if item_id is not None:
                q = q.filter(ArchiveLog.item_id == item_id)
            return q.order_by(ArchiveLog.created_at.desc(), ArchiveLog.id.desc()).limit(limit).all()
        return self._run("Listing archive logs", _op)

    # ------------------------------------------------------------------
    # Conditional writes (statement + commit)
    # ------------------------------------------------------------------

    def update_where(self, product_id: int, values: dict[str, Any], *, is_archived: bool) -> bool:
        """
        UPDATE one product only if its archive flag still equals `is_archived`.

        Returns True if the row matched and was updated.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.is_archived.is_(is_archived))
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        def _op():
            result = self.session.execute(stmt)
            self.session.commit()
            return result.rowcount == 1
        return self._run(f"Updating product {product_id}", _op)

    def bulk_update_where(
        self,
        product_ids: list[int],
        values: dict[str, Any],
        *,
        is_archived: bool,
    ) -> list[int]:
        """
        One UPDATE over an id list, conditioned on the archive flag.

        Returns the ids actually updated (RETURNING), so callers never rely on
        a pre-read snapshot of which rows were eligible.
        """
        stmt = (
            update(Product)
            .where(Product.id.in_(product_ids), Product.is_archived.is_(is_archived))
            .values(**values)
            .returning(Product.id)
            .execution_options(synchronize_session=False)
        )

        def _op():
            updated = sorted(self.session.execute(stmt).scalars().all())
            self.session.commit()
            return updated
        return self._run("Bulk updating products", _op)

    def delete_if_unreferenced(self, product_id: int) -> bool:
        """
        DELETE an archived product with no sale lines, as one statement.

        The reference check lives in the DELETE's WHERE clause, so a sale
        recorded between a separate check and the delete cannot slip through.
        A foreign-key violation from a concurrent sale is reported as False.
        """
        has_sales = select(SaleItem.id).where(SaleItem.product_id == product_id).exists()
        stmt = (
            delete(Product)
            .where(
                Product.id == product_id,
                Product.is_archived.is_(True),
                ~has_sales,
            )
            .execution_options(synchronize_session=False)
        )

        def _op():
            try:
                result = self.session.execute(stmt)
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                return False
            return result.rowcount == 1
        return self._run(f"Deleting product {product_id}", _op)

    def clear_stray_archive_metadata(self) -> list[int]:
        """Null the archive trio on rows that are not archived."""
        stmt = (
            update(Product)
            .where(
                Product.is_archived.is_(False),
                or_(
                    Product.archived_date.isnot(None),
                    Product.archived_by.isnot(None),
                    Product.archive_reason.isnot(None),
                ),
            )
            .values(archived_date=None, archived_by=None, archive_reason=None)
            .returning(Product.id)
            .execution_options(synchronize_session=False)
        )

        def _op():
            repaired = sorted(self.session.execute(stmt).scalars().all())
            self.session.commit()
            return repaired
        return self._run("Repairing archive metadata", _op)

    def insert_log(
        self,
        *,
        type: str,
        item_id: int | None = None,
        item_name: str | None = None,
        reason: str | None = None,
        actor: str | None = None,
        original_data: dict | None = None,
        metadata: dict | None = None,
    ) -> ArchiveLog:
        """Append one audit entry in its own transaction."""
        def _op():
            entry = ArchiveLog(
                type=type,
                item_id=item_id,
                item_name=item_name,
                reason=reason,
                actor=actor,
                original_data=original_data,
                meta=metadata,
            )
            self.session.add(entry)
            self.session.commit()
            return entry
        return self._run("Writing archive log", _op)

    def rollback(self) -> None:
        self.session.rollback()
