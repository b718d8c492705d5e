"""
Pytest fixtures for MedCure backend tests.

Provides test database setup, a ProductStore bound to the test session,
product/sale factories, and the test client.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from medcure import create_app
from medcure.extensions import db
from medcure.models import Product, SaleItem, SalesTransaction
from medcure.services.product_store import ProductStore
from medcure.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'COMMIT_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    return ProductStore(db_session, retry_attempts=1)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: insert a product and return its id."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        values = {
            "name": f"Product {counter['n']}",
            "category": "General",
            "total_stock": 50,
            "stock": 50,
            "cost_price": Decimal("2.00"),
            "selling_price": Decimal("3.50"),
            "is_archived": False,
        }
        values.update(fields)
        product = Product(**values)
        db_session.add(product)
        db_session.commit()
        return product.id

    return _make


@pytest.fixture(scope='function')
def archived_product(make_product):
    """Factory: insert an already archived product and return its id."""
    def _make(**fields):
        values = {
            "is_archived": True,
            "archived_date": datetime(2026, 1, 15, 9, 30),
            "archived_by": "pharmacist",
            "archive_reason": "Discontinued",
        }
        values.update(fields)
        return make_product(**values)

    return _make


@pytest.fixture(scope='function')
def make_sale(db_session):
    """Factory: record a sale of `quantity` units of a product."""
    counter = {"n": 0}

    def _make(product_id, quantity=1, *, status="completed", created_at=None):
        counter["n"] += 1
        when = created_at or utcnow()
        tx = SalesTransaction(
            transaction_number=f"TX-{counter['n']:05d}",
            payment_method="cash",
            total_amount=Decimal("0"),
            status=status,
            created_at=when,
        )
        db_session.add(tx)
        db_session.flush()
        item = SaleItem(
            transaction_id=tx.id,
            product_id=product_id,
            quantity=quantity,
            unit_price=Decimal("3.50"),
            created_at=when,
        )
        db_session.add(item)
        db_session.commit()
        return item.id

    return _make
