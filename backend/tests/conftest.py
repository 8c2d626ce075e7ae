"""
Pytest fixtures for estore backend tests.

Provides an in-memory database per session, a wiped schema per test, and
a small customer/catalog/order fixture set.
"""

from decimal import Decimal

import pytest

from estore import create_app
from estore.extensions import db
from estore.models import Product
from estore.services import account_service, catalog_service, order_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
def customer(db_session):
    """Alice, a plain customer account."""
    return account_service.create_user(
        email="alice@example.com",
        password="Password123!",
        first_name="Alice",
        last_name="Mwangi",
        phone="+254700111222",
    )


@pytest.fixture(scope='function')
def address(db_session, customer):
    return account_service.add_address(
        user_id=customer.id,
        label="home",
        line1="1 Kibera Rd",
        city="Nairobi",
        country="Kenya",
        is_default=True,
    )


@pytest.fixture(scope='function')
def tshirt(db_session):
    """Product priced 499.00 with 100 on hand, reorder level 10."""
    return catalog_service.create_product(
        sku="SKU-TSHIRT-001",
        name="Basic T-Shirt",
        price="499.00",
        quantity=100,
        reorder_level=10,
    )


@pytest.fixture(scope='function')
def phone(db_session):
    """Product priced 500.00 with only 3 on hand."""
    return catalog_service.create_product(
        sku="SKU-PHONE-001",
        name="Budget Phone",
        price="500.00",
        quantity=3,
        reorder_level=2,
    )


@pytest.fixture(scope='function')
def unstocked_product(db_session):
    """Product with no inventory record at all."""
    product = Product(sku="SKU-GHOST-001", name="Ghost Item", price=Decimal("10.00"), active=True)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def pending_order(db_session, customer, address):
    """Pending order worth 1648.00 (1498 + 100 shipping + 50 tax)."""
    order_id = order_service.create_order_half_upfront(
        user_id=customer.id,
        shipping_address_id=address.id,
        billing_address_id=address.id,
        subtotal="1498.00",
        shipping_fee="100.00",
        tax="50.00",
        discount="0.00",
    )
    return order_service.get_order(order_id)
