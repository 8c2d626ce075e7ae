"""
Initial migration against a file-backed SQLite database.

The schema is built by the Alembic revision (not db.create_all), the
services write through it, and the two SQL views must agree with the
reporting queries row for row.
"""
import importlib.util
import os
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import inspect, text

from estore import create_app
from estore.extensions import db
from estore.models import Product
from estore.money import money_str
from estore.services import account_service, catalog_service, order_service, reporting_service

MIGRATION_PATH = Path(__file__).resolve().parents[1] / "migrations" / "versions" / "0001_initial_schema.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema_revision", MIGRATION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(direction):
    migration = _load_migration()
    with db.engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            getattr(migration, direction)()


class InitialMigrationTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "migrated.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "BCRYPT_ROUNDS": 4,
        })
        self.ctx = self.app.app_context()
        self.ctx.push()
        _run("upgrade")

    def tearDown(self):
        db.session.remove()
        db.engine.dispose()
        self.ctx.pop()
        self.tmpdir.cleanup()

    def _seed(self):
        user = account_service.create_user(
            email="alice@example.com", password="Password123!", first_name="Alice", last_name="Mwangi"
        )
        address = account_service.add_address(user_id=user.id, line1="1 Kibera Rd", city="Nairobi", country="Kenya")
        catalog_service.create_product(sku="SKU-TSHIRT-001", name="Basic T-Shirt", price="499.00",
                                       quantity=100, reorder_level=10)
        catalog_service.create_product(sku="SKU-PHONE-001", name="Budget Phone", price="500.00",
                                       quantity=2, reorder_level=2)
        db.session.add(Product(sku="SKU-GHOST-001", name="Ghost Item", price=Decimal("10.00"), active=True))
        db.session.commit()
        order_service.create_order_half_upfront(
            user_id=user.id,
            shipping_address_id=address.id,
            billing_address_id=address.id,
            subtotal="1498.00",
            shipping_fee="100.00",
            tax="50.00",
            discount="0.00",
        )
        return user

    def test_upgrade_creates_tables_and_views(self):
        inspector = inspect(db.engine)
        tables = set(inspector.get_table_names())
        self.assertTrue(set(db.metadata.tables).issubset(tables))
        self.assertEqual(set(inspector.get_view_names()), {"vw_product_stock", "vw_order_summary"})

    def test_product_stock_view_matches_reporting(self):
        self._seed()

        view_rows = db.session.execute(text(
            "SELECT product_id, sku, name, qty, reorder_level FROM vw_product_stock ORDER BY product_id"
        )).all()
        expected = [
            (r["product_id"], r["sku"], r["name"], r["qty"], r["reorder_level"])
            for r in reporting_service.product_stock()
        ]

        self.assertEqual([tuple(row) for row in view_rows], expected)
        ghost = [row for row in view_rows if row.sku == "SKU-GHOST-001"][0]
        self.assertEqual(ghost.qty, 0)
        self.assertIsNone(ghost.reorder_level)

    def test_order_summary_view_matches_reporting(self):
        user = self._seed()

        view_rows = db.session.execute(text(
            "SELECT order_id, user_id, customer_name, total, order_status FROM vw_order_summary ORDER BY order_id"
        )).all()
        expected = [
            (r["order_id"], r["user_id"], r["customer_name"], r["total"], r["order_status"])
            for r in reporting_service.order_summary()
        ]

        self.assertEqual(
            [(r.order_id, r.user_id, r.customer_name, money_str(r.total), r.order_status) for r in view_rows],
            expected,
        )
        self.assertEqual(expected[0][2], account_service.get_user(user.id).full_name)
        self.assertEqual(expected[0][3], "1648.00")

    def test_downgrade_drops_everything(self):
        _run("downgrade")

        inspector = inspect(db.engine)
        self.assertEqual(inspector.get_view_names(), [])
        self.assertEqual(inspector.get_table_names(), [])


if __name__ == "__main__":
    unittest.main()
