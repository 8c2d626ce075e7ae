"""
Concurrent writers against a file-backed SQLite database.

Workers race for the same inventory row, coupon, order or payment; the row
lock / write lock must serialize them so that stock is never oversold, a
coupon never exceeds max_uses and a status move is applied exactly once.
"""
import os
import tempfile
import threading
import unittest
from decimal import Decimal

from estore import create_app
from estore.extensions import db
from estore.errors import ConstraintViolation, InsufficientStock
from estore.models import AuditLog, Coupon, OrderItem
from estore.services import account_service, catalog_service, inventory_service, order_service, payment_service


class ConcurrentWriteTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "BCRYPT_ROUNDS": 4,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            user = account_service.create_user(
                email="concurrent@example.com",
                password="Password123!",
                first_name="Con",
                last_name="Current",
            )
            address = account_service.add_address(
                user_id=user.id, line1="1 Test St", city="Nairobi", country="Kenya"
            )
            product = catalog_service.create_product(
                sku="CONCUR-1", name="Concurrent Product", price="100.00", quantity=10
            )
            self.product_id = product.id
            self.order_id = order_service.create_order_half_upfront(
                user_id=user.id,
                shipping_address_id=address.id,
                billing_address_id=address.id,
                subtotal="900.00",
                shipping_fee="0",
                tax="0",
                discount="0",
            )

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _race(self, workers, call):
        """Run call() in `workers` threads released together; return outcome names."""
        barrier = threading.Barrier(workers)
        outcomes = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    barrier.wait()
                    call()
                    outcome = "ok"
                except ConstraintViolation:
                    outcome = "refused"
                except Exception as exc:  # surfaced through the assertions
                    outcome = repr(exc)
                finally:
                    db.session.remove()
                with lock:
                    outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return outcomes

    def test_concurrent_admissions_never_oversell(self):
        workers = 6
        per_worker = 3
        barrier = threading.Barrier(workers)
        admitted = []
        refused = []
        unexpected = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    barrier.wait()
                    inventory_service.add_order_item(
                        order_id=self.order_id, product_id=self.product_id, quantity=per_worker
                    )
                    with lock:
                        admitted.append(1)
                except InsufficientStock:
                    with lock:
                        refused.append(1)
                except Exception as exc:  # surfaced through the assertion below
                    with lock:
                        unexpected.append(repr(exc))
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(unexpected, [])
        # 10 on hand, 3 per line: exactly three lines fit
        self.assertEqual(len(admitted), 3)
        self.assertEqual(len(refused), workers - 3)

        with self.app.app_context():
            self.assertEqual(inventory_service.get_stock(self.product_id), 1)
            lines = db.session.query(OrderItem).filter_by(order_id=self.order_id).all()
            self.assertEqual(len(lines), 3)
            self.assertEqual(
                order_service.order_subtotal_from_items(self.order_id), Decimal("900.00")
            )

    def test_concurrent_redemptions_respect_max_uses(self):
        with self.app.app_context():
            catalog_service.create_coupon(code="ONE", discount_type="fixed", discount_amount="10", max_uses=3)

        outcomes = self._race(8, lambda: catalog_service.redeem_coupon("ONE", "100"))

        self.assertEqual(sorted(outcomes), ["ok"] * 3 + ["refused"] * 5)
        with self.app.app_context():
            coupon = db.session.query(Coupon).filter_by(code="ONE").one()
            self.assertEqual(coupon.used_count, 3)

    def test_concurrent_order_transition_applies_once(self):
        outcomes = self._race(6, lambda: order_service.transition_order_status(self.order_id, "paid"))

        self.assertEqual(sorted(outcomes), ["ok"] + ["refused"] * 5)
        with self.app.app_context():
            self.assertEqual(order_service.get_order(self.order_id).order_status, "paid")
            paid_entries = db.session.query(AuditLog).filter_by(
                entity="order", entity_id=str(self.order_id), action="status_paid"
            ).count()
            self.assertEqual(paid_entries, 1)

    def test_concurrent_payment_settlement_applies_once(self):
        with self.app.app_context():
            payment_id = order_service.get_order(self.order_id).payments[0].id

        outcomes = self._race(5, lambda: payment_service.set_payment_status(payment_id, "paid"))

        self.assertEqual(sorted(outcomes), ["ok"] + ["refused"] * 4)
        with self.app.app_context():
            self.assertEqual(
                db.session.query(AuditLog).filter_by(entity="payment", action="status_paid").count(), 1
            )


if __name__ == "__main__":
    unittest.main()
