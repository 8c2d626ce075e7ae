"""Health probe, CLI commands and sample data loading."""

from estore.models import Order, OrderItem, Product, User
from estore.services import seed_service


def test_health_reports_database_counts(db_session, client, tshirt):
    response = client.get('/api/health')

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "healthy"
    assert body["checked_at"].endswith("Z")
    assert body["checks"]["database"]["details"]["products"] == 1
    assert body["checks"]["database"]["details"]["inventory_records"] == 1


def test_seed_sample_data_is_idempotent(db_session):
    first = seed_service.seed_sample_data()
    second = seed_service.seed_sample_data()

    assert first == {"roles": 3, "users": 4, "categories": 3, "products": 3, "addresses": 2}
    assert set(second.values()) == {0}
    assert db_session.query(User).count() == 4
    assert db_session.query(Product).count() == 3


def test_cli_create_half_upfront_prints_order_id(app, db_session, customer, address):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "orders", "create-half-upfront",
        str(customer.id), str(address.id), str(address.id),
        "1498.00", "100.00", "50.00", "0.00",
    ])

    assert result.exit_code == 0, result.output
    order_id = int(result.output.strip())
    assert db_session.get(Order, order_id).order_status == "pending"


def test_cli_create_half_upfront_bad_amount(app, db_session, customer, address):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "orders", "create-half-upfront",
        str(customer.id), str(address.id), str(address.id),
        "abc", "0", "0", "0",
    ])

    assert result.exit_code != 0
    assert "FAIL" in result.output


def test_cli_add_item_refused_when_short(app, db_session, pending_order, phone):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["orders", "add-item", str(pending_order.id), str(phone.id), "9"])

    assert result.exit_code != 0
    assert "Insufficient inventory" in result.output
    assert db_session.query(OrderItem).count() == 0


def test_cli_add_item_and_summary(app, db_session, pending_order, tshirt):
    runner = app.test_cli_runner()
    added = runner.invoke(args=["orders", "add-item", str(pending_order.id), str(tshirt.id), "2"])
    assert added.exit_code == 0, added.output
    assert "PASS" in added.output

    summary = runner.invoke(args=["orders", "summary"])
    assert "Alice Mwangi" in summary.output
    assert "1648.00" in summary.output


def test_cli_set_status(app, db_session, pending_order):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["orders", "set-status", str(pending_order.id), "paid"])

    assert result.exit_code == 0, result.output
    assert "is now paid" in result.output


def test_cli_stock_low(app, db_session, tshirt, phone):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["store", "stock", "--low"])

    assert result.exit_code == 0
    assert "No products found." in result.output
