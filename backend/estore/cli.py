# Overview: Flask CLI command groups for bootstrap, inspection, and order operations.

# backend/estore/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to estore (PowerShell: $env:FLASK_APP="estore").
# - Use: python -m flask <group> <command> [options]
#
# Database bootstrap:
# - python -m flask store init-db
#   Create all tables that do not exist yet.
# - python -m flask store reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask store seed-sample
#   Load the demo roles, customers, categories, products, stock and addresses.
#
# Inspection:
# - python -m flask store stock [--low]
#   Product stock status (optionally only items at/below reorder level).
# - python -m flask orders summary [--user-id 1]
#   Order summary with customer name, total and status.
#
# Orders:
# - python -m flask orders create-half-upfront 1 1 1 1498.00 100.00 50.00 0.00
#   Create a pending order with a half-upfront payment; prints the order id.
# - python -m flask orders add-item 1 2 3
#   Add 3 units of product 2 to order 1 (checks and consumes stock).
# - python -m flask orders set-status 1 paid
#   Move an order along its lifecycle.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import StoreError
from .services import inventory_service, order_service, reporting_service, seed_service


def _fail(exc: StoreError):
    message = f"FAIL {exc}"
    if exc.details:
        message += f" {exc.details}"
    raise click.ClickException(message)


@click.group('store')
def store_group():
    """Database bootstrap and inspection commands."""


@store_group.command('init-db')
@with_appcontext
def init_db():
    """Create any missing tables."""
    db.create_all()
    click.echo("PASS Tables created.")


@store_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask store seed-sample' for demo data.")


@store_group.command('seed-sample')
@click.option('--password', default=None, help='Password for seeded users (defaults to SAMPLE_DATA_PASSWORD)')
@with_appcontext
def seed_sample(password):
    """Load demo data (idempotent)."""
    try:
        created = seed_service.seed_sample_data(password=password)
    except StoreError as exc:
        _fail(exc)
    for kind, count in created.items():
        click.echo(f"PASS {kind}: {count} created")


@store_group.command('stock')
@click.option('--low', is_flag=True, help='Only products at or below their reorder level')
@with_appcontext
def stock(low):
    """Product stock status."""
    rows = reporting_service.low_stock() if low else reporting_service.product_stock()
    if not rows:
        click.echo("No products found.")
        return

    click.echo(f"\n{'ID':<5} {'SKU':<20} {'Name':<30} {'Qty':>6} {'Reorder':>8}")
    click.echo("=" * 73)
    for row in rows:
        reorder = row["reorder_level"] if row["reorder_level"] is not None else "-"
        click.echo(f"{row['product_id']:<5} {row['sku']:<20} {row['name']:<30} {row['qty']:>6} {reorder:>8}")
    click.echo("")


@click.group('orders')
def orders_group():
    """Order creation and inspection commands."""


@orders_group.command('create-half-upfront')
@click.argument('user_id', type=int)
@click.argument('shipping_address_id', type=int)
@click.argument('billing_address_id', type=int)
@click.argument('subtotal')
@click.argument('shipping_fee')
@click.argument('tax')
@click.argument('discount')
@with_appcontext
def create_half_upfront(user_id, shipping_address_id, billing_address_id, subtotal, shipping_fee, tax, discount):
    """Create a pending order and its half-upfront payment."""
    try:
        order_id = order_service.create_order_half_upfront(
            user_id=user_id,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            tax=tax,
            discount=discount,
        )
    except StoreError as exc:
        _fail(exc)
    except ValueError as exc:
        # Unparseable money argument
        raise click.ClickException(f"FAIL {exc}")
    click.echo(order_id)


@orders_group.command('add-item')
@click.argument('order_id', type=int)
@click.argument('product_id', type=int)
@click.argument('quantity', type=int)
@with_appcontext
def add_item(order_id, product_id, quantity):
    """Add an order line, consuming stock."""
    try:
        item = inventory_service.add_order_item(order_id=order_id, product_id=product_id, quantity=quantity)
    except StoreError as exc:
        _fail(exc)
    click.echo(f"PASS Order line {item.id}: {item.quantity} x product {item.product_id} = {item.line_total}")


@orders_group.command('set-status')
@click.argument('order_id', type=int)
@click.argument('status')
@with_appcontext
def set_status(order_id, status):
    """Move an order to a new status."""
    try:
        order = order_service.transition_order_status(order_id, status)
    except StoreError as exc:
        _fail(exc)
    click.echo(f"PASS Order {order.id} is now {order.order_status}")


@orders_group.command('summary')
@click.option('--user-id', type=int, help='Only orders for this user')
@with_appcontext
def summary(user_id):
    """Order summary."""
    rows = reporting_service.order_summary(user_id=user_id)
    if not rows:
        click.echo("No orders found.")
        return

    click.echo(f"\n{'Order':<7} {'Customer':<30} {'Total':>12} {'Status':<12} {'Created':<20}")
    click.echo("=" * 85)
    for row in rows:
        click.echo(
            f"{row['order_id']:<7} {row['customer_name']:<30} {row['total']:>12} "
            f"{row['order_status']:<12} {row['created_at'] or '':<20}"
        )
    click.echo("")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(orders_group)
