from __future__ import annotations

from ..extensions import db
from estore.money import money_str
from estore.time_utils import to_utc_z


# Status vocabularies (lifecycle_service holds the transition tables)
ORDER_STATUSES = ("pending", "paid", "processing", "shipped", "delivered", "cancelled", "refunded")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
SHIPMENT_STATUSES = ("label_created", "shipped", "in_transit", "out_for_delivery", "delivered", "exception")
PAYMENT_METHODS = ("mpesa", "card", "bank_transfer", "wallet", "cash_on_delivery")


def _one_of(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Order(db.Model):
    """
    Customer order.

    Monetary fields are a snapshot taken at creation. By convention
    total = subtotal + shipping_fee + tax - discount; order_service computes
    it, the schema does not enforce it.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(_one_of("order_status", ORDER_STATUSES), name="ck_orders_status"),
        db.CheckConstraint("subtotal >= 0", name="ck_orders_subtotal_nonneg"),
        db.CheckConstraint("shipping_fee >= 0", name="ck_orders_shipping_fee_nonneg"),
        db.CheckConstraint("tax >= 0", name="ck_orders_tax_nonneg"),
        db.CheckConstraint("discount >= 0", name="ck_orders_discount_nonneg"),
        db.CheckConstraint("total >= 0", name="ck_orders_total_nonneg"),
        db.Index("idx_orders_user", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    shipping_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)
    billing_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)

    order_status = db.Column(db.String(16), nullable=False, default="pending")

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    shipping_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User")
    items = db.relationship("OrderItem", back_populates="order", passive_deletes=True, lazy=True)
    payments = db.relationship("Payment", back_populates="order", passive_deletes=True, lazy=True)
    shipment = db.relationship("Shipment", uselist=False, back_populates="order", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Order id={self.id} user_id={self.user_id} status={self.order_status!r} total={self.total}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "shipping_address_id": self.shipping_address_id,
            "billing_address_id": self.billing_address_id,
            "order_status": self.order_status,
            "subtotal": money_str(self.subtotal),
            "shipping_fee": money_str(self.shipping_fee),
            "tax": money_str(self.tax),
            "discount": money_str(self.discount),
            "total": money_str(self.total),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """
    Order line.

    Rows are only written through inventory_service.add_order_item, which
    admits the line against stock and decrements inventory in the same
    transaction.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_nonneg"),
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_pos"),
        db.CheckConstraint("line_total >= 0", name="ck_order_items_line_total_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "unit_price": money_str(self.unit_price),
            "quantity": self.quantity,
            "line_total": money_str(self.line_total),
        }


class Payment(db.Model):
    """
    Payment record against an order (one or more per order).

    payment_status moves independently of the order status.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint(_one_of("payment_method", PAYMENT_METHODS), name="ck_payments_method"),
        db.CheckConstraint(_one_of("payment_status", PAYMENT_STATUSES), name="ck_payments_status"),
        db.CheckConstraint("amount >= 0", name="ck_payments_amount_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="KES")
    payment_status = db.Column(db.String(16), nullable=False, default="pending")
    provider_transaction_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "payment_method": self.payment_method,
            "amount": money_str(self.amount),
            "currency": self.currency,
            "payment_status": self.payment_status,
            "provider_transaction_id": self.provider_transaction_id,
            "created_at": to_utc_z(self.created_at),
        }


class Shipment(db.Model):
    """Delivery tracking; at most one per order."""
    __tablename__ = "shipments"
    __table_args__ = (
        db.CheckConstraint(_one_of("status", SHIPMENT_STATUSES), name="ck_shipments_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    carrier = db.Column(db.String(100), nullable=True)
    tracking_number = db.Column(db.String(255), nullable=True, unique=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)
    estimated_delivery = db.Column(db.Date, nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(32), nullable=True, default="label_created")

    order = db.relationship("Order", back_populates="shipment")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "carrier": self.carrier,
            "tracking_number": self.tracking_number,
            "shipped_at": to_utc_z(self.shipped_at),
            "estimated_delivery": self.estimated_delivery.isoformat() if self.estimated_delivery else None,
            "delivered_at": to_utc_z(self.delivered_at),
            "status": self.status,
        }
