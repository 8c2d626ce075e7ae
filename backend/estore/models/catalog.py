from __future__ import annotations

from ..extensions import db
from estore.money import money_str
from estore.time_utils import to_utc_z


COUPON_DISCOUNT_TYPES = ("percentage", "fixed")


class Category(db.Model):
    """
    Hierarchical product category.

    The tree is stored as parent_id back-references only. Dropping a parent
    detaches its children (ON DELETE SET NULL) rather than deleting them.
    Cycles are rejected by catalog_service.set_category_parent.
    """
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "name": self.name,
            "description": self.description,
        }


class Product(db.Model):
    """
    Catalog item.

    price is the list price; order lines snapshot it into unit_price so later
    price changes never rewrite history. Products are retired with
    active=False; hard deletes are refused while carts or orders reference
    them.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        db.Index("idx_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(100), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    weight_kg = db.Column(db.Numeric(8, 3), nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    categories = db.relationship("Category", secondary="product_categories", lazy=True, viewonly=True)
    images = db.relationship(
        "ProductImage",
        order_by="ProductImage.display_order",
        passive_deletes=True,
        lazy=True,
    )
    inventory = db.relationship("Inventory", uselist=False, back_populates="product", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "price": money_str(self.price),
            "weight_kg": str(self.weight_kg) if self.weight_kg is not None else None,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductCategory(db.Model):
    __tablename__ = "product_categories"

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True)


class ProductImage(db.Model):
    __tablename__ = "product_images"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = db.Column(db.String(1000), nullable=False)
    alt_text = db.Column(db.String(255), nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "url": self.url,
            "alt_text": self.alt_text,
            "display_order": self.display_order,
            "created_at": to_utc_z(self.created_at),
        }


class Inventory(db.Model):
    """
    Stock counter, exactly one row per product.

    INVARIANT: quantity >= 0. The CHECK constraint is the last line of
    defence; inventory_service.add_order_item performs the admission check
    and decrement under a row lock so the constraint is never the thing that
    trips.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_nonneg"),
        db.Index("idx_inventory_product", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    quantity = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)
    last_restocked = db.Column(db.DateTime(timezone=True), nullable=True)

    product = db.relationship("Product", back_populates="inventory")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "reorder_level": self.reorder_level,
            "last_restocked": to_utc_z(self.last_restocked),
        }


class Coupon(db.Model):
    __tablename__ = "coupons"
    __table_args__ = (
        db.CheckConstraint("discount_amount >= 0", name="ck_coupons_amount_nonneg"),
        db.CheckConstraint(
            "discount_type IN ('percentage', 'fixed')",
            name="ck_coupons_discount_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)
    discount_type = db.Column(db.String(16), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False)
    max_uses = db.Column(db.Integer, nullable=True)  # NULL = unlimited
    used_count = db.Column(db.Integer, nullable=False, default=0)
    valid_from = db.Column(db.Date, nullable=True)
    valid_until = db.Column(db.Date, nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_amount": money_str(self.discount_amount),
            "max_uses": self.max_uses,
            "used_count": self.used_count,
            "valid_from": self.valid_from.isoformat() if self.valid_from else None,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
            "active": self.active,
        }
