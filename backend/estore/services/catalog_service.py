# Overview: Service-layer operations for the catalog; categories, products, images, reviews and coupons.

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Category, Product, ProductCategory, ProductImage, Inventory, Coupon, Review
from ..models.catalog import COUPON_DISCOUNT_TYPES
from ..errors import ConstraintViolation, NotFound
from ..money import round_money, to_decimal
from .concurrency import begin_write, lock_for_update, run_atomically


# =============================================================================
# CATEGORIES
# =============================================================================

def create_category(name: str, parent_id: int | None = None, description: str | None = None) -> Category:
    def _op():
        category = Category(name=name.strip(), parent_id=parent_id, description=description)
        db.session.add(category)
        db.session.flush()
        return category

    return run_atomically(_op)


def _ancestor_ids(category_id: int | None) -> list[int]:
    """Walk parent_id links upward, starting at category_id itself."""
    seen: list[int] = []
    current = category_id
    while current is not None and current not in seen:
        seen.append(current)
        current = db.session.query(Category.parent_id).filter_by(id=current).scalar()
    return seen


def set_category_parent(category_id: int, parent_id: int | None) -> Category:
    """
    Re-parent a category.

    The tree is only ever stored as parent ids, so a cycle would make
    category_path() loop. Moving a category under itself or under one of its
    descendants raises ConstraintViolation.
    """
    def _op():
        begin_write()
        category = db.session.get(Category, category_id)
        if category is None:
            raise NotFound("Category not found", details={"category_id": category_id})

        if parent_id is not None:
            if db.session.get(Category, parent_id) is None:
                raise NotFound("Parent category not found", details={"parent_id": parent_id})
            if category_id in _ancestor_ids(parent_id):
                raise ConstraintViolation(
                    "Category cannot be nested under itself or its descendants",
                    details={"category_id": category_id, "parent_id": parent_id},
                )

        category.parent_id = parent_id
        return category

    return run_atomically(_op)


def category_path(category_id: int) -> list[Category]:
    """Root-first list of categories from the top of the tree down to category_id."""
    ids = _ancestor_ids(category_id)
    if not ids:
        return []
    by_id = {c.id: c for c in db.session.query(Category).filter(Category.id.in_(ids)).all()}
    return [by_id[i] for i in reversed(ids) if i in by_id]


# =============================================================================
# PRODUCTS
# =============================================================================

def create_product(
    *,
    sku: str,
    name: str,
    price,
    description: str | None = None,
    weight_kg=None,
    quantity: int = 0,
    reorder_level: int = 0,
    category_ids: tuple[int, ...] | list[int] = (),
) -> Product:
    """
    Create a product together with its single inventory record.

    Raises ConstraintViolation for a duplicate SKU or a negative price.
    """
    price = round_money(price)
    if price < 0:
        raise ConstraintViolation("price must not be negative", details={"price": str(price)})
    if quantity < 0:
        raise ConstraintViolation("quantity must not be negative", details={"quantity": quantity})

    def _op():
        product = Product(
            sku=sku.strip(),
            name=name.strip(),
            description=description,
            price=price,
            weight_kg=to_decimal(weight_kg) if weight_kg is not None else None,
            active=True,
        )
        db.session.add(product)
        db.session.flush()

        db.session.add(Inventory(product_id=product.id, quantity=quantity, reorder_level=reorder_level))
        for category_id in category_ids:
            db.session.add(ProductCategory(product_id=product.id, category_id=category_id))
        db.session.flush()
        return product

    product = run_atomically(_op)
    current_app.logger.info("Product %s (%s) created with %s on hand", product.id, sku, quantity)
    return product


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    return product


def deactivate_product(product_id: int) -> Product:
    def _op():
        product = get_product(product_id)
        product.active = False
        return product

    return run_atomically(_op)


def add_product_image(
    product_id: int,
    url: str,
    alt_text: str | None = None,
    display_order: int = 0,
) -> ProductImage:
    def _op():
        image = ProductImage(product_id=product_id, url=url, alt_text=alt_text, display_order=display_order)
        db.session.add(image)
        db.session.flush()
        return image

    return run_atomically(_op)


# =============================================================================
# REVIEWS
# =============================================================================

def add_review(
    *,
    product_id: int,
    user_id: int,
    rating: int,
    title: str | None = None,
    body: str | None = None,
) -> Review:
    """One review per (product, user); a second one raises ConstraintViolation."""
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ConstraintViolation("rating must be an integer from 1 to 5", details={"rating": rating})

    def _op():
        review = Review(product_id=product_id, user_id=user_id, rating=rating, title=title, body=body)
        db.session.add(review)
        db.session.flush()
        return review

    return run_atomically(_op)


# =============================================================================
# COUPONS
# =============================================================================

def create_coupon(
    *,
    code: str,
    discount_type: str,
    discount_amount,
    description: str | None = None,
    max_uses: int | None = None,
    valid_from: date | None = None,
    valid_until: date | None = None,
) -> Coupon:
    if discount_type not in COUPON_DISCOUNT_TYPES:
        raise ConstraintViolation(
            f"discount_type must be one of {list(COUPON_DISCOUNT_TYPES)}",
            details={"discount_type": discount_type},
        )
    amount = round_money(discount_amount)
    if amount < 0:
        raise ConstraintViolation("discount_amount must not be negative")
    if discount_type == "percentage" and amount > 100:
        raise ConstraintViolation("percentage discount cannot exceed 100")

    def _op():
        coupon = Coupon(
            code=code.strip().upper(),
            description=description,
            discount_type=discount_type,
            discount_amount=amount,
            max_uses=max_uses,
            used_count=0,
            valid_from=valid_from,
            valid_until=valid_until,
            active=True,
        )
        db.session.add(coupon)
        db.session.flush()
        return coupon

    return run_atomically(_op)


def coupon_discount(coupon: Coupon, subtotal) -> Decimal:
    """Discount a coupon grants on subtotal; never more than the subtotal itself."""
    subtotal = round_money(subtotal)
    if coupon.discount_type == "percentage":
        discount = subtotal * Decimal(coupon.discount_amount) / Decimal(100)
    else:
        discount = Decimal(coupon.discount_amount)
    return round_money(min(discount, subtotal))


def redeem_coupon(code: str, subtotal, on_date: date | None = None) -> Decimal:
    """
    Consume one use of a coupon and return the discount it grants.

    The coupon row is locked so concurrent redemptions cannot exceed max_uses.
    """
    on_date = on_date or date.today()

    def _op():
        begin_write()
        coupon = lock_for_update(
            db.session.query(Coupon).filter_by(code=code.strip().upper())
        ).first()
        if coupon is None:
            raise NotFound("Coupon not found", details={"code": code})
        if not coupon.active:
            raise ConstraintViolation("Coupon is not active", details={"code": coupon.code})
        if coupon.valid_from and on_date < coupon.valid_from:
            raise ConstraintViolation("Coupon is not valid yet", details={"code": coupon.code})
        if coupon.valid_until and on_date > coupon.valid_until:
            raise ConstraintViolation("Coupon has expired", details={"code": coupon.code})
        if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
            raise ConstraintViolation("Coupon has no uses left", details={"code": coupon.code})

        coupon.used_count = Coupon.used_count + 1
        return coupon_discount(coupon, subtotal)

    return run_atomically(_op)
