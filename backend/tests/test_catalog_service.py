from datetime import date, timedelta
from decimal import Decimal

import pytest

from estore.errors import ConstraintViolation, NotFound, ReferenceViolation
from estore.models import Category, Inventory, ProductCategory
from estore.services import catalog_service, inventory_service


def test_create_product_opens_inventory_and_links_categories(db_session):
    clothing = catalog_service.create_category("Clothing")
    product = catalog_service.create_product(
        sku=" SKU-HOODIE-001 ",
        name="Hoodie",
        price="1999.5",
        weight_kg="0.75",
        quantity=12,
        reorder_level=3,
        category_ids=[clothing.id],
    )

    assert product.sku == "SKU-HOODIE-001"
    assert product.price == Decimal("1999.50")
    assert inventory_service.get_stock(product.id) == 12
    assert db_session.query(ProductCategory).filter_by(product_id=product.id, category_id=clothing.id).count() == 1


def test_duplicate_sku_rejected(db_session, tshirt):
    with pytest.raises(ConstraintViolation):
        catalog_service.create_product(sku="SKU-TSHIRT-001", name="Other", price="1.00")


def test_negative_price_rejected(db_session):
    with pytest.raises(ConstraintViolation):
        catalog_service.create_product(sku="SKU-NEG", name="Negative", price="-0.01")


def test_unknown_category_link_rolls_back_product(db_session):
    with pytest.raises(ReferenceViolation):
        catalog_service.create_product(sku="SKU-ORPHAN", name="Orphan", price="5.00", category_ids=[777])

    assert db_session.query(Inventory).count() == 0


def test_product_images_are_ordered(db_session, tshirt):
    catalog_service.add_product_image(tshirt.id, "https://cdn.example.com/b.jpg", display_order=2)
    catalog_service.add_product_image(tshirt.id, "https://cdn.example.com/a.jpg", display_order=1)

    urls = [img.url for img in catalog_service.get_product(tshirt.id).images]
    assert urls == ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]


def test_deactivate_product(db_session, tshirt):
    assert catalog_service.deactivate_product(tshirt.id).active is False


def test_deleting_category_orphans_children(db_session):
    parent = catalog_service.create_category("Electronics")
    child = catalog_service.create_category("Phones", parent_id=parent.id)
    child_id = child.id

    db_session.delete(db_session.get(Category, parent.id))
    db_session.commit()

    assert db_session.get(Category, child_id).parent_id is None


def test_category_path_is_root_first(db_session):
    root = catalog_service.create_category("Electronics")
    mid = catalog_service.create_category("Phones", parent_id=root.id)
    leaf = catalog_service.create_category("Android", parent_id=mid.id)

    assert [c.name for c in catalog_service.category_path(leaf.id)] == ["Electronics", "Phones", "Android"]


def test_category_cycle_rejected(db_session):
    root = catalog_service.create_category("Electronics")
    mid = catalog_service.create_category("Phones", parent_id=root.id)
    leaf = catalog_service.create_category("Android", parent_id=mid.id)

    with pytest.raises(ConstraintViolation):
        catalog_service.set_category_parent(root.id, leaf.id)
    with pytest.raises(ConstraintViolation):
        catalog_service.set_category_parent(mid.id, mid.id)

    assert db_session.get(Category, root.id).parent_id is None


def test_set_category_parent_to_unknown(db_session):
    category = catalog_service.create_category("Home")
    with pytest.raises(NotFound):
        catalog_service.set_category_parent(category.id, 4242)


def test_one_review_per_user_and_product(db_session, customer, tshirt):
    catalog_service.add_review(product_id=tshirt.id, user_id=customer.id, rating=4, title="Nice")

    with pytest.raises(ConstraintViolation):
        catalog_service.add_review(product_id=tshirt.id, user_id=customer.id, rating=2)


@pytest.mark.parametrize("rating", [0, 6, 3.5])
def test_rating_out_of_range(db_session, customer, tshirt, rating):
    with pytest.raises(ConstraintViolation):
        catalog_service.add_review(product_id=tshirt.id, user_id=customer.id, rating=rating)


def test_percentage_coupon_redemption(db_session):
    catalog_service.create_coupon(code="save10", discount_type="percentage", discount_amount="10")

    assert catalog_service.redeem_coupon("SAVE10", "1498.00") == Decimal("149.80")


def test_fixed_coupon_capped_at_subtotal(db_session):
    catalog_service.create_coupon(code="FLAT500", discount_type="fixed", discount_amount="500")

    assert catalog_service.redeem_coupon("flat500", "120.00") == Decimal("120.00")


def test_coupon_max_uses(db_session):
    coupon = catalog_service.create_coupon(code="ONCE", discount_type="fixed", discount_amount="50", max_uses=1)
    catalog_service.redeem_coupon("ONCE", "100")

    with pytest.raises(ConstraintViolation):
        catalog_service.redeem_coupon("ONCE", "100")
    assert db_session.get(type(coupon), coupon.id).used_count == 1


def test_coupon_validity_window(db_session):
    today = date(2026, 3, 1)
    catalog_service.create_coupon(
        code="MARCH",
        discount_type="fixed",
        discount_amount="20",
        valid_from=today,
        valid_until=today + timedelta(days=30),
    )

    with pytest.raises(ConstraintViolation):
        catalog_service.redeem_coupon("MARCH", "100", on_date=today - timedelta(days=1))
    with pytest.raises(ConstraintViolation):
        catalog_service.redeem_coupon("MARCH", "100", on_date=today + timedelta(days=31))
    assert catalog_service.redeem_coupon("MARCH", "100", on_date=today) == Decimal("20.00")


def test_coupon_definition_checks(db_session):
    with pytest.raises(ConstraintViolation):
        catalog_service.create_coupon(code="BIG", discount_type="percentage", discount_amount="150")
    with pytest.raises(ConstraintViolation):
        catalog_service.create_coupon(code="ODD", discount_type="bogo", discount_amount="1")


def test_unknown_coupon(db_session):
    with pytest.raises(NotFound):
        catalog_service.redeem_coupon("NOPE", "10")
