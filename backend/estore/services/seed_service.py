# Overview: Idempotent sample data for development databases.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import User, Role, Category, Product, Address
from . import account_service, catalog_service


SAMPLE_ROLES = ["admin", "support", "warehouse"]

# (email, first_name, last_name, phone, is_employee, roles)
SAMPLE_USERS = [
    ("alice@example.com", "Alice", "Mwangi", "+254700111222", False, []),
    ("bob@example.com", "Bob", "Otieno", "+254700333444", True, ["admin"]),
    ("carol@example.com", "Carol", "Kamau", None, False, []),
    ("dave@example.com", "Dave", "Njoroge", "+254700555666", False, []),
]

SAMPLE_CATEGORIES = [
    ("Clothing", "All clothing items"),
    ("Electronics", "Gadgets and devices"),
    ("Home", "Home and living"),
]

# (sku, name, description, price, weight_kg, category, quantity, reorder_level)
SAMPLE_PRODUCTS = [
    ("SKU-TSHIRT-001", "Basic T-Shirt", "Cotton t-shirt", "499.00", "0.2", "Clothing", 100, 10),
    ("SKU-MUG-001", "Coffee Mug", "Ceramic mug", "299.00", "0.4", "Home", 40, 5),
    ("SKU-PHONE-001", "Budget Phone", "Android smartphone", "12999.00", "0.18", "Electronics", 15, 2),
]

# owner email -> (label, line1, city, region, postal_code, country)
SAMPLE_ADDRESSES = {
    "alice@example.com": ("home", "1 Kibera Rd", "Nairobi", "Nairobi County", "00100", "Kenya"),
    "carol@example.com": ("home", "22 Riverside", "Mombasa", "Coast", "80100", "Kenya"),
}


def seed_sample_data(password: str | None = None) -> dict:
    """
    Load the demo catalog, customers and stock. Safe to call repeatedly;
    rows that already exist (matched by natural key) are left alone.

    Returns a dict of how many rows of each kind were created.
    """
    password = password or current_app.config["SAMPLE_DATA_PASSWORD"]
    created = {"roles": 0, "users": 0, "categories": 0, "products": 0, "addresses": 0}

    for role_name in SAMPLE_ROLES:
        if db.session.query(Role).filter_by(role_name=role_name).first() is None:
            account_service.create_role(role_name)
            created["roles"] += 1

    users_by_email: dict[str, int] = {}
    for email, first_name, last_name, phone, is_employee, roles in SAMPLE_USERS:
        user = db.session.query(User).filter_by(email=email).first()
        if user is None:
            user = account_service.create_user(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                is_employee=is_employee,
            )
            created["users"] += 1
        users_by_email[email] = user.id
        for role_name in roles:
            account_service.assign_role(user.id, role_name)

    categories_by_name: dict[str, int] = {}
    for name, description in SAMPLE_CATEGORIES:
        category = db.session.query(Category).filter_by(name=name).first()
        if category is None:
            category = catalog_service.create_category(name, description=description)
            created["categories"] += 1
        categories_by_name[name] = category.id

    for sku, name, description, price, weight, category, quantity, reorder_level in SAMPLE_PRODUCTS:
        if db.session.query(Product).filter_by(sku=sku).first() is not None:
            continue
        catalog_service.create_product(
            sku=sku,
            name=name,
            description=description,
            price=price,
            weight_kg=weight,
            quantity=quantity,
            reorder_level=reorder_level,
            category_ids=[categories_by_name[category]],
        )
        created["products"] += 1

    for email, (label, line1, city, region, postal_code, country) in SAMPLE_ADDRESSES.items():
        user_id = users_by_email[email]
        if db.session.query(Address).filter_by(user_id=user_id, line1=line1).first() is not None:
            continue
        account_service.add_address(
            user_id=user_id,
            label=label,
            line1=line1,
            city=city,
            region=region,
            postal_code=postal_code,
            country=country,
            is_default=True,
        )
        created["addresses"] += 1

    current_app.logger.info("Sample data loaded: %s", created)
    return created
