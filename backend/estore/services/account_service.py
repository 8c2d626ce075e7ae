# Overview: Service-layer operations for customer/employee accounts, roles and addresses.

"""
Account Service

Passwords are stored as bcrypt hashes. Login and sessions are the
application's concern and are not handled here.

DELETE SEMANTICS (enforced by foreign keys, checked up front here):
- addresses, cart, wishlists, reviews, role assignments: CASCADE
- audit_log.performed_by: SET NULL (history is kept)
- orders: RESTRICT (a customer with orders cannot be deleted)
"""

import bcrypt
from flask import current_app
from sqlalchemy import delete

from ..extensions import db
from ..models import User, Role, UserRole, Address, Order
from ..errors import ConstraintViolation, NotFound, ReferenceViolation
from .audit_service import append_audit_entry
from .concurrency import begin_write, run_atomically


def hash_password(password: str) -> str:
    if not password:
        raise ConstraintViolation("Password must not be empty")
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ConstraintViolation("Invalid email address", details={"email": email})
    return email


def create_user(
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
    is_employee: bool = False,
) -> User:
    """
    Create a customer or employee account.

    Raises ConstraintViolation if the email is already registered.
    """
    email = _normalize_email(email)
    password_hash = hash_password(password)

    def _op():
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone,
            is_employee=is_employee,
        )
        db.session.add(user)
        db.session.flush()
        return user

    return run_atomically(_op)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found", details={"user_id": user_id})
    return user


def add_address(
    *,
    user_id: int,
    line1: str,
    city: str,
    country: str,
    label: str | None = None,
    line2: str | None = None,
    region: str | None = None,
    postal_code: str | None = None,
    latitude=None,
    longitude=None,
    is_default: bool = False,
) -> Address:
    """Add an address; is_default=True clears the flag on the user's other addresses."""
    def _op():
        if is_default:
            db.session.query(Address).filter_by(user_id=user_id, is_default=True).update(
                {"is_default": False}, synchronize_session="fetch"
            )
        address = Address(
            user_id=user_id,
            label=label,
            line1=line1,
            line2=line2,
            city=city,
            region=region,
            postal_code=postal_code,
            country=country,
            latitude=latitude,
            longitude=longitude,
            is_default=is_default,
        )
        db.session.add(address)
        db.session.flush()
        return address

    return run_atomically(_op)


def create_role(role_name: str) -> Role:
    def _op():
        role = Role(role_name=role_name.strip().lower())
        db.session.add(role)
        db.session.flush()
        return role

    return run_atomically(_op)


def assign_role(user_id: int, role_name: str) -> UserRole:
    """Assign a role by name; idempotent."""
    def _op():
        begin_write()
        role = db.session.query(Role).filter_by(role_name=role_name).first()
        if role is None:
            raise NotFound(f"Role '{role_name}' not found", details={"role_name": role_name})

        existing = db.session.query(UserRole).filter_by(user_id=user_id, role_id=role.id).first()
        if existing:
            return existing

        user_role = UserRole(user_id=user_id, role_id=role.id)
        db.session.add(user_role)
        db.session.flush()
        return user_role

    return run_atomically(_op)


def delete_user(user_id: int, *, actor_user_id: int | None = None) -> None:
    """
    Delete a user and everything that cascades from it.

    Raises:
        NotFound: no such user
        ReferenceViolation: the user still has orders
    """
    def _op():
        if db.session.get(User, user_id) is None:
            raise NotFound("User not found", details={"user_id": user_id})

        order_count = db.session.query(Order).filter_by(user_id=user_id).count()
        if order_count:
            raise ReferenceViolation(
                "User has orders and cannot be deleted",
                details={"user_id": user_id, "orders": order_count},
            )

        # Let the database apply the declared ON DELETE actions
        db.session.execute(delete(User).where(User.id == user_id))

        append_audit_entry(
            entity="user",
            entity_id=user_id,
            action="deleted",
            performed_by=actor_user_id if actor_user_id != user_id else None,
        )

    run_atomically(_op)
    current_app.logger.info("User %s deleted", user_id)
