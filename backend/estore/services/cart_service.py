# Overview: Service-layer operations for carts and wishlists.

from ..extensions import db
from ..models import Cart, CartItem, Wishlist, WishlistItem
from ..errors import NotFound
from .concurrency import begin_write, run_atomically
from .inventory_service import require_positive_quantity


def get_or_create_cart(user_id: int) -> Cart:
    """Return the user's single active cart, creating it on first use."""
    def _op():
        cart = db.session.query(Cart).filter_by(user_id=user_id).first()
        if cart is None:
            cart = Cart(user_id=user_id)
            db.session.add(cart)
            db.session.flush()
        return cart

    return run_atomically(_op)


def add_to_cart(user_id: int, product_id: int, quantity: int = 1) -> CartItem:
    """Add quantity of a product; an existing line for the product is topped up."""
    require_positive_quantity(quantity)

    cart = get_or_create_cart(user_id)

    def _op():
        begin_write()
        item = db.session.query(CartItem).filter_by(cart_id=cart.id, product_id=product_id).first()
        if item:
            item.quantity = item.quantity + quantity
        else:
            item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity)
            db.session.add(item)
        db.session.flush()
        return item

    return run_atomically(_op)


def remove_from_cart(user_id: int, product_id: int) -> None:
    def _op():
        cart = db.session.query(Cart).filter_by(user_id=user_id).first()
        if cart is None:
            raise NotFound("Cart not found", details={"user_id": user_id})
        db.session.query(CartItem).filter_by(cart_id=cart.id, product_id=product_id).delete()

    run_atomically(_op)


def create_wishlist(user_id: int, name: str = "My wishlist") -> Wishlist:
    def _op():
        wishlist = Wishlist(user_id=user_id, name=name)
        db.session.add(wishlist)
        db.session.flush()
        return wishlist

    return run_atomically(_op)


def add_to_wishlist(wishlist_id: int, product_id: int) -> WishlistItem:
    """Adding a product twice to the same wishlist raises ConstraintViolation."""
    def _op():
        item = WishlistItem(wishlist_id=wishlist_id, product_id=product_id)
        db.session.add(item)
        db.session.flush()
        return item

    return run_atomically(_op)
