from .accounts import User, Role, UserRole, Address
from .catalog import Category, Product, ProductCategory, ProductImage, Inventory, Coupon
from .shopping import Cart, CartItem, Wishlist, WishlistItem, Review
from .orders import Order, OrderItem, Payment, Shipment
from .audit import AuditLog

__all__ = [
    'User', 'Role', 'UserRole', 'Address',
    'Category', 'Product', 'ProductCategory', 'ProductImage', 'Inventory', 'Coupon',
    'Cart', 'CartItem', 'Wishlist', 'WishlistItem', 'Review',
    'Order', 'OrderItem', 'Payment', 'Shipment',
    'AuditLog',
]
