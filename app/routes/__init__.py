from .cart import cart_bp
from .orders import orders_bp
from .products import products_bp


__all__ = [
    'cart_bp',
    'orders_bp',
    'products_bp',
]
