"""
Cart store: one cart per user, one line per product.

Every mutation loads the cart, applies the change, bumps the cart version and
commits before returning the resolved snapshot. Mutations are wrapped in
``conflict_retry`` so two writers racing on the same cart are serialized by
the version check instead of clobbering each other.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict

from sqlalchemy.exc import IntegrityError

from app.errors import InvalidQuantity, ItemNotFound, NotFound
from app.metrics import CART_MUTATIONS
from app.services.money import line_total, to_money
from app.utils.db import transactional
from app.utils.retry import conflict_retry
from models import db
from models.cart import Cart, CartItem
from models.product import Product

logger = logging.getLogger(__name__)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_positive_quantity(quantity):
    if not _is_int(quantity) or quantity < 1:
        raise InvalidQuantity()


def _resolve_product(product_id) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def _touch(cart: Cart):
    # dirties the cart row so the version check runs even when only lines changed
    cart.updated_at = datetime.utcnow()


def get_or_create_cart(user_id) -> Cart:
    cart = Cart.query.filter_by(user_id=user_id).first()
    if cart is not None:
        return cart
    cart = Cart(user_id=user_id)
    db.session.add(cart)
    try:
        db.session.commit()
        logger.info("Created cart for user %s", user_id)
    except IntegrityError:
        db.session.rollback()
        # only a lost creation race is recoverable
        cart = Cart.query.filter_by(user_id=user_id).first()
        if cart is None:
            raise
        logger.info("Cart for user %s was created concurrently", user_id)
    return cart


def serialize_cart(cart: Cart) -> Dict:
    items = []
    subtotal = Decimal("0.00")
    for ci in cart.items:
        line = line_total(ci.product.price, ci.quantity)
        subtotal += line
        items.append({
            "product_id": ci.product_id,
            "product": ci.product.to_dict(),
            "quantity": ci.quantity,
            "subtotal": float(line),
        })
    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "version": cart.version,
        "items": items,
        "item_count": sum(ci.quantity for ci in cart.items),
        "subtotal": float(to_money(subtotal)),
        "updated_at": cart.updated_at.isoformat() if cart.updated_at else None,
    }


def get_cart(user_id) -> Dict:
    return serialize_cart(get_or_create_cart(user_id))


@conflict_retry
def add_item(user_id, product_id, quantity) -> Dict:
    """Add ``quantity`` of a product; an existing line is incremented, never duplicated."""
    _require_positive_quantity(quantity)
    cart = get_or_create_cart(user_id)
    product = _resolve_product(product_id)

    existing = cart.find_item(product.id)
    if existing is not None:
        existing.quantity += quantity
    else:
        cart.items.append(CartItem(product=product, quantity=quantity))
    _touch(cart)
    with transactional("Failed to add item to cart"):
        pass
    CART_MUTATIONS.labels("add").inc()
    return serialize_cart(cart)


@conflict_retry
def set_quantity(user_id, product_id, quantity) -> Dict:
    """Overwrite a line's quantity; zero or less removes the line.

    Setting a positive quantity on a product that has no line raises
    ``ItemNotFound`` rather than adding it implicitly.
    """
    if not _is_int(quantity):
        raise InvalidQuantity()
    cart = get_or_create_cart(user_id)
    existing = cart.find_item(product_id)
    if existing is None:
        if quantity > 0:
            raise ItemNotFound()
        return serialize_cart(cart)

    if quantity <= 0:
        cart.items.remove(existing)
    else:
        existing.quantity = quantity
    _touch(cart)
    with transactional("Failed to update cart quantity"):
        pass
    CART_MUTATIONS.labels("set_quantity").inc()
    return serialize_cart(cart)


@conflict_retry
def remove_item(user_id, product_id) -> Dict:
    cart = get_or_create_cart(user_id)
    existing = cart.find_item(product_id)
    if existing is None:
        return serialize_cart(cart)
    cart.items.remove(existing)
    _touch(cart)
    with transactional("Failed to remove cart item"):
        pass
    CART_MUTATIONS.labels("remove").inc()
    return serialize_cart(cart)


@conflict_retry
def clear_cart(user_id) -> Dict:
    cart = get_or_create_cart(user_id)
    if not cart.items:
        return serialize_cart(cart)
    cart.items.clear()
    _touch(cart)
    with transactional("Failed to clear cart"):
        pass
    CART_MUTATIONS.labels("clear").inc()
    return serialize_cart(cart)


@conflict_retry
def remove_ordered_lines(user_id, ordered: Dict[int, int]) -> Dict:
    """Take the quantities an order captured out of the cart.

    Lines added or raised after the order snapshot keep the difference; a line
    that drops to zero or below is removed.
    """
    cart = get_or_create_cart(user_id)
    changed = False
    for product_id, quantity in ordered.items():
        existing = cart.find_item(product_id)
        if existing is None:
            continue
        remaining = existing.quantity - quantity
        if remaining <= 0:
            cart.items.remove(existing)
        else:
            existing.quantity = remaining
        changed = True
    if not changed:
        return serialize_cart(cart)
    _touch(cart)
    with transactional("Failed to remove ordered lines from cart"):
        pass
    CART_MUTATIONS.labels("checkout").inc()
    return serialize_cart(cart)
