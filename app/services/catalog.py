import logging
from typing import Dict, List, Optional

from app.auth.permissions import Principal
from app.errors import Forbidden, NotFound
from app.services.money import to_money
from app.utils.db import transactional
from models import db
from models.cart import CartItem
from models.product import Product

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {"name", "price", "stock"}


def list_products(category: Optional[str] = None) -> List[Product]:
    query = Product.query
    if category:
        query = query.filter_by(category=category)
    return query.order_by(Product.id.asc()).all()


def get_product(product_id) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def _owned_product(principal: Principal, product_id) -> Product:
    product = get_product(product_id)
    if not principal.is_admin and product.seller_id != principal.user_id:
        raise Forbidden("Not authorized to modify this product")
    return product


def create_product(principal: Principal, data: Dict) -> Product:
    product = Product(
        seller_id=principal.user_id,
        name=data["name"],
        description=data.get("description"),
        price=to_money(data["price"]),
        stock=data.get("stock", 0),
        category=data.get("category"),
        image_url=data.get("image_url"),
        images=data.get("images") or [],
    )
    with transactional("Failed to create product"):
        db.session.add(product)
    logger.info("Product %s created by %s", product.id, principal.user_id)
    return product


def update_product(principal: Principal, product_id, changes: Dict) -> Product:
    product = _owned_product(principal, product_id)
    for field, value in changes.items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        if field == "price":
            value = to_money(value)
        setattr(product, field, value)
    with transactional("Failed to update product"):
        pass
    logger.info("Product %s updated by %s: %s", product.id, principal.user_id, sorted(changes))
    return product


def delete_product(principal: Principal, product_id) -> None:
    product = _owned_product(principal, product_id)
    with transactional("Failed to delete product"):
        # carts cannot hold a line for a product that no longer exists
        CartItem.query.filter_by(product_id=product.id).delete()
        db.session.delete(product)
    logger.info("Product %s deleted by %s", product_id, principal.user_id)
