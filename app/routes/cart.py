from flask import Blueprint, g, request

from app.auth.permissions import CART
from app.schemas.cart import AddCartItemRequest, SetQuantityRequest
from app.services import cart_service
from app.utils import auth_required, ok, permission_required, validate_schema
from app.version import API_PREFIX

cart_bp = Blueprint("cart", __name__, url_prefix=f"{API_PREFIX}/cart")


@cart_bp.before_request
@auth_required
@permission_required(CART)
def _enforce_cart_access():
    """Ensure the requester is authenticated and may hold a cart."""
    return None


@cart_bp.route("", methods=["GET"])
def view_cart():
    return ok({"cart": cart_service.get_cart(g.principal.user_id)})


@cart_bp.route("/add", methods=["POST"])
@validate_schema(AddCartItemRequest)
def add_to_cart():
    data: AddCartItemRequest = request.validated_data
    cart = cart_service.add_item(g.principal.user_id, data.product_id, data.quantity)
    return ok({"cart": cart}, message="Item added to cart")


@cart_bp.route("/update/<int:product_id>", methods=["PUT"])
@validate_schema(SetQuantityRequest)
def update_cart_quantity(product_id):
    data: SetQuantityRequest = request.validated_data
    cart = cart_service.set_quantity(g.principal.user_id, product_id, data.quantity)
    return ok({"cart": cart}, message="Cart quantity updated")


@cart_bp.route("/remove/<int:product_id>", methods=["DELETE"])
def remove_item(product_id):
    cart = cart_service.remove_item(g.principal.user_id, product_id)
    return ok({"cart": cart}, message="Item removed")


@cart_bp.route("/clear", methods=["DELETE"])
def clear_cart():
    cart = cart_service.clear_cart(g.principal.user_id)
    return ok({"cart": cart}, message="Cart cleared")
