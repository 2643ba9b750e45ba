from flask import Blueprint, g, request

from app.auth.permissions import PRODUCTS_WRITE
from app.schemas.products import ProductRequest, ProductUpdateRequest
from app.services import catalog
from app.utils import auth_required, ok, permission_required, validate_schema
from app.version import API_PREFIX

products_bp = Blueprint("products", __name__, url_prefix=f"{API_PREFIX}/products")


@products_bp.route("", methods=["GET"])
def list_products():
    products = catalog.list_products(category=request.args.get("category"))
    return ok({"products": [p.to_dict() for p in products]})


@products_bp.route("/<int:product_id>", methods=["GET"])
def get_product(product_id):
    return ok({"product": catalog.get_product(product_id).to_dict()})


@products_bp.route("", methods=["POST"])
@auth_required
@permission_required(PRODUCTS_WRITE)
@validate_schema(ProductRequest)
def create_product():
    data: ProductRequest = request.validated_data
    product = catalog.create_product(g.principal, data.model_dump())
    return ok({"product": product.to_dict()}, message="Product created", status=201)


@products_bp.route("/<int:product_id>", methods=["PUT"])
@auth_required
@permission_required(PRODUCTS_WRITE)
@validate_schema(ProductUpdateRequest)
def update_product(product_id):
    data: ProductUpdateRequest = request.validated_data
    product = catalog.update_product(g.principal, product_id, data.model_dump(exclude_unset=True))
    return ok({"product": product.to_dict()}, message="Product updated")


@products_bp.route("/<int:product_id>", methods=["DELETE"])
@auth_required
@permission_required(PRODUCTS_WRITE)
def delete_product(product_id):
    catalog.delete_product(g.principal, product_id)
    return ok(message="Product deleted")
