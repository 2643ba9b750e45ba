from flask import Blueprint, current_app, g, request
from flask_limiter.util import get_remote_address

from app.auth.permissions import ORDERS_ALL, ORDERS_MANAGE, ORDERS_OWN
from app.schemas.orders import CreateOrderRequest, UpdateStatusRequest, VerifyPaymentRequest
from app.services import order_service, payment_service
from app.tasks.orders import notify_order_event_task
from app.utils import auth_required, ok, permission_required, validate_schema
from app.version import API_PREFIX
from extensions import limiter

orders_bp = Blueprint("orders", __name__, url_prefix=f"{API_PREFIX}/orders")


@orders_bp.before_request
@auth_required
@permission_required(ORDERS_OWN)
def _enforce_order_access():
    """Ensure the requester is authenticated and may place orders."""
    return None


def _notify(order_id, event):
    if current_app.config.get("TESTING"):
        notify_order_event_task(order_id, event)
    else:
        notify_order_event_task.delay(order_id, event)


@orders_bp.route("", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["ORDER_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many orders from this IP",
)
@validate_schema(CreateOrderRequest)
def create_order():
    data: CreateOrderRequest = request.validated_data
    order, intent = order_service.create_order_from_cart(
        g.principal.user_id,
        data.shipping_address.model_dump() if data.shipping_address else None,
        data.payment_method,
    )
    _notify(order.id, "placed")
    return ok(
        {
            "order": order.to_dict(),
            "gateway_order": {
                "id": intent["id"],
                "amount": intent["amount"],
                "currency": intent["currency"],
            },
        },
        message="Order placed successfully",
        status=201,
    )


@orders_bp.route("", methods=["GET"])
def list_my_orders():
    orders = order_service.list_orders_for_user(g.principal.user_id)
    return ok({"orders": [o.to_dict() for o in orders]})


@orders_bp.route("/all", methods=["GET"])
@permission_required(ORDERS_ALL)
def list_all_orders():
    orders = order_service.list_all_orders()
    return ok({"orders": [o.to_dict() for o in orders]})


@orders_bp.route("/<int:order_id>", methods=["GET"])
def get_order(order_id):
    order = order_service.get_order(g.principal.user_id, order_id)
    return ok({"order": order.to_dict()})


@orders_bp.route("/<int:order_id>/history", methods=["GET"])
def get_order_history(order_id):
    order = order_service.get_order(g.principal.user_id, order_id)
    return ok({"history": [entry.to_dict() for entry in order.status_log]})


@orders_bp.route("/<int:order_id>/verify-payment", methods=["POST"])
@validate_schema(VerifyPaymentRequest)
def verify_payment(order_id):
    data: VerifyPaymentRequest = request.validated_data
    order = payment_service.verify_payment(
        g.principal.user_id, order_id, data.payment_id, data.signature
    )
    _notify(order.id, "paid")
    return ok({"order": order.to_dict()}, message="Payment verified successfully")


@orders_bp.route("/<int:order_id>/cancel", methods=["POST"])
def cancel_order(order_id):
    order = order_service.cancel_order(g.principal.user_id, order_id)
    _notify(order.id, "cancelled")
    return ok({"order": order.to_dict()}, message="Order cancelled")


@orders_bp.route("/<int:order_id>/status", methods=["PUT"])
@permission_required(ORDERS_MANAGE)
@validate_schema(UpdateStatusRequest)
def update_order_status(order_id):
    data: UpdateStatusRequest = request.validated_data
    order = order_service.update_status_by_staff(g.principal, order_id, data.status)
    _notify(order.id, order.status)
    return ok({"order": order.to_dict()}, message="Order status updated")
