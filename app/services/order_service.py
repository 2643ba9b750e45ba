"""
Order ledger: checkout from a cart snapshot, lookups, staff status updates.

Checkout is a saga rather than one transaction:

1. persist the order (items, unit prices and total copied from the cart) in
   ``pending_creation`` and commit;
2. request the payment intent from the gateway;
3. record the gateway reference, move to ``pending`` and commit, then take
   the ordered quantities out of the cart.

A gateway failure in step 2 discards the draft and leaves the cart alone. A
crash between steps leaves a ``pending_creation`` draft behind, which
``recover_stalled_orders`` finalizes later.
"""
import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from flask import current_app

from app.auth.permissions import Principal
from app.errors import EmptyCart, Forbidden, NotFound, UpstreamFailure, ValidationError
from app.metrics import CHECKOUTS, GATEWAY_LATENCY
from app.services import cart_service
from app.services.gateway import GatewayError, get_gateway
from app.services.money import line_total, to_minor_units, to_money
from app.services.order_status import transition
from app.utils.db import transactional
from app.utils.retry import conflict_retry
from models import db
from models.cart import Cart
from models.order import Order, OrderItem, PAYMENT_METHODS, PENDING_CREATION

logger = logging.getLogger(__name__)


def _new_receipt() -> str:
    return f"rcpt_{uuid.uuid4().hex[:24]}"


def _visible():
    return Order.query.filter(Order.status != PENDING_CREATION)


def _build_draft(user_id, cart: Cart, shipping_address: Optional[Dict], payment_method: str) -> Order:
    total = Decimal("0.00")
    order = Order(
        user_id=user_id,
        status=PENDING_CREATION,
        currency=current_app.config.get("PAYMENT_CURRENCY", "INR"),
        shipping_address=shipping_address,
        payment_method=payment_method,
        receipt=_new_receipt(),
    )
    for ci in cart.items:
        unit_price = to_money(ci.product.price)
        subtotal = line_total(unit_price, ci.quantity)
        total += subtotal
        order.items.append(
            OrderItem(
                product_id=ci.product_id,
                name=ci.product.name,
                unit_price=unit_price,
                quantity=ci.quantity,
                subtotal=subtotal,
            )
        )
    order.total_amount = to_money(total)
    return order


def _request_intent(order: Order) -> Dict:
    with GATEWAY_LATENCY.time():
        return get_gateway().create_order(
            amount=to_minor_units(order.total_amount),
            currency=order.currency,
            receipt=order.receipt,
        )


def _finalize(order: Order, intent: Dict, actor_id=None):
    order.gateway_order_id = intent["id"]
    transition(order, "pending", actor_id)
    with transactional("Failed to finalize order"):
        pass


def _discard_draft(order: Order):
    with transactional("Failed to discard checkout draft"):
        db.session.delete(order)


def create_order_from_cart(user_id, shipping_address: Optional[Dict], payment_method: str) -> Tuple[Order, Dict]:
    """Turn the caller's cart into a ``pending`` order with a gateway intent.

    Returns the order and the gateway intent (``id``, ``amount`` in minor
    units, ``currency``).
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")

    cart = Cart.query.filter_by(user_id=user_id).first()
    if cart is None or not cart.items:
        CHECKOUTS.labels("empty_cart").inc()
        raise EmptyCart()

    order = _build_draft(user_id, cart, shipping_address, payment_method)
    with transactional("Failed to persist checkout draft"):
        db.session.add(order)
    logger.info("Checkout draft %s created for user %s, total %s", order.id, user_id, order.total_amount)

    try:
        intent = _request_intent(order)
    except GatewayError as e:
        logger.warning("Gateway rejected checkout draft %s: %s", order.id, e)
        _discard_draft(order)
        CHECKOUTS.labels("upstream_failure").inc()
        raise UpstreamFailure() from e

    _finalize(order, intent, actor_id=user_id)
    CHECKOUTS.labels("created").inc()
    logger.info("Order %s pending with gateway order %s", order.id, order.gateway_order_id)

    ordered = {oi.product_id: oi.quantity for oi in order.items}
    try:
        cart_service.remove_ordered_lines(user_id, ordered)
    except Exception:
        # the order is committed; a leftover cart is recoverable by the user
        logger.error("Order %s created but cart of user %s was not cleared", order.id, user_id, exc_info=True)

    return order, intent


def recover_stalled_orders(older_than_minutes: Optional[int] = None) -> Dict[str, int]:
    """Finalize checkout drafts abandoned between the draft commit and the gateway reply.

    The cart is not touched: it may have been reused since the draft was taken.
    Drafts the gateway still refuses are discarded.
    """
    if older_than_minutes is None:
        older_than_minutes = current_app.config.get("PENDING_CREATION_STALE_MINUTES", 10)
    cutoff = datetime.utcnow() - timedelta(minutes=older_than_minutes)
    stalled = (
        Order.query.filter(Order.status == PENDING_CREATION, Order.created_at <= cutoff)
        .order_by(Order.id.asc())
        .all()
    )
    result = {"finalized": 0, "abandoned": 0}
    for order in stalled:
        try:
            intent = _request_intent(order)
        except GatewayError as e:
            logger.warning("Abandoning stalled checkout draft %s: %s", order.id, e)
            _discard_draft(order)
            result["abandoned"] += 1
            continue
        _finalize(order, intent)
        result["finalized"] += 1
        logger.info("Recovered stalled order %s", order.id)
    return result


def get_order(user_id, order_id) -> Order:
    # someone else's order is reported exactly like a missing one
    order = _visible().filter(Order.id == order_id, Order.user_id == user_id).first()
    if order is None:
        raise NotFound("Order not found")
    return order


def list_orders_for_user(user_id) -> List[Order]:
    return (
        _visible()
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_all_orders() -> List[Order]:
    return _visible().order_by(Order.created_at.desc(), Order.id.desc()).all()


@conflict_retry
def cancel_order(user_id, order_id) -> Order:
    order = get_order(user_id, order_id)
    transition(order, "cancelled", user_id)
    with transactional("Failed to cancel order"):
        pass
    logger.info("Order %s cancelled by owner", order.id)
    return order


@conflict_retry
def update_status_by_staff(principal: Principal, order_id, new_status: str) -> Order:
    order = _visible().filter(Order.id == order_id).first()
    if order is None:
        raise NotFound("Order not found")
    if new_status == "paid" and order.payment_method != "cod":
        # gateway payments are only marked paid by signature verification
        raise Forbidden("Online payments are confirmed through payment verification")
    transition(order, new_status, principal.user_id)
    with transactional("Failed to update order status"):
        pass
    logger.info("Order %s moved to %s by %s %s", order.id, new_status, principal.role, principal.user_id)
    return order
