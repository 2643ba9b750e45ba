"""Payment reconciliation: check the gateway's signed confirmation and mark the order paid."""
import logging

from app.errors import InvalidSignature, InvalidStatusTransition, ValidationError
from app.metrics import PAYMENT_VERIFICATIONS
from app.services.gateway import get_gateway, signatures_match
from app.services.order_service import get_order
from app.services.order_status import transition
from app.utils.db import transactional
from app.utils.retry import conflict_retry
from models.order import Order

logger = logging.getLogger(__name__)


@conflict_retry
def verify_payment(user_id, order_id, payment_id: str, signature: str) -> Order:
    """Verify ``signature == HMAC-SHA256(secret, gateway_order_id + "|" + payment_id)``.

    A repeated verification of an already paid order with the same payment id
    is a no-op that returns the order.
    """
    if not payment_id or not signature:
        raise ValidationError("payment_id and signature are required")

    order = get_order(user_id, order_id)
    if not order.gateway_order_id:
        raise InvalidStatusTransition("Order has no gateway reference")

    expected = get_gateway().expected_signature(order.gateway_order_id, payment_id)
    if not signatures_match(expected, signature):
        PAYMENT_VERIFICATIONS.labels("invalid_signature").inc()
        logger.warning("Invalid payment signature for order %s", order.id)
        raise InvalidSignature()

    if order.status == "paid" and order.payment_id == payment_id:
        PAYMENT_VERIFICATIONS.labels("already_verified").inc()
        return order

    transition(order, "paid", user_id)
    order.payment_id = payment_id
    order.payment_signature = signature
    with transactional("Failed to record payment"):
        pass
    PAYMENT_VERIFICATIONS.labels("verified").inc()
    logger.info("Payment %s verified for order %s", payment_id, order.id)
    return order
