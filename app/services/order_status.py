"""
Order lifecycle.

    pending -> paid -> shipped -> delivered
    pending -> cancelled
    paid    -> cancelled

``pending_creation`` is the internal state of a checkout whose gateway intent
has not been recorded yet; its only exit is ``pending``. ``delivered`` and
``cancelled`` are terminal.
"""
from typing import Optional

from app.errors import InvalidStatusTransition
from models.order import Order, OrderStatusLog, PENDING_CREATION

TRANSITIONS = {
    PENDING_CREATION: frozenset({"pending"}),
    "pending": frozenset({"paid", "cancelled"}),
    "paid": frozenset({"shipped", "cancelled"}),
    "shipped": frozenset({"delivered"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def transition(order: Order, new_status: str, actor_id: Optional[int] = None) -> OrderStatusLog:
    """Move ``order`` forward and record the change. Does NOT commit."""
    current = order.status
    if not can_transition(current, new_status):
        raise InvalidStatusTransition(f"Cannot move order from {current} to {new_status}")
    order.status = new_status
    entry = OrderStatusLog(from_status=current, status=new_status, updated_by=actor_id)
    order.status_log.append(entry)
    return entry
