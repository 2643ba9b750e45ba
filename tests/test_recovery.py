from datetime import datetime, timedelta

import pytest

from app.errors import NotFound
from app.services import order_service
from app.tasks.orders import recover_stalled_orders_task
from models import db
from models.cart import Cart
from models.order import Order, PENDING_CREATION
from app.version import API_PREFIX


@pytest.fixture()
def stalled_draft(client, login, make_product, monkeypatch):
    """Crash a checkout after the draft is committed but before it is finalized."""
    user_id, hdr = login()
    pid = make_product(price='10.00')
    client.post(f"{API_PREFIX}/cart/add", json={'product_id': pid, 'quantity': 2}, headers=hdr)

    def crash(*args, **kwargs):
        raise RuntimeError("worker died")

    with monkeypatch.context() as m:
        m.setattr(order_service, "_finalize", crash)
        with pytest.raises(RuntimeError):
            order_service.create_order_from_cart(user_id, None, "razorpay")

    draft = Order.query.filter_by(user_id=user_id).one()
    assert draft.status == PENDING_CREATION
    draft.created_at = datetime.utcnow() - timedelta(hours=1)
    db.session.commit()
    return user_id, hdr, draft.id


def test_draft_is_invisible_to_readers(client, stalled_draft):
    user_id, hdr, order_id = stalled_draft
    with pytest.raises(NotFound):
        order_service.get_order(user_id, order_id)
    assert order_service.list_orders_for_user(user_id) == []
    assert order_service.list_all_orders() == []
    assert client.get(f"{API_PREFIX}/orders/{order_id}", headers=hdr).status_code == 404


def test_recovery_finalizes_draft_and_leaves_cart(client, stalled_draft, gateway):
    user_id, hdr, order_id = stalled_draft
    result = order_service.recover_stalled_orders()
    assert result == {"finalized": 1, "abandoned": 0}

    order = db.session.get(Order, order_id)
    assert order.status == "pending"
    assert order.gateway_order_id
    assert float(order.total_amount) == 20.0
    assert gateway.requests[-1]["receipt"] == order.receipt
    assert len(Cart.query.filter_by(user_id=user_id).one().items) == 1


def test_recovery_abandons_draft_gateway_still_refuses(stalled_draft, gateway):
    _, _, order_id = stalled_draft
    gateway.fail = True
    assert order_service.recover_stalled_orders() == {"finalized": 0, "abandoned": 1}
    assert db.session.get(Order, order_id) is None


def test_recent_drafts_are_left_alone(stalled_draft):
    _, _, order_id = stalled_draft
    draft = db.session.get(Order, order_id)
    draft.created_at = datetime.utcnow()
    db.session.commit()
    assert order_service.recover_stalled_orders(older_than_minutes=10) == {"finalized": 0, "abandoned": 0}
    assert db.session.get(Order, order_id).status == PENDING_CREATION


def test_cli_command(app, stalled_draft):
    result = app.test_cli_runner().invoke(args=["orders-recover", "--older-than", "5"])
    assert result.exit_code == 0
    assert "Finalized 1, abandoned 0." in result.output


def test_celery_task(app, stalled_draft):
    assert recover_stalled_orders_task(5) == {"finalized": 1, "abandoned": 0}
