import pytest

from app.errors import InvalidStatusTransition
from app.services.order_status import TERMINAL_STATUSES, can_transition, transition
from models.order import Order, PENDING_CREATION
from app.version import API_PREFIX


@pytest.mark.parametrize("current,new", [
    ("pending", "paid"),
    ("pending", "cancelled"),
    ("paid", "shipped"),
    ("paid", "cancelled"),
    ("shipped", "delivered"),
    (PENDING_CREATION, "pending"),
])
def test_allowed_transitions(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize("current,new", [
    ("pending", "shipped"),
    ("pending", "delivered"),
    ("paid", "pending"),
    ("shipped", "cancelled"),
    ("shipped", "paid"),
    ("delivered", "cancelled"),
    ("cancelled", "pending"),
    (PENDING_CREATION, "paid"),
])
def test_rejected_transitions(current, new):
    assert not can_transition(current, new)


def test_terminal_states():
    assert TERMINAL_STATUSES == {"delivered", "cancelled"}


def test_transition_records_log_entry():
    order = Order(status="pending")
    entry = transition(order, "paid", actor_id=5)
    assert order.status == "paid"
    assert (entry.from_status, entry.status, entry.updated_by) == ("pending", "paid", 5)
    assert order.status_log == [entry]


def test_rejected_transition_leaves_order_untouched():
    order = Order(status="delivered")
    with pytest.raises(InvalidStatusTransition):
        transition(order, "cancelled")
    assert order.status == "delivered"
    assert order.status_log == []


def place_order(client, hdr, make_product, payment_method="razorpay"):
    pid = make_product()
    client.post(f"{API_PREFIX}/cart/add", json={'product_id': pid, 'quantity': 1}, headers=hdr)
    resp = client.post(f"{API_PREFIX}/orders", json={'payment_method': payment_method}, headers=hdr)
    return resp.get_json()['data']['order']['id']


def set_status(client, hdr, order_id, status):
    return client.put(f"{API_PREFIX}/orders/{order_id}/status", json={'status': status}, headers=hdr)


def test_staff_walks_cod_order_to_delivered(client, login, make_product):
    _, customer = login()
    _, seller = login(role='seller')
    order_id = place_order(client, customer, make_product, payment_method="cod")

    for status in ("paid", "shipped", "delivered"):
        resp = set_status(client, seller, order_id, status)
        assert resp.status_code == 200
        assert resp.get_json()['data']['order']['status'] == status

    resp = set_status(client, seller, order_id, "cancelled")
    assert resp.status_code == 409

    history = client.get(f"{API_PREFIX}/orders/{order_id}/history", headers=customer).get_json()['data']['history']
    assert [h['status'] for h in history] == ["pending", "paid", "shipped", "delivered"]


def test_staff_cannot_mark_online_payment_paid(client, login, make_product):
    _, customer = login()
    _, admin = login(role='admin')
    order_id = place_order(client, customer, make_product)
    resp = set_status(client, admin, order_id, "paid")
    assert resp.status_code == 403


def test_staff_cannot_skip_states(client, login, make_product):
    _, customer = login()
    _, admin = login(role='admin')
    order_id = place_order(client, customer, make_product)
    resp = set_status(client, admin, order_id, "shipped")
    assert resp.status_code == 409


def test_unknown_status_value_rejected(client, login, make_product):
    _, customer = login()
    _, admin = login(role='admin')
    order_id = place_order(client, customer, make_product)
    resp = set_status(client, admin, order_id, "pending")
    assert resp.status_code == 400


def test_owner_cancels_pending_order(client, login, make_product):
    _, customer = login()
    order_id = place_order(client, customer, make_product)
    resp = client.post(f"{API_PREFIX}/orders/{order_id}/cancel", headers=customer)
    assert resp.status_code == 200
    assert resp.get_json()['data']['order']['status'] == "cancelled"
    again = client.post(f"{API_PREFIX}/orders/{order_id}/cancel", headers=customer)
    assert again.status_code == 409


def test_staff_update_of_missing_order(client, login):
    _, admin = login(role='admin')
    assert set_status(client, admin, 4242, "shipped").status_code == 404
