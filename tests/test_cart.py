import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from models import db
from models.cart import Cart, CartItem
from models.user import User
from app.services import cart_service
from app.utils import create_access_token
from app.version import API_PREFIX


def add_to_cart(client, hdr, product_id, qty):
    return client.post(f"{API_PREFIX}/cart/add", json={'product_id': product_id, 'quantity': qty}, headers=hdr)


def test_repeated_add_merges_into_one_line(client, login, make_product):
    _, hdr = login()
    p1 = make_product(name='P1', price='10.00')

    assert add_to_cart(client, hdr, p1, 2).status_code == 200
    resp = add_to_cart(client, hdr, p1, 1)
    assert resp.status_code == 200

    cart = resp.get_json()['data']['cart']
    assert len(cart['items']) == 1
    assert cart['items'][0]['product_id'] == p1
    assert cart['items'][0]['quantity'] == 3
    assert cart['items'][0]['product']['name'] == 'P1'
    assert cart['subtotal'] == 30.0
    assert cart['item_count'] == 3


def test_view_creates_empty_cart_lazily(client, login):
    user_id, hdr = login()
    resp = client.get(f"{API_PREFIX}/cart", headers=hdr)
    assert resp.status_code == 200
    cart = resp.get_json()['data']['cart']
    assert cart['items'] == []
    assert cart['subtotal'] == 0.0
    assert Cart.query.filter_by(user_id=user_id).count() == 1


def test_one_cart_per_user(app, login):
    user_id, _ = login()
    first = cart_service.get_or_create_cart(user_id)
    second = cart_service.get_or_create_cart(user_id)
    assert first.id == second.id
    assert Cart.query.filter_by(user_id=user_id).count() == 1


def test_subtotal_resolves_current_price(client, login, make_product):
    _, hdr = login()
    pid = make_product(price='10.00')
    add_to_cart(client, hdr, pid, 2)
    from models.product import Product
    db.session.get(Product, pid).price = 12
    db.session.commit()
    cart = client.get(f"{API_PREFIX}/cart", headers=hdr).get_json()['data']['cart']
    assert cart['subtotal'] == 24.0


def test_set_quantity_overwrites_and_zero_removes(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    add_to_cart(client, hdr, pid, 2)

    resp = client.put(f"{API_PREFIX}/cart/update/{pid}", json={'quantity': 5}, headers=hdr)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['items'][0]['quantity'] == 5

    resp = client.put(f"{API_PREFIX}/cart/update/{pid}", json={'quantity': 0}, headers=hdr)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['items'] == []


def test_set_quantity_negative_removes(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    add_to_cart(client, hdr, pid, 2)
    resp = client.put(f"{API_PREFIX}/cart/update/{pid}", json={'quantity': -3}, headers=hdr)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['items'] == []


def test_set_quantity_on_absent_line(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    resp = client.put(f"{API_PREFIX}/cart/update/{pid}", json={'quantity': 2}, headers=hdr)
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'item_not_found'

    resp = client.put(f"{API_PREFIX}/cart/update/{pid}", json={'quantity': 0}, headers=hdr)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['items'] == []


def test_remove_is_idempotent(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    other = make_product(name='Other')
    add_to_cart(client, hdr, pid, 1)

    resp = client.delete(f"{API_PREFIX}/cart/remove/{other}", headers=hdr)
    assert resp.status_code == 200
    assert len(resp.get_json()['data']['cart']['items']) == 1

    resp = client.delete(f"{API_PREFIX}/cart/remove/{pid}", headers=hdr)
    assert resp.get_json()['data']['cart']['items'] == []
    resp = client.delete(f"{API_PREFIX}/cart/remove/{pid}", headers=hdr)
    assert resp.status_code == 200


def test_clear_empties_cart(client, login, make_product):
    user_id, hdr = login()
    add_to_cart(client, hdr, make_product(name='A'), 1)
    add_to_cart(client, hdr, make_product(name='B'), 4)
    resp = client.delete(f"{API_PREFIX}/cart/clear", headers=hdr)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['items'] == []
    cart = Cart.query.filter_by(user_id=user_id).one()
    assert CartItem.query.filter_by(cart_id=cart.id).count() == 0


def test_add_rejects_non_positive_quantity(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    for qty in (0, -1):
        resp = add_to_cart(client, hdr, pid, qty)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'invalid_quantity'


def test_add_unknown_product(client, login):
    _, hdr = login()
    resp = add_to_cart(client, hdr, 9999, 1)
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'Product not found'


def test_add_accepts_camel_case_product_id(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    resp = client.post(f"{API_PREFIX}/cart/add", json={'productId': pid, 'quantity': 1}, headers=hdr)
    assert resp.status_code == 200


def test_every_mutation_bumps_version(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    v0 = client.get(f"{API_PREFIX}/cart", headers=hdr).get_json()['data']['cart']['version']
    v1 = add_to_cart(client, hdr, pid, 1).get_json()['data']['cart']['version']
    v2 = add_to_cart(client, hdr, pid, 1).get_json()['data']['cart']['version']
    assert v0 < v1 < v2


def test_carts_are_isolated_per_user(client, login, make_product):
    _, alice = login()
    _, bob = login()
    pid = make_product()
    add_to_cart(client, alice, pid, 2)
    cart = client.get(f"{API_PREFIX}/cart", headers=bob).get_json()['data']['cart']
    assert cart['items'] == []


@pytest.fixture()
def foreign_keys(app):
    db.session.commit()
    db.session.execute(text('PRAGMA foreign_keys=ON'))
    assert db.session.execute(text('PRAGMA foreign_keys')).scalar() == 1
    yield
    db.session.rollback()
    db.session.execute(text('PRAGMA foreign_keys=OFF'))


def test_gate_user_without_local_row_gets_cart_and_orders(client, foreign_keys, make_product):
    hdr = {'Authorization': f"Bearer {create_access_token(4242, 'customer')}"}
    assert db.session.get(User, 4242) is None

    resp = client.get(f"{API_PREFIX}/cart", headers=hdr)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['items'] == []

    pid = make_product()
    assert add_to_cart(client, hdr, pid, 2).status_code == 200
    resp = client.post(f"{API_PREFIX}/orders", json={'payment_method': 'cod'}, headers=hdr)
    assert resp.status_code == 201
    assert resp.get_json()['data']['order']['user_id'] == 4242


def test_cart_insert_failure_that_is_not_a_race_propagates(app):
    with pytest.raises(IntegrityError):
        cart_service.get_or_create_cart(None)
    assert Cart.query.count() == 0
