import re

from app.version import API_PREFIX

TRACEPARENT = re.compile(r"^00-[0-9a-f]{32}-[0-9a-f]{16}-[0-9a-f]{2}$")


def trace_id(resp):
    return resp.headers['traceparent'].split('-')[1]


def test_cart_response_carries_traceparent(client, login):
    _, hdr = login()
    resp = client.get(f"{API_PREFIX}/cart", headers=hdr)
    assert resp.status_code == 200
    assert TRACEPARENT.match(resp.headers['traceparent'])
    assert 'traceparent' in resp.headers['Access-Control-Expose-Headers']


def test_checkout_traces_are_distinct_per_request(client, login, make_product):
    _, hdr = login()
    pid = make_product()
    added = client.post(f"{API_PREFIX}/cart/add", json={'product_id': pid, 'quantity': 1}, headers=hdr)
    ordered = client.post(f"{API_PREFIX}/orders", json={'payment_method': 'cod'}, headers=hdr)
    assert ordered.status_code == 201
    assert trace_id(added) != trace_id(ordered)


def test_rejected_request_still_traced(client):
    resp = client.get(f"{API_PREFIX}/orders")
    assert resp.status_code == 401
    assert 'traceparent' in resp.headers
