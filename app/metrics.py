"""Prometheus metrics owned by the service, on top of prometheus-flask-exporter's request metrics."""
import time

from flask import request
from prometheus_client import Counter, Histogram
from sqlalchemy import event

from models import db

DB_QUERY_DURATION = Histogram(
    "db_query_duration_seconds",
    "Database statement duration in seconds",
    ["verb"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

ERROR_COUNTER = Counter(
    "flask_error_total",
    "Count of HTTP responses with status >= 400",
    ["endpoint", "method", "code"],
)

GATEWAY_LATENCY = Histogram(
    "payment_gateway_request_seconds",
    "Time spent waiting for the payment gateway to create an order",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)

CART_MUTATIONS = Counter(
    "cart_mutations_total",
    "Applied cart mutations",
    ["operation"],
)

CHECKOUTS = Counter(
    "checkouts_total",
    "Checkout attempts by outcome",
    ["outcome"],
)

PAYMENT_VERIFICATIONS = Counter(
    "payment_verifications_total",
    "Payment verification attempts by outcome",
    ["outcome"],
)


def _verb(statement: str) -> str:
    head = statement.lstrip().split(None, 1)
    return head[0].upper() if head else "UNKNOWN"


def _time_statements(engine):
    if event.contains(engine, "before_cursor_execute", _start_timer):
        return
    event.listen(engine, "before_cursor_execute", _start_timer)
    event.listen(engine, "after_cursor_execute", _stop_timer)


def _start_timer(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("_query_start_time", []).append(time.perf_counter())


def _stop_timer(conn, cursor, statement, parameters, context, executemany):
    started = conn.info["_query_start_time"].pop()
    DB_QUERY_DURATION.labels(_verb(statement)).observe(time.perf_counter() - started)


def init_app(app):
    """Time every SQL statement of the app's engine and count error responses."""
    with app.app_context():
        _time_statements(db.engine)

    @app.after_request
    def track_errors(resp):
        if resp.status_code >= 400:
            ERROR_COUNTER.labels(request.endpoint or "unknown", request.method, resp.status_code).inc()
        return resp
