import os
import uuid

from dotenv import load_dotenv
from flasgger import Swagger
from flask import Flask, g, request
from flask_cors import CORS
from flask_migrate import Migrate
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from prometheus_client import CollectorRegistry
from prometheus_flask_exporter import PrometheusMetrics

import extensions
from app import metrics as app_metrics
from app.api import register_api_v1
from app.cli import register_cli
from app.config import get_config_class
from app.errors import errors_bp
from app.logging import configure_logging
from app.services.gateway import init_gateway
from app.telemetry import init_tracing
from app.version import API_PREFIX
from models import db

SERVICE_VERSION = "1.0.0"
EXPOSED_HEADERS = ("X-Request-ID", "traceparent")


def _init_docs(app):
    Swagger(
        app,
        config={
            "headers": [],
            "specs": [
                {
                    "endpoint": "apispec",
                    "route": "/apispec.json",
                    "rule_filter": lambda rule: rule.rule.startswith(f"{API_PREFIX}/"),
                    "model_filter": lambda tag: True,
                }
            ],
            "swagger_ui": True,
            "specs_route": "/docs/",
        },
        template={
            "tags": [
                {"name": "Cart", "description": "Per-user cart"},
                {"name": "Orders", "description": "Checkout, order tracking and payment verification"},
                {"name": "Products", "description": "Catalog"},
            ]
        },
    )


def _init_metrics(app):
    # test apps get their own registry so repeated factories don't clash
    registry = CollectorRegistry(auto_describe=True) if app.config.get("TESTING") else None
    metrics = PrometheusMetrics(app, path="/metrics", registry=registry)
    if not app.config.get("TESTING") and not os.environ.get("METRICS_APP_INFO_SET"):
        metrics.info("app_info", "Application info", version=SERVICE_VERSION)
        os.environ["METRICS_APP_INFO_SET"] = "1"
    app_metrics.init_app(app)


def _cors_origins(allowed):
    if not isinstance(allowed, str):
        return allowed or "*"
    allowed = allowed.strip()
    if allowed == "*":
        return "*"
    return [o.strip() for o in allowed.split(",") if o.strip()]


def _register_request_hooks(app):
    @app.before_request
    def _set_request_id():
        g.request_id = (request.headers.get("X-Request-ID") or uuid.uuid4().hex)[:100]
        app.logger.info("request start %s %s", request.method, request.path)

    @app.after_request
    def _decorate_response(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers["X-Request-ID"] = rid

        carrier = {}
        TraceContextTextMapPropagator().inject(carrier)
        if carrier.get("traceparent"):
            resp.headers["traceparent"] = carrier["traceparent"]

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        exposed = [h.strip() for h in resp.headers.get("Access-Control-Expose-Headers", "").split(",") if h.strip()]
        exposed += [h for h in EXPOSED_HEADERS if h not in exposed]
        resp.headers["Access-Control-Expose-Headers"] = ",".join(exposed)
        return resp


def create_app(config_object=None):
    """Application factory."""
    load_dotenv()
    app = Flask(__name__)
    app.config.from_object(config_object or get_config_class())

    configure_logging(app)
    register_cli(app)

    extensions.limiter.init_app(app)
    app.limiter = extensions.limiter
    Migrate(app, db, compare_type=True, render_as_batch=True)
    _init_docs(app)
    CORS(
        app,
        origins=_cors_origins(app.config.get("CORS_ALLOWED_ORIGINS", "*")),
        supports_credentials=True,
        expose_headers=list(EXPOSED_HEADERS),
    )

    app.register_blueprint(errors_bp)
    if app.config.get("TESTING"):
        from app.test_support import test_support_bp
        app.register_blueprint(test_support_bp)
    register_api_v1(app)
    init_gateway(app)
    _register_request_hooks(app)

    db.init_app(app)
    init_tracing(app)
    _init_metrics(app)
    if app.config.get("DEBUG") or app.config.get("TESTING"):
        with app.app_context():
            db.create_all()
            app.logger.info("Tables created")

    @app.route("/health")
    def health():
        return {"status": "ok"}, 200

    return app
