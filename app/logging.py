"""
JSON logging for the service.

Every record carries the request id (``X-Request-ID``) and the active
OpenTelemetry trace/span ids. Dict payloads are merged into the JSON line;
payment signatures, tokens and personal data are redacted unless debugging
outside production.
"""
import json
import logging
import os
from typing import Any

from opentelemetry.trace import get_current_span

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset({
    "password",
    "token",
    "access_token",
    "authorization",
    "email",
    "secret",
    "otp",
    "signature",
    "payment_signature",
    "razorpay_signature",
})


def current_request_id() -> str:
    try:
        from flask import g
        return getattr(g, "request_id", None) or "n/a"
    except RuntimeError:
        # outside an app context
        return "n/a"


def current_trace_ids():
    ctx = get_current_span().get_span_context()
    if not ctx.is_valid:
        return "n/a", "n/a"
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        return True


class TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id, record.span_id = current_trace_ids()
        return True


def mask(value: Any) -> Any:
    """Redact sensitive keys at any depth of a dict/list payload."""
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else mask(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(mask(item) for item in value)
    return value


class MaskingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        env = os.getenv("APP_ENV", "development").lower()
        if record.levelno == logging.DEBUG and env != "production":
            return True
        if isinstance(record.msg, dict):
            record.msg = mask(record.msg)
        if record.args:
            record.args = mask(record.args)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "request_id": getattr(record, "request_id", "n/a"),
            "trace_id": getattr(record, "trace_id", "n/a"),
            "span_id": getattr(record, "span_id", "n/a"),
        }
        if isinstance(record.msg, dict):
            line.update(record.msg)
        else:
            line["message"] = record.getMessage()
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def _level(app) -> int:
    name = os.getenv("LOG_LEVEL")
    if name:
        return getattr(logging, name.upper(), logging.INFO)
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app) -> None:
    level = _level(app)
    root = logging.getLogger()
    if not any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z"))
        for f in (RequestIdFilter(), TraceIdFilter(), MaskingFilter()):
            handler.addFilter(f)
        root.addHandler(handler)
    root.setLevel(level)

    # app and werkzeug records propagate to the root handler; logger filters tag them first
    app.logger.handlers.clear()
    if not any(isinstance(f, RequestIdFilter) for f in app.logger.filters):
        app.logger.addFilter(RequestIdFilter())
        app.logger.addFilter(TraceIdFilter())
    app.logger.setLevel(level)
    logging.getLogger("werkzeug").setLevel(level)
