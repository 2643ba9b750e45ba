from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from models import db

_provider = None


def _exporter(app):
    kind = app.config.get("OTEL_TRACES_EXPORTER") or ("none" if app.config.get("TESTING") else "otlp")
    if kind == "console":
        return ConsoleSpanExporter()
    if kind == "otlp":
        endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
        return OTLPSpanExporter(endpoint=endpoint)
    return None


def init_tracing(app):
    """Initialize OpenTelemetry tracing for the Flask app.

    The tracer provider is process-global and installed once; every app built
    by the factory is instrumented against it.
    """
    global _provider
    if _provider is None:
        service_name = app.config.get("OTEL_SERVICE_NAME", "cartledger-backend")
        _provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
        exporter = _exporter(app)
        if exporter is not None:
            _provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(_provider)
        set_global_textmap(TraceContextTextMapPropagator())
        RequestsInstrumentor().instrument()

    FlaskInstrumentor().instrument_app(app)
    with app.app_context():
        SQLAlchemyInstrumentor().instrument(engine=db.engine)
