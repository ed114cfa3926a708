"""OpenTelemetry for the aura backend

Exports traces, metrics and logs over OTLP/gRPC when OTEL_EXPORTER_OTLP_ENDPOINT
is set. Stripe calls and relational backend requests each get a client span
through span(); without a configured provider those spans are no-ops.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind

from aura.core.config import settings

logger = logging.getLogger(__name__)

SERVICE_NAMESPACE = "aura"
SERVICE_VERSION = "1.0.0"

# Health checks and scrapes would drown the billing traces
EXCLUDED_URLS = "health,metrics"

_tracer = trace.get_tracer("aura.billing", SERVICE_VERSION)


def _resource() -> Resource:
    return Resource.create({
        "service.name": settings.OTEL_SERVICE_NAME,
        "service.namespace": SERVICE_NAMESPACE,
        "service.version": SERVICE_VERSION,
        "deployment.environment": settings.OTEL_ENVIRONMENT,
        "aura.remote_store.url": settings.SUPABASE_URL or "unset",
    })


def _exporter_options() -> Dict[str, Any]:
    return {"endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT, "insecure": True}


def initialize_otel() -> bool:
    """Install the trace and metric providers; False when no endpoint is configured"""
    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        return False

    try:
        resource = _resource()
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**_exporter_options())))
        trace.set_tracer_provider(tracer_provider)

        reader = PeriodicExportingMetricReader(OTLPMetricExporter(**_exporter_options()), export_interval_millis=15000)
        metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))
    except Exception as e:
        logger.warning(f"OpenTelemetry disabled, exporter setup failed: {e}")
        return False
    return True


def setup_otel_logging() -> bool:
    """Forward root logger records (already secret-redacted) to the OTLP log exporter"""
    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        return False

    try:
        from opentelemetry._logs import set_logger_provider
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
        from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
        from opentelemetry.sdk._logs.export import BatchLogRecordProcessor

        from aura.core.logging import SecretRedactingFilter

        provider = LoggerProvider(resource=_resource())
        provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(**_exporter_options())))
        set_logger_provider(provider)

        handler = LoggingHandler(level=logging.INFO, logger_provider=provider)
        handler.addFilter(SecretRedactingFilter())
        logging.getLogger().addHandler(handler)
    except Exception as e:
        logger.warning(f"OpenTelemetry log export disabled: {e}")
        return False
    return True


def instrument_fastapi(app):
    """Server spans for every route except health checks and metric scrapes"""
    FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)


def instrument_httpx():
    """Transport-level spans under the remote_store spans"""
    HTTPXClientInstrumentor().instrument()


@contextmanager
def span(name: str, **attributes) -> Iterator[trace.Span]:
    """Client span around one outbound call; None attributes are dropped.

    Exceptions are recorded on the span and re-raised.
    """
    clean = {f"aura.{key}": value for key, value in attributes.items() if value is not None}
    with _tracer.start_as_current_span(name, kind=SpanKind.CLIENT, attributes=clean) as current:
        yield current
