import functools
import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global flag to ensure initialization only happens once
_initialized = False
_tracer_provider: Optional[TracerProvider] = None


def configure_telemetry(
    level: str = "INFO",
    otlp_endpoint: Optional[str] = None,
    service_name: str = "bolt-step",
) -> None:
    """
    Configure logging and, when an OTLP endpoint is given, span export.

    Safe to call more than once; only the first call installs a tracer provider.
    """
    global _initialized, _tracer_provider

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)

    if _initialized:
        return

    if otlp_endpoint:
        resource = Resource(attributes={SERVICE_NAME: service_name})
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{otlp_endpoint}/v1/traces"))
        )
        trace.set_tracer_provider(provider)
        _tracer_provider = provider

    _initialized = True


def shutdown_telemetry() -> None:
    """Flush pending spans before the process exits."""
    if _tracer_provider is not None:
        _tracer_provider.shutdown()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    Use this instead of logging.getLogger() directly.
    """
    return logging.getLogger(name)


def trace_span(func):
    """Decorator that wraps the call in a span named after the function."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        tracer = trace.get_tracer("bolt_step")
        with tracer.start_as_current_span(func.__name__):
            return func(*args, **kwargs)

    return wrapper
