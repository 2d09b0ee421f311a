"""
ExamFlow - Telemetry Module
OpenTelemetry tracing for scoring oracle calls
"""
import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from examflow.core.config import settings

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Optional[trace.Tracer] = None


def init_telemetry() -> trace.Tracer:
    """
    Install a tracer provider that prints spans to the console.
    Call this once at application startup; no-op when telemetry is disabled.
    """
    global _tracer

    if _tracer is not None:
        return _tracer

    if settings.TELEMETRY_ENABLED:
        resource = Resource.create({
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        })
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(provider)
        logger.info("Telemetry initialized for service %s", settings.OTEL_SERVICE_NAME)

    _tracer = trace.get_tracer("examflow.ai", settings.APP_VERSION)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Get the global tracer instance, initializing if necessary."""
    if _tracer is None:
        return init_telemetry()
    return _tracer
