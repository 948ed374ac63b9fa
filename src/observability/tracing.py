import os
from typing import NamedTuple, Optional

from flask import Flask
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# No-op until init_tracing installs a real provider
tracer = trace.get_tracer("moodmix")


class OtlpTarget(NamedTuple):
    endpoint: str
    headers: Optional[str]
    insecure: bool
    resource: Resource


def otlp_target(app: Flask) -> Optional[OtlpTarget]:
    """Collector settings shared by span and log export; None when export is off."""
    def _setting(name):
        return app.config.get(name) or os.getenv(name)

    endpoint = _setting("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return None
    service = app.config.get("OTEL_SERVICE_NAME") or "moodmix"
    return OtlpTarget(
        endpoint=endpoint,
        headers=_setting("OTEL_EXPORTER_OTLP_HEADERS"),
        insecure=bool(app.config.get("OTEL_EXPORTER_OTLP_INSECURE", True)),
        resource=Resource.create({"service.name": service}),
    )


def init_tracing(app: Flask) -> bool:
    """Export Flask request spans and outbound Spotify calls over OTLP when configured."""
    target = otlp_target(app)
    if target is None:
        return False

    provider = TracerProvider(resource=target.resource)
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=target.endpoint, headers=target.headers, insecure=target.insecure)
        )
    )
    trace.set_tracer_provider(provider)

    FlaskInstrumentor().instrument_app(app)
    # Spotify Web API and accounts calls both go through requests
    RequestsInstrumentor().instrument()
    return True
