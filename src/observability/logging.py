import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import g, has_request_context, request
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor

from .tracing import otlp_target

# Bearer headers, raw OAuth fields and auth codes must never reach a sink
_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    re.compile(r"((?:access|refresh)_token['\"]?\s*[:=]\s*['\"]?)[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    re.compile(r"([?&]code=)[^&\s]+"),
)


def scrub_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1[redacted]", text)
    return text


class RequestContextFilter(logging.Filter):
    """Attach request-scoped metadata (request id, route, acting user) to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        in_request = has_request_context()
        record.request_id = getattr(g, "request_id", None) if in_request else None
        record.path = request.path if in_request else None
        record.method = request.method if in_request else None
        record.remote_addr = request.headers.get("X-Forwarded-For", request.remote_addr) if in_request else None
        # Only a user Flask-Login already loaded; loading one here recurses when
        # the user loader logs
        user = getattr(g, "_login_user", None) if in_request else None
        record.user_id = getattr(user, "id", None) if getattr(user, "is_authenticated", False) else None
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as JSON with OAuth secrets scrubbed."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": scrub_secrets(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
            "user_id": getattr(record, "user_id", None),
            "path": getattr(record, "path", None),
            "method": getattr(record, "method", None),
            "remote_addr": getattr(record, "remote_addr", None),
        }
        if record.exc_info:
            payload["exc_info"] = scrub_secrets(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False)


def _otlp_log_handler(app) -> Optional[logging.Handler]:
    target = otlp_target(app)
    if target is None:
        return None
    provider = LoggerProvider(resource=target.resource)
    provider.add_log_record_processor(
        BatchLogRecordProcessor(
            OTLPLogExporter(endpoint=target.endpoint, headers=target.headers, insecure=target.insecure)
        )
    )
    return LoggingHandler(level=logging.INFO, logger_provider=provider)


def _install(root: logging.Logger, handler: logging.Handler) -> None:
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestContextFilter())
    root.addHandler(handler)


def configure_structured_logging(app) -> None:
    """Send JSON records to stdout, and to the OTLP collector when one is configured.

    Safe to call once per app: the stdout handler is only added if the root
    logger has no JSON stream yet, so test suites building many apps do not
    stack duplicates.
    """
    root = logging.getLogger()
    if not any(isinstance(h.formatter, JsonFormatter) for h in root.handlers if isinstance(h, logging.StreamHandler)):
        _install(root, logging.StreamHandler(sys.stdout))

    otlp_handler = _otlp_log_handler(app)
    if otlp_handler is not None:
        _install(root, otlp_handler)
