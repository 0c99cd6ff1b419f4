import logging
import sys

from opentelemetry import trace

from src.core.config import settings

LOG_FORMAT = (
    "%(asctime)s %(levelname)s [%(name)s] "
    "[trace_id=%(otel_trace_id)s span_id=%(otel_span_id)s] %(message)s"
)


class TraceContextFilter(logging.Filter):
    """Stamps each record with the ids of the active OpenTelemetry span."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.otel_trace_id = format(span_context.trace_id, "032x")
            record.otel_span_id = format(span_context.span_id, "016x")
        else:
            record.otel_trace_id = "0"
            record.otel_span_id = "0"
        return True


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TraceContextFilter())
    return handler


_root = logging.getLogger(settings.app_name)
if not _root.handlers:
    _root.addHandler(_build_handler())
    _root.setLevel(settings.LOG_LEVEL.upper())
    _root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the application namespace."""
    if name == settings.app_name or name.startswith(f"{settings.app_name}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{settings.app_name}.{name}")


logger = get_logger(settings.app_name)
