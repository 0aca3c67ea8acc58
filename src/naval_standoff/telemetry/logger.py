"""Logging helpers with optional OpenTelemetry export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import TelemetryConfig

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s "
    "| trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
)

_LOGGER: logging.Logger | None = None
_HANDLER_INSTALLED = False
_CONSOLE_CONFIGURED = False


class _OtelContextFilter(logging.Filter):
    """Ensures trace/span placeholders exist even when no context is active."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        if not hasattr(record, "otelTraceID"):
            record.otelTraceID = "-"
        if not hasattr(record, "otelSpanID"):
            record.otelSpanID = "-"
        return True


def get_logger(name: str = "naval_standoff") -> logging.Logger:
    """Return the package logger, created on first use."""
    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger(name)
        _LOGGER.setLevel(logging.INFO)
    return _LOGGER


def configure_console_logging(level: str | int = logging.INFO) -> None:
    """Install the root console handler once, with trace placeholders."""
    global _CONSOLE_CONFIGURED
    root_logger = logging.getLogger()
    if not _CONSOLE_CONFIGURED and not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        for existing in root_logger.handlers:
            existing.addFilter(_OtelContextFilter())
        _CONSOLE_CONFIGURED = True
    root_logger.setLevel(level)
    logging.getLogger("naval_standoff").setLevel(level)


def init_logging(config: TelemetryConfig) -> logging.Logger:
    """Bridge stdlib log records to the OTLP logs exporter."""
    logger = get_logger()
    configure_console_logging(config.log_level)
    try:
        from opentelemetry._logs import set_logger_provider
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
        from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
        from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
        from opentelemetry.sdk.resources import Resource
    except ImportError:  # pragma: no cover - experimental OTel logs API moved
        logger.warning("otel_logs_unavailable")
        return logger

    provider = LoggerProvider(resource=Resource.create(config.resource()))
    if config.otlp_logs_endpoint:
        exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))

    set_logger_provider(provider)
    _install_root_handler(LoggingHandler(level=logging.INFO, logger_provider=provider))
    return logger


def _install_root_handler(handler: logging.Handler) -> None:
    """Attach the OTLP logging handler to the root logger once."""
    global _HANDLER_INSTALLED
    if _HANDLER_INSTALLED:
        return
    handler.addFilter(_OtelContextFilter())
    logging.getLogger().addHandler(handler)
    _HANDLER_INSTALLED = True
