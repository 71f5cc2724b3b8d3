"""Logging configuration for keycert consumers."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

# Custom log format with service name
DEFAULT_LOG_FORMAT = (
    "%(asctime)s - %(levelname)s - [%(service_name)s] - [%(name)s] - "
    "[%(module)s.%(funcName)s:%(lineno)d] - %(message)s"
)

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

DEFAULT_LOG_LEVEL = "INFO"
LOG_OFF_LEVEL = "OFF"  # Special string to turn off logging
JSON_LOG_FORMAT = "json"


class ServiceNameFilter(logging.Filter):
    """Filter to inject service name into log records."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


class TraceContextFilter(logging.Filter):
    """Filter to inject trace context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
        else:
            record.trace_id = None
            record.span_id = None
        return True


class KeyCertJSONFormatter(JsonFormatter):
    """JSON formatter with service and trace correlation fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = getattr(record, "service_name", "unknown")
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        trace_id = getattr(record, "trace_id", None)
        if trace_id:
            log_record["trace_id"] = trace_id
            log_record["span_id"] = getattr(record, "span_id", None)
        else:
            log_record.pop("trace_id", None)
            log_record.pop("span_id", None)


def setup_logging(
    service_name: str = "keycert",
    log_level: str | None = None,
    log_format: str | None = None,
    log_level_env_var: str = "LOG_LEVEL",
    log_format_env_var: str = "LOG_FORMAT",
    stream: TextIO | None = None,
) -> None:
    """
    Configure the root logger.

    Explicit ``log_level`` / ``log_format`` arguments win over the
    environment variables. ``LOG_LEVEL=OFF`` disables logging entirely and
    ``LOG_FORMAT=json`` switches to structured output.

    Args:
        service_name: Name injected into every record as ``service_name``
        log_level: Level name or ``OFF``
        log_format: ``json`` or a ``logging.Formatter`` format string
        log_level_env_var: Environment variable to read the log level from
        log_format_env_var: Environment variable to read the log format from
        stream: Output stream, stdout by default
    """
    log_level_str = (log_level or os.environ.get(log_level_env_var, DEFAULT_LOG_LEVEL)).upper()
    log_format_str = log_format or os.environ.get(log_format_env_var, DEFAULT_LOG_FORMAT)

    root_logger = logging.getLogger()

    # Remove any existing handlers to prevent duplicate messages
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_level_str == LOG_OFF_LEVEL:
        root_logger.setLevel(logging.CRITICAL + 1)
        return

    numeric_log_level = LOG_LEVELS.get(log_level_str, logging.INFO)
    root_logger.setLevel(numeric_log_level)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    if log_format_str.lower() == JSON_LOG_FORMAT:
        formatter: logging.Formatter = KeyCertJSONFormatter("%(asctime)s %(message)s")
    else:
        formatter = logging.Formatter(log_format_str)
    console_handler.setFormatter(formatter)

    console_handler.addFilter(ServiceNameFilter(service_name))
    console_handler.addFilter(TraceContextFilter())
    root_logger.addHandler(console_handler)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured. Service: %s, Level: %s", service_name, log_level_str)
