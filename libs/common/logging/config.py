"""Logging configuration for the live chart dashboard.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="live_chart", log_level="INFO")
    >>> logger.info("dashboard_started", extra={"port": 8080})
"""

import logging
import sys

from libs.common.logging.context import get_session_id
from libs.common.logging.formatter import JSONFormatter

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "websockets", "uvicorn.access")


class SessionIDFilter(logging.Filter):
    """Logging filter that stamps the current dashboard session ID on records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "session_id", None) is None:
            record.session_id = get_session_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure structured JSON logging on the root logger.

    Call once at startup. Existing root handlers are replaced so repeated
    calls (e.g. from the NiceGUI reloader) do not duplicate output.

    Args:
        service_name: Name reported in the "service" field of every record
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include the context dict in output

    Returns:
        Configured root logger

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        JSONFormatter(
            service_name=service_name,
            include_context=include_context,
        )
    )
    handler.addFilter(SessionIDFilter())
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return root_logger
