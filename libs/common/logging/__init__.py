"""Structured JSON logging with dashboard session correlation.

Usage:
    # At startup
    from libs.common.logging import configure_logging
    configure_logging(service_name="live_chart", log_level="INFO")

    # Per dashboard page
    from libs.common.logging import SessionLogContext
    with SessionLogContext() as session_id:
        ...  # tasks created here log with this session_id
"""

from libs.common.logging.config import SessionIDFilter, configure_logging
from libs.common.logging.context import (
    SessionLogContext,
    clear_session_id,
    generate_session_id,
    get_session_id,
    set_session_id,
)
from libs.common.logging.formatter import JSONFormatter

__all__ = [
    "configure_logging",
    "SessionIDFilter",
    "generate_session_id",
    "get_session_id",
    "set_session_id",
    "clear_session_id",
    "SessionLogContext",
    "JSONFormatter",
]
