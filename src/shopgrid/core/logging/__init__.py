"""Logging module with structured logging and request tracking."""

from shopgrid.core.logging.middleware import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    get_client_ip,
)
from shopgrid.core.logging.setup import configure_logging


__all__ = [
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_client_ip",
]
