"""Observability: structured logging, correlation IDs, request logging."""

from .logging import (
    CorrelationIdFilter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from .middleware import RequestLoggingMiddleware

__all__ = [
    "CorrelationIdFilter",
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
    "RequestLoggingMiddleware",
]
