"""
Observability module.

Provides structured logging, correlation ID tracking, and request middleware.
"""

from doc_optimizer.observability.correlation import get_correlation_id, set_correlation_id
from doc_optimizer.observability.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger", "get_correlation_id", "set_correlation_id"]
