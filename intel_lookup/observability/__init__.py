"""
Observability module - Logging, Metrics, and Tracing.
"""

from intel_lookup.observability.logging import get_logger, log_context, setup_logging
from intel_lookup.observability.metrics import metrics
from intel_lookup.observability.tracing import setup_tracing, trace_operation

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "setup_tracing",
    "trace_operation",
]
