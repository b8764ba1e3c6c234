"""
Metrics Collection with Prometheus.

Exposes lookup, ledger and HTTP metrics for monitoring.
"""

from enum import Enum

from prometheus_client import Counter, Gauge, Histogram, Info

from intel_lookup.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    SERVICE = "service"
    OUTCOME = "outcome"
    REASON = "reason"
    ACTION = "action"
    ERROR_TYPE = "error_type"


class LookupMetrics:
    """
    Centralized metrics for the Intel Lookup API.

    Covers:
    - HTTP requests (rate, duration, in progress)
    - Lookups (outcome per service, denials per gate, provider latency)
    - Ledger (credits debited, clamped debits, adjustments)
    - Persistence warnings
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info("lookup_service", "Service information")
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "lookup_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "lookup_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )

        self.http_requests_in_progress = Gauge(
            "lookup_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
        )

        # ====================================================================
        # Lookup Metrics
        # ====================================================================
        self.lookups_total = Counter(
            "lookup_lookups_total",
            "Total lookups that reached a provider adapter",
            [MetricLabels.SERVICE, MetricLabels.OUTCOME],
        )

        self.lookups_denied_total = Counter(
            "lookup_lookups_denied_total",
            "Total lookups rejected before any side effect",
            [MetricLabels.REASON],
        )

        self.provider_call_duration_seconds = Histogram(
            "lookup_provider_call_duration_seconds",
            "External provider call duration in seconds",
            [MetricLabels.SERVICE],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )

        # ====================================================================
        # Ledger Metrics
        # ====================================================================
        self.credits_debited_total = Counter(
            "lookup_credits_debited_total",
            "Total credits deducted for lookups",
            [MetricLabels.SERVICE],
        )

        self.debits_clamped_total = Counter(
            "lookup_debits_clamped_total",
            "Debits clamped to a zero balance",
        )

        self.credit_adjustments_total = Counter(
            "lookup_credit_adjustments_total",
            "Admin credit adjustments",
            [MetricLabels.ACTION],
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.persistence_warnings_total = Counter(
            "lookup_persistence_warnings_total",
            "Audit or ledger writes that failed after the lookup outcome was known",
            [MetricLabels.OPERATION],
        )

        self.errors_total = Counter(
            "lookup_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_lookup(self, service: str, success: bool, duration: float) -> None:
        """Record a lookup that reached the adapter."""
        outcome = "success" if success else "failed"
        self.lookups_total.labels(service=service, outcome=outcome).inc()
        self.provider_call_duration_seconds.labels(service=service).observe(duration)

    def record_denial(self, reason: str) -> None:
        """Record a lookup rejected by a gate."""
        self.lookups_denied_total.labels(reason=reason).inc()

    def record_debit(self, service: str, amount: int, clamped: bool) -> None:
        """Record a ledger debit."""
        self.credits_debited_total.labels(service=service).inc(amount)
        if clamped:
            self.debits_clamped_total.inc()

    def record_persistence_warning(self, operation: str) -> None:
        """Record a swallowed persistence failure."""
        self.persistence_warnings_total.labels(operation=operation).inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = LookupMetrics()
