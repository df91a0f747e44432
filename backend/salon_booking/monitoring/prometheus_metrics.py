"""
Prometheus metrics module for the salon booking engine.

Service timings are fed by the @measure_operation decorator; booking
locks, side effects and recurrence outcomes are recorded at their call sites.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "salon_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "salon_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "salon_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_lock_total = Counter(
    "salon_booking_lock_total",
    "Advisory booking lock outcomes",
    ["action", "outcome"],
    registry=REGISTRY,
)

side_effects_total = Counter(
    "salon_side_effects_total",
    "Best-effort side effect outcomes",
    ["kind", "outcome"],
    registry=REGISTRY,
)

recurrence_occurrences_total = Counter(
    "salon_recurrence_occurrences_total",
    "Repeat booking occurrences by outcome",
    ["pattern", "outcome"],
    registry=REGISTRY,
)

slots_computed = Histogram(
    "salon_slots_computed",
    "Number of bookable slots returned per availability query",
    registry=REGISTRY,
    buckets=(0, 1, 5, 10, 20, 40, 80),
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'commit_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_booking_lock(action: str, outcome: str) -> None:
        booking_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_side_effect(kind: str, outcome: str) -> None:
        side_effects_total.labels(kind=kind, outcome=outcome).inc()

    @staticmethod
    def record_recurrence(pattern: str, outcome: str, count: int = 1) -> None:
        if count > 0:
            recurrence_occurrences_total.labels(pattern=pattern, outcome=outcome).inc(count)

    @staticmethod
    def observe_slots(count: int) -> None:
        slots_computed.observe(count)

    @staticmethod
    def get_metrics() -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
