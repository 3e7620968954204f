"""
Prometheus metrics for the booking service.

All application metrics live on one ``MetricsRegistry`` instance so
tests and views share the same collectors.
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """
    Central metrics registry.

    Provides typed access to all application metrics.
    """

    def __init__(self, registry=None):
        self._registry = registry
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        kwargs = {'registry': self._registry} if self._registry is not None else {}
        return Counter(name, description, labels or [], **kwargs)

    def _create_histogram(self, name, description, labels=None, buckets=None):
        kwargs = {'registry': self._registry} if self._registry is not None else {}
        if buckets:
            kwargs['buckets'] = buckets
        return Histogram(name, description, labels or [], **kwargs)

    def _setup_metrics(self):
        # ===================================================================
        # Booking Metrics
        # ===================================================================
        self.bookings_created_total = self._create_counter(
            'bookings_created_total',
            'Bookings created',
            ['modality']
        )

        self.booking_transitions_total = self._create_counter(
            'booking_transitions_total',
            'Booking status transitions',
            ['from_status', 'to_status', 'result']
        )

        self.booking_effect_failures_total = self._create_counter(
            'booking_effect_failures_total',
            'Post-commit booking side effects that failed',
            ['effect']
        )

        self.availability_requests_total = self._create_counter(
            'availability_requests_total',
            'Availability lookups',
            ['result']  # ok, degraded
        )

        # ===================================================================
        # Integration Metrics
        # ===================================================================
        self.integration_calls_total = self._create_counter(
            'integration_calls_total',
            'Calls to external adapters',
            ['adapter', 'operation', 'result']
        )

        self.integration_call_duration_seconds = self._create_histogram(
            'integration_call_duration_seconds',
            'Duration of adapter calls',
            ['adapter', 'operation'],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
        )

        self.notifications_sent_total = self._create_counter(
            'notifications_sent_total',
            'Patient notifications attempted',
            ['channel', 'result']  # result: sent, failed, skipped
        )

        # ===================================================================
        # Audit Metrics
        # ===================================================================
        self.audit_entries_total = self._create_counter(
            'audit_entries_total',
            'Audit log entries written',
            ['action']
        )

        self.audit_write_failures_total = self._create_counter(
            'audit_write_failures_total',
            'Audit log writes that failed'
        )

        # ===================================================================
        # Security Metrics
        # ===================================================================
        self.phi_requests_blocked_total = self._create_counter(
            'phi_requests_blocked_total',
            'Requests rejected for carrying real PHI'
        )

        self.login_attempts_total = self._create_counter(
            'login_attempts_total',
            'Login attempts',
            ['result']
        )

    def track_duration(self, histogram_metric, **labels):
        """
        Decorator to track coroutine duration.

        Usage:
            @metrics.track_duration(metrics.integration_call_duration_seconds,
                                    adapter='fhir', operation='create_appointment')
            async def create_appointment(self, booking):
                ...
        """
        metric = histogram_metric.labels(**labels) if labels else histogram_metric

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                start_time = time.monotonic()
                try:
                    return await func(*args, **kwargs)
                finally:
                    metric.observe(time.monotonic() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()
