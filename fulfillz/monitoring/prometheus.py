# ============================================
# FILE: fulfillz/monitoring/prometheus.py
# ============================================

"""
Prometheus metrics integration for fulfillz.

Quick Start:
    >>> from fulfillz.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
    >>>
    >>> from fulfillz.listeners import MetricsOrderListener
    >>> orchestrator = OrderOrchestrator(..., listeners=[MetricsOrderListener(prometheus=metrics)])
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from fulfillz.core.logger import get_logger
from fulfillz.types import OrderState

logger = get_logger(__name__)


class PrometheusMetrics:
    """
    Prometheus-compatible metrics collector for orders.

    Exposes the following metrics:
        - <prefix>_orders_total: Counter of finished orders by state
        - <prefix>_step_failures_total: Counter of failed steps
        - <prefix>_compensations_total: Counter of compensations by action and outcome
        - <prefix>_reconciliation_faults_total: Counter of faults needing manual repair
        - <prefix>_post_commit_warnings_total: Counter of shipping/notification problems
        - <prefix>_order_duration_seconds: Histogram of order durations
        - <prefix>_step_duration_seconds: Histogram of step durations
        - <prefix>_orders_in_flight: Gauge of orders currently being processed
    """

    def __init__(self, prefix: str = "fulfillz", registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "fulfillz")
            registry: Collector registry (default: the global prometheus registry)
        """
        self._prefix = prefix
        registry = registry if registry is not None else REGISTRY

        self._orders_total = Counter(
            f"{prefix}_orders_total",
            "Total finished orders",
            ["state"],
            registry=registry,
        )
        self._step_failures_total = Counter(
            f"{prefix}_step_failures_total",
            "Total failed order steps",
            ["step"],
            registry=registry,
        )
        self._compensations_total = Counter(
            f"{prefix}_compensations_total",
            "Total compensation actions executed",
            ["action", "outcome"],
            registry=registry,
        )
        self._reconciliation_faults_total = Counter(
            f"{prefix}_reconciliation_faults_total",
            "Total faults that need manual reconciliation",
            ["action"],
            registry=registry,
        )
        self._post_commit_warnings_total = Counter(
            f"{prefix}_post_commit_warnings_total",
            "Total post-commit shipping or notification problems",
            ["step"],
            registry=registry,
        )
        self._order_duration = Histogram(
            f"{prefix}_order_duration_seconds",
            "Order processing duration in seconds",
            buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry,
        )
        self._step_duration = Histogram(
            f"{prefix}_step_duration_seconds",
            "Order step duration in seconds",
            ["step"],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
            registry=registry,
        )
        self._in_flight = Gauge(
            f"{prefix}_orders_in_flight",
            "Number of orders currently being processed",
            registry=registry,
        )

    def order_started(self) -> None:
        self._in_flight.inc()

    def order_finished(self, state: OrderState, duration: float) -> None:
        self._in_flight.dec()
        self._orders_total.labels(state=state.value).inc()
        self._order_duration.observe(duration)

    def record_step_duration(self, step: str, duration: float) -> None:
        self._step_duration.labels(step=step).observe(duration)

    def record_step_failure(self, step: str) -> None:
        self._step_failures_total.labels(step=step).inc()

    def record_compensation(self, action: str, failed: bool = False) -> None:
        outcome = "failed" if failed else "completed"
        self._compensations_total.labels(action=action, outcome=outcome).inc()

    def record_reconciliation_fault(self, action: str) -> None:
        self._reconciliation_faults_total.labels(action=action).inc()

    def record_post_commit_warning(self, step: str) -> None:
        self._post_commit_warnings_total.labels(step=step).inc()


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Args:
        port: Port to listen on (default: 8000)
        addr: Address to bind to (default: 0.0.0.0 for all interfaces)
    """
    start_http_server(port, addr)
    logger.info(f"Prometheus metrics server started on port {port}")
