"""
Order lifecycle listeners.

Listeners are the orchestrator's only observability seam: every state change
is reported to each configured listener. Handlers may be sync or async, and
an exception raised by a listener is logged and otherwise ignored.

Example:
    >>> class AuditListener(OrderListener):
    ...     async def on_order_failed(self, order_id, result, duration):
    ...         await audit_log.write(order_id, result.message)
    >>>
    >>> orchestrator = OrderOrchestrator(..., listeners=[AuditListener()])
"""

from typing import Any

from fulfillz.monitoring.logging import OrderLogger
from fulfillz.monitoring.metrics import OrderMetrics
from fulfillz.monitoring.prometheus import PrometheusMetrics
from fulfillz.types import OrderRequest, OrderResult, OrderStep, ReconciliationFault


class OrderListener:
    """Base listener. Override the hooks you need; all default to no-ops."""

    def on_order_start(self, order_id: str, request: OrderRequest) -> Any:
        pass

    def on_step_enter(self, order_id: str, step: OrderStep) -> Any:
        pass

    def on_step_success(self, order_id: str, step: OrderStep, duration: float) -> Any:
        pass

    def on_step_failure(self, order_id: str, step: OrderStep, reason: str) -> Any:
        pass

    def on_compensation_start(self, order_id: str, action: str) -> Any:
        pass

    def on_compensation_complete(self, order_id: str, action: str) -> Any:
        pass

    def on_compensation_failed(self, order_id: str, action: str, error: Exception) -> Any:
        pass

    def on_reconciliation_fault(self, order_id: str, fault: ReconciliationFault) -> Any:
        """A fault that no compensation covers, e.g. a captured payment to refund."""

    def on_post_commit_warning(self, order_id: str, step: OrderStep, message: str) -> Any:
        pass

    def on_order_complete(self, order_id: str, result: OrderResult, duration: float) -> Any:
        pass

    def on_order_failed(self, order_id: str, result: OrderResult, duration: float) -> Any:
        pass


class LoggingOrderListener(OrderListener):
    """Writes the order lifecycle to structured logs."""

    def __init__(self, order_logger: OrderLogger | None = None):
        self.log = order_logger or OrderLogger()

    def on_order_start(self, order_id, request):
        self.log.order_started(order_id, request.customer_id, request.product_id, request.quantity)

    def on_step_enter(self, order_id, step):
        self.log.step_started(order_id, step.value)

    def on_step_success(self, order_id, step, duration):
        self.log.step_completed(order_id, step.value, duration * 1000)

    def on_step_failure(self, order_id, step, reason):
        self.log.step_failed(order_id, step.value, reason)

    def on_compensation_start(self, order_id, action):
        self.log.compensation_started(order_id, action)

    def on_compensation_complete(self, order_id, action):
        self.log.compensation_completed(order_id, action)

    def on_compensation_failed(self, order_id, action, error):
        self.log.compensation_failed(order_id, action, error)

    def on_reconciliation_fault(self, order_id, fault):
        self.log.reconciliation_required(order_id, fault.action, fault.error)

    def on_post_commit_warning(self, order_id, step, message):
        self.log.post_commit_warning(order_id, step.value, message)

    def on_order_complete(self, order_id, result, duration):
        self.log.order_finished(order_id, result.state, result.message, duration * 1000)

    def on_order_failed(self, order_id, result, duration):
        self.log.order_finished(order_id, result.state, result.message, duration * 1000)


class MetricsOrderListener(OrderListener):
    """Feeds in-memory and, optionally, Prometheus metrics."""

    def __init__(
        self, metrics: OrderMetrics | None = None, prometheus: PrometheusMetrics | None = None
    ):
        self.metrics = metrics or OrderMetrics()
        self.prometheus = prometheus

    def on_order_start(self, order_id, request):
        if self.prometheus:
            self.prometheus.order_started()

    def on_step_success(self, order_id, step, duration):
        if self.prometheus:
            self.prometheus.record_step_duration(step.value, duration)

    def on_step_failure(self, order_id, step, reason):
        if self.prometheus:
            self.prometheus.record_step_failure(step.value)

    def on_compensation_complete(self, order_id, action):
        self.metrics.record_compensation()
        if self.prometheus:
            self.prometheus.record_compensation(action)

    def on_compensation_failed(self, order_id, action, error):
        self.metrics.record_compensation(failed=True)
        if self.prometheus:
            self.prometheus.record_compensation(action, failed=True)
            self.prometheus.record_reconciliation_fault(action)

    def on_reconciliation_fault(self, order_id, fault):
        self.metrics.record_reconciliation_fault()
        if self.prometheus:
            self.prometheus.record_reconciliation_fault(fault.action)

    def on_post_commit_warning(self, order_id, step, message):
        self.metrics.record_post_commit_warning()
        if self.prometheus:
            self.prometheus.record_post_commit_warning(step.value)

    def on_order_complete(self, order_id, result, duration):
        self._finish(result, duration)

    def on_order_failed(self, order_id, result, duration):
        self._finish(result, duration)

    def _finish(self, result: OrderResult, duration: float) -> None:
        failed_step = result.failed_step.value if result.failed_step else None
        self.metrics.record_order(result.state, duration, failed_step)
        if self.prometheus:
            self.prometheus.order_finished(result.state, duration)
