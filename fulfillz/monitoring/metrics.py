# ============================================
# FILE: fulfillz/monitoring/metrics.py
# ============================================

"""
Metrics collection for orders
"""

from typing import Any

from fulfillz.types import OrderState


class OrderMetrics:
    """Collect and expose order metrics"""

    def __init__(self):
        self.metrics = {
            "total_placed": 0,
            "total_succeeded": 0,
            "total_failed": 0,
            "total_compensations": 0,
            "total_reconciliation_faults": 0,
            "total_post_commit_warnings": 0,
            "average_duration": 0.0,
            "failures_by_step": {},
        }

    def record_order(self, state: OrderState, duration: float, failed_step: str | None = None):
        """Record a finished order"""
        self.metrics["total_placed"] += 1
        if state == OrderState.SUCCEEDED:
            self.metrics["total_succeeded"] += 1
        else:
            self.metrics["total_failed"] += 1
            if failed_step:
                by_step = self.metrics["failures_by_step"]
                by_step[failed_step] = by_step.get(failed_step, 0) + 1
        self._update_average_duration(duration)

    def record_compensation(self, failed: bool = False) -> None:
        self.metrics["total_compensations"] += 1
        if failed:
            self.record_reconciliation_fault()

    def record_reconciliation_fault(self) -> None:
        self.metrics["total_reconciliation_faults"] += 1

    def record_post_commit_warning(self) -> None:
        self.metrics["total_post_commit_warnings"] += 1

    def _update_average_duration(self, duration: float) -> None:
        total_time = self.metrics["average_duration"] * (self.metrics["total_placed"] - 1)
        self.metrics["average_duration"] = (total_time + duration) / self.metrics["total_placed"]

    def get_metrics(self) -> dict[str, Any]:
        """Get all metrics"""
        success_rate = (
            self.metrics["total_succeeded"] / self.metrics["total_placed"] * 100
            if self.metrics["total_placed"] > 0
            else 0
        )

        return {
            **self.metrics,
            "failures_by_step": dict(self.metrics["failures_by_step"]),
            "success_rate": f"{success_rate:.2f}%",
        }
