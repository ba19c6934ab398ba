"""
Tests for in-memory order metrics.
"""

from fulfillz.monitoring.metrics import OrderMetrics
from fulfillz.types import OrderState


class TestOrderMetrics:
    def test_initial_state(self):
        summary = OrderMetrics().get_metrics()

        assert summary["total_placed"] == 0
        assert summary["success_rate"] == "0.00%"
        assert summary["failures_by_step"] == {}

    def test_record_orders(self):
        metrics = OrderMetrics()
        metrics.record_order(OrderState.SUCCEEDED, 1.0)
        metrics.record_order(OrderState.SUCCEEDED, 2.0)
        metrics.record_order(OrderState.FAILED, 3.0, failed_step="capture_payment")

        summary = metrics.get_metrics()

        assert summary["total_placed"] == 3
        assert summary["total_succeeded"] == 2
        assert summary["total_failed"] == 1
        assert summary["average_duration"] == 2.0
        assert summary["success_rate"] == "66.67%"
        assert summary["failures_by_step"] == {"capture_payment": 1}

    def test_record_compensations(self):
        metrics = OrderMetrics()
        metrics.record_compensation()
        metrics.record_compensation(failed=True)

        summary = metrics.get_metrics()
        assert summary["total_compensations"] == 2
        assert summary["total_reconciliation_faults"] == 1

    def test_record_post_commit_warning(self):
        metrics = OrderMetrics()
        metrics.record_post_commit_warning()
        assert metrics.get_metrics()["total_post_commit_warnings"] == 1

    def test_summary_is_a_copy(self):
        metrics = OrderMetrics()
        metrics.record_order(OrderState.FAILED, 1.0, failed_step="reserve_inventory")

        summary = metrics.get_metrics()
        summary["failures_by_step"]["reserve_inventory"] = 99

        assert metrics.get_metrics()["failures_by_step"] == {"reserve_inventory": 1}
