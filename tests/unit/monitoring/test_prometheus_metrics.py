"""
Tests for Prometheus metrics.

Each test gets its own CollectorRegistry so counters never leak between tests.
"""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from fulfillz.monitoring.prometheus import PrometheusMetrics, start_metrics_server
from fulfillz.types import OrderState


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return PrometheusMetrics(registry=registry)


class TestPrometheusMetrics:
    """Tests for PrometheusMetrics class."""

    def test_order_lifecycle(self, metrics, registry):
        metrics.order_started()
        assert registry.get_sample_value("fulfillz_orders_in_flight") == 1.0

        metrics.order_finished(OrderState.SUCCEEDED, 0.2)

        assert registry.get_sample_value("fulfillz_orders_in_flight") == 0.0
        assert (
            registry.get_sample_value("fulfillz_orders_total", {"state": "succeeded"}) == 1.0
        )
        assert registry.get_sample_value("fulfillz_order_duration_seconds_count") == 1.0

    def test_step_metrics(self, metrics, registry):
        metrics.record_step_duration("reserve_inventory", 0.01)
        metrics.record_step_failure("capture_payment")

        assert (
            registry.get_sample_value(
                "fulfillz_step_duration_seconds_count", {"step": "reserve_inventory"}
            )
            == 1.0
        )
        assert (
            registry.get_sample_value(
                "fulfillz_step_failures_total", {"step": "capture_payment"}
            )
            == 1.0
        )

    def test_compensation_outcomes(self, metrics, registry):
        metrics.record_compensation("release_reservation")
        metrics.record_compensation("void_authorization", failed=True)

        assert (
            registry.get_sample_value(
                "fulfillz_compensations_total",
                {"action": "release_reservation", "outcome": "completed"},
            )
            == 1.0
        )
        assert (
            registry.get_sample_value(
                "fulfillz_compensations_total",
                {"action": "void_authorization", "outcome": "failed"},
            )
            == 1.0
        )

    def test_post_commit_warnings(self, metrics, registry):
        metrics.record_post_commit_warning("schedule_shipment")
        assert (
            registry.get_sample_value(
                "fulfillz_post_commit_warnings_total", {"step": "schedule_shipment"}
            )
            == 1.0
        )

    def test_reconciliation_faults(self, metrics, registry):
        metrics.record_reconciliation_fault("refund_payment")
        assert (
            registry.get_sample_value(
                "fulfillz_reconciliation_faults_total", {"action": "refund_payment"}
            )
            == 1.0
        )

    def test_custom_prefix(self, registry):
        metrics = PrometheusMetrics(prefix="shop", registry=registry)
        metrics.order_started()
        assert registry.get_sample_value("shop_orders_in_flight") == 1.0


def test_start_metrics_server():
    with patch("fulfillz.monitoring.prometheus.start_http_server") as start:
        start_metrics_server(port=9100, addr="127.0.0.1")
    start.assert_called_once_with(9100, "127.0.0.1")
