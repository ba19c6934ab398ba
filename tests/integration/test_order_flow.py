"""
End-to-end order flows with the full observability stack attached.
"""

import json
import logging

import pytest
from prometheus_client import CollectorRegistry

from fulfillz import (
    LoggingOrderListener,
    MetricsOrderListener,
    OrchestratorConfig,
    OrderOrchestrator,
)
from fulfillz.monitoring import PrometheusMetrics, setup_order_logging

pytestmark = pytest.mark.integration


@pytest.fixture
def stack():
    registry = CollectorRegistry()
    metrics = MetricsOrderListener(prometheus=PrometheusMetrics(registry=registry))
    orchestrator = OrderOrchestrator.with_defaults(
        stock={"PROD-123": 10, "PROD-456": 10, "PROD-789": 10},
        config=OrchestratorConfig(logging=False),
        listeners=[LoggingOrderListener(), metrics],
    )
    return orchestrator, metrics, registry


@pytest.mark.asyncio
async def test_sample_orders(stack, order):
    orchestrator, metrics, registry = stack

    first = await orchestrator.place_order(**order)
    second = await orchestrator.place_order(
        **{**order, "customer_id": "CUST-002", "product_id": "PROD-456", "amount": "49.98"}
    )
    third = await orchestrator.place_order(
        **{**order, "product_id": "PROD-789", "card_number": "123", "cvv": "99"}
    )

    assert first.success and second.success
    assert not third.success
    assert third.message == "Invalid payment information"

    summary = metrics.metrics.get_metrics()
    assert summary["total_placed"] == 3
    assert summary["success_rate"] == "66.67%"
    assert registry.get_sample_value("fulfillz_orders_total", {"state": "succeeded"}) == 2.0
    assert registry.get_sample_value("fulfillz_orders_total", {"state": "failed"}) == 1.0
    assert (
        registry.get_sample_value("fulfillz_step_failures_total", {"step": "validate_payment"})
        == 1.0
    )

    assert orchestrator.inventory.available("PROD-123") == 8
    assert orchestrator.inventory.available("PROD-456") == 8
    assert orchestrator.inventory.available("PROD-789") == 10


@pytest.mark.asyncio
async def test_json_logs_carry_order_id(stack, order, capsys):
    orchestrator, _, _ = stack
    setup_order_logging(log_level="INFO", json_format=True)

    result = await orchestrator.place_order(**order)

    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
    order_lines = [line for line in lines if line["logger"] == "fulfillz.orders"]
    assert order_lines
    assert {line["order_id"] for line in order_lines} == {result.order_id}
    assert any(line.get("step") == "capture_payment" for line in order_lines)
    assert order_lines[-1]["state"] == "succeeded"
    assert logging.getLogger("fulfillz").level == logging.INFO
