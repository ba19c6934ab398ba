"""
Pytest configuration and shared fixtures for order fulfillment tests
"""

import logging
from decimal import Decimal

import pytest

from fulfillz.collaborators import (
    InMemoryInventoryLedger,
    LoggingNotificationDispatcher,
    SimulatedPaymentGateway,
    SimulatedShippingScheduler,
)
from fulfillz.core.config import OrchestratorConfig
from fulfillz.core.logger import set_logger
from fulfillz.listeners import OrderListener
from fulfillz.monitoring.logging import order_context
from fulfillz.orchestrator import OrderOrchestrator

# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture(autouse=True)
def reset_logging_state():
    """
    Keep logging state from leaking between tests.

    Some tests install a custom logger or configure the 'fulfillz' logger
    handlers; both are restored afterwards.
    """
    root = logging.getLogger("fulfillz")
    handlers = list(root.handlers)
    level = root.level
    token = order_context.set({})

    yield

    set_logger(None)
    order_context.reset(token)
    root.handlers = handlers
    root.setLevel(level)


# ============================================
# COLLABORATORS
# ============================================


@pytest.fixture
def ledger():
    return InMemoryInventoryLedger({"PROD-123": 10, "PROD-456": 5})


@pytest.fixture
def gateway():
    return SimulatedPaymentGateway()


@pytest.fixture
def scheduler():
    return SimulatedShippingScheduler()


@pytest.fixture
def dispatcher():
    return LoggingNotificationDispatcher()


# ============================================
# LISTENERS
# ============================================


class RecordingListener(OrderListener):
    """Records every lifecycle event as a (name, *args) tuple."""

    def __init__(self):
        self.events = []

    def _record(self, name, *args):
        self.events.append((name, *args))

    def on_order_start(self, order_id, request):
        self._record("order_start", order_id)

    def on_step_enter(self, order_id, step):
        self._record("step_enter", step)

    def on_step_success(self, order_id, step, duration):
        self._record("step_success", step)

    def on_step_failure(self, order_id, step, reason):
        self._record("step_failure", step, reason)

    def on_compensation_start(self, order_id, action):
        self._record("compensation_start", action)

    def on_compensation_complete(self, order_id, action):
        self._record("compensation_complete", action)

    def on_compensation_failed(self, order_id, action, error):
        self._record("compensation_failed", action)

    def on_reconciliation_fault(self, order_id, fault):
        self._record("reconciliation_fault", fault.action)

    def on_post_commit_warning(self, order_id, step, message):
        self._record("post_commit_warning", step, message)

    def on_order_complete(self, order_id, result, duration):
        self._record("order_complete", result.success)

    def on_order_failed(self, order_id, result, duration):
        self._record("order_failed", result.message)

    def names(self, prefix=""):
        return [event[0] for event in self.events if event[0].startswith(prefix)]

    def compensations(self):
        return [event[1] for event in self.events if event[0] == "compensation_start"]


@pytest.fixture
def recorder():
    return RecordingListener()


# ============================================
# ORCHESTRATOR
# ============================================


@pytest.fixture
def config():
    """Config with short timeouts and no default listeners."""
    return OrchestratorConfig(step_timeout=1.0, compensation_timeout=1.0, logging=False)


@pytest.fixture
def orchestrator(ledger, gateway, scheduler, dispatcher, config, recorder):
    return OrderOrchestrator(
        ledger, gateway, scheduler, dispatcher, config=config, listeners=[recorder]
    )


@pytest.fixture
def order():
    """Keyword arguments for a valid order of 2 x PROD-123."""
    return {
        "customer_id": "CUST-001",
        "customer_email": "alice@example.com",
        "product_id": "PROD-123",
        "quantity": 2,
        "card_number": "4111111111111111",
        "cvv": "123",
        "expiry_date": "12/25",
        "shipping_address": "123 Main Street, Springfield, IL 62701",
        "amount": Decimal("99.99"),
    }
