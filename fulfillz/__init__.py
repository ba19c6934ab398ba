# ============================================
# FILE: fulfillz/__init__.py
# ============================================

"""
Fulfillz - Order Fulfillment Saga Orchestrator

Places an order across inventory, payment, shipping and notification
collaborators with a single call, rolling back reversible work through a
LIFO compensation stack when a step fails:
- Validation, reservation, authorization, capture and commit as one saga
- Idempotent compensations (release reservation, void authorization)
- Best-effort shipping and notifications after the point of no return
- Reconciliation faults for compensations that could not run
- Lifecycle listeners for structured logging and Prometheus metrics

Usage:
    >>> from fulfillz import OrderOrchestrator
    >>>
    >>> orchestrator = OrderOrchestrator.with_defaults(stock={"PROD-123": 10})
    >>> result = await orchestrator.place_order(
    ...     customer_id="CUST-001",
    ...     customer_email="customer@example.com",
    ...     product_id="PROD-123",
    ...     quantity=2,
    ...     card_number="4111111111111111",
    ...     cvv="123",
    ...     expiry_date="12/25",
    ...     shipping_address="123 Main Street, Springfield, IL 62701",
    ...     amount="99.99",
    ... )
    >>> result.success, result.transaction_id
    (True, 'TXN-...')

Custom collaborators:
    >>> orchestrator = OrderOrchestrator(
    ...     inventory=MyWarehouseLedger(),
    ...     payment=MyStripeGateway(),
    ...     shipping=MyCarrierScheduler(),
    ...     notifications=MyEmailDispatcher(),
    ...     config=OrchestratorConfig.from_env(),
    ... )
"""

from fulfillz.collaborators import (
    InMemoryInventoryLedger,
    InventoryLedger,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    PaymentGateway,
    ShippingScheduler,
    SimulatedPaymentGateway,
    SimulatedShippingScheduler,
    random_availability,
)
from fulfillz.compensation import CompensationAction, CompensationStack, UnwindReport

# Configuration
from fulfillz.core.config import OrchestratorConfig, configure, get_config
from fulfillz.core.exceptions import (
    CompensationError,
    ConfigurationError,
    FulfillmentError,
    InventoryError,
    NotificationError,
    OrderStepError,
    PaymentError,
    ShippingError,
    StepTimeoutError,
)

# Import listeners
from fulfillz.listeners import LoggingOrderListener, MetricsOrderListener, OrderListener
from fulfillz.orchestrator import OrderOrchestrator
from fulfillz.types import (
    AuthorizationToken,
    FailureKind,
    OrderRequest,
    OrderResult,
    OrderState,
    OrderStatusReport,
    OrderStep,
    ReconciliationFault,
    ReservationToken,
    TrackingToken,
    TransactionRecord,
)

__version__ = "0.1.0"

__all__ = [
    # Primary exports
    "OrderOrchestrator",
    # Configuration
    "OrchestratorConfig",
    "configure",
    "get_config",
    # Types and results
    "AuthorizationToken",
    "FailureKind",
    "OrderRequest",
    "OrderResult",
    "OrderState",
    "OrderStatusReport",
    "OrderStep",
    "ReconciliationFault",
    "ReservationToken",
    "TrackingToken",
    "TransactionRecord",
    # Compensation
    "CompensationAction",
    "CompensationStack",
    "UnwindReport",
    # Collaborators
    "InMemoryInventoryLedger",
    "InventoryLedger",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "PaymentGateway",
    "ShippingScheduler",
    "SimulatedPaymentGateway",
    "SimulatedShippingScheduler",
    "random_availability",
    # Listeners
    "LoggingOrderListener",
    "MetricsOrderListener",
    "OrderListener",
    # Exceptions
    "CompensationError",
    "ConfigurationError",
    "FulfillmentError",
    "InventoryError",
    "NotificationError",
    "OrderStepError",
    "PaymentError",
    "ShippingError",
    "StepTimeoutError",
]
