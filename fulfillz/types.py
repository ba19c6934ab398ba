# ============================================
# FILE: fulfillz/types.py
# ============================================

"""
All type definitions, enums, and dataclasses

Tokens are created inside a single place_order() call and consumed either by
the next forward step or by a compensation action. None of them outlive the
call; OrderResult is the only value handed back to the caller.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class OrderState(Enum):
    """
    Orchestrator state for a single order.

    Transitions move strictly forward. Any failure before SHIPPING ends in
    FAILED; problems in SHIPPING or NOTIFYING still end in SUCCEEDED.
    """

    VALIDATING = "validating"
    RESERVING = "reserving"
    AUTHORIZING = "authorizing"
    CAPTURING = "capturing"
    COMMITTING = "committing"
    SHIPPING = "shipping"
    NOTIFYING = "notifying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderState.SUCCEEDED, OrderState.FAILED)


class FailureKind(Enum):
    """Failure taxonomy"""

    VALIDATION = "validation"
    """Bad input detected before any side effect. Nothing to compensate."""

    TRANSACTIONAL = "transactional"
    """Reserve/authorize/capture/commit failed. The compensation stack is unwound."""

    POST_COMMIT = "post_commit"
    """Shipping or notification problem after commit. Reported, never fails the order."""

    COMPENSATION = "compensation"
    """A compensation action failed. Needs manual reconciliation."""


class OrderStep(Enum):
    """The nine steps of the fulfillment workflow, in execution order."""

    VALIDATE_PAYMENT = "validate_payment"
    CHECK_AVAILABILITY = "check_availability"
    VALIDATE_ADDRESS = "validate_address"
    RESERVE_INVENTORY = "reserve_inventory"
    AUTHORIZE_PAYMENT = "authorize_payment"
    CAPTURE_PAYMENT = "capture_payment"
    COMMIT_INVENTORY = "commit_inventory"
    SCHEDULE_SHIPMENT = "schedule_shipment"
    SEND_NOTIFICATIONS = "send_notifications"

    @property
    def state(self) -> OrderState:
        return _STEP_STATES[self]

    @property
    def failure_message(self) -> str:
        return _STEP_FAILURE_MESSAGES[self]

    @property
    def failure_kind(self) -> FailureKind:
        if self in _VALIDATION_STEPS:
            return FailureKind.VALIDATION
        if self in _POST_COMMIT_STEPS:
            return FailureKind.POST_COMMIT
        return FailureKind.TRANSACTIONAL


_STEP_STATES = {
    OrderStep.VALIDATE_PAYMENT: OrderState.VALIDATING,
    OrderStep.CHECK_AVAILABILITY: OrderState.VALIDATING,
    OrderStep.VALIDATE_ADDRESS: OrderState.VALIDATING,
    OrderStep.RESERVE_INVENTORY: OrderState.RESERVING,
    OrderStep.AUTHORIZE_PAYMENT: OrderState.AUTHORIZING,
    OrderStep.CAPTURE_PAYMENT: OrderState.CAPTURING,
    OrderStep.COMMIT_INVENTORY: OrderState.COMMITTING,
    OrderStep.SCHEDULE_SHIPMENT: OrderState.SHIPPING,
    OrderStep.SEND_NOTIFICATIONS: OrderState.NOTIFYING,
}

_STEP_FAILURE_MESSAGES = {
    OrderStep.VALIDATE_PAYMENT: "Invalid payment information",
    OrderStep.CHECK_AVAILABILITY: "Product not available",
    OrderStep.VALIDATE_ADDRESS: "Invalid shipping address",
    OrderStep.RESERVE_INVENTORY: "Failed to reserve inventory",
    OrderStep.AUTHORIZE_PAYMENT: "Payment authorization failed",
    OrderStep.CAPTURE_PAYMENT: "Payment capture failed",
    OrderStep.COMMIT_INVENTORY: "Inventory commit failed",
    OrderStep.SCHEDULE_SHIPMENT: "Shipment scheduling failed",
    OrderStep.SEND_NOTIFICATIONS: "Notification dispatch failed",
}

_VALIDATION_STEPS = frozenset(
    {OrderStep.VALIDATE_PAYMENT, OrderStep.CHECK_AVAILABILITY, OrderStep.VALIDATE_ADDRESS}
)
_POST_COMMIT_STEPS = frozenset({OrderStep.SCHEDULE_SHIPMENT, OrderStep.SEND_NOTIFICATIONS})


@dataclass(frozen=True)
class OrderRequest:
    """Immutable order input, created once per place_order() call."""

    customer_id: str
    customer_email: str
    product_id: str
    quantity: int
    card_number: str
    cvv: str
    expiry_date: str
    shipping_address: str
    amount: Decimal

    @classmethod
    def create(
        cls,
        customer_id: str,
        customer_email: str,
        product_id: str,
        quantity: int,
        card_number: str,
        cvv: str,
        expiry_date: str,
        shipping_address: str,
        amount: Decimal | float | int | str,
    ) -> "OrderRequest":
        """Build a request, coercing amount to Decimal through its string form."""
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return cls(
            customer_id=customer_id,
            customer_email=customer_email,
            product_id=product_id,
            quantity=quantity,
            card_number=card_number,
            cvv=cvv,
            expiry_date=expiry_date,
            shipping_address=shipping_address,
            amount=amount,
        )

    @property
    def masked_card(self) -> str:
        return f"****{(self.card_number or '')[-4:]}"


@dataclass(frozen=True)
class ReservationToken:
    """Provisional hold on stock. Released or committed exactly once."""

    reservation_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True)
class AuthorizationToken:
    """Provisional hold on funds. Voided or captured exactly once."""

    authorization_id: str
    amount: Decimal


@dataclass(frozen=True)
class TransactionRecord:
    """Captured payment. Terminal: refunds happen outside the rollback path."""

    transaction_id: str
    authorization_id: str
    amount: Decimal


@dataclass(frozen=True)
class TrackingToken:
    """Scheduled shipment. Best effort, never recalled."""

    tracking_number: str
    order_id: str
    address: str


@dataclass(frozen=True)
class ReconciliationFault:
    """A failed compensation or a captured payment, either needing manual reconciliation."""

    order_id: str
    action: str
    error: str
    error_type: str


@dataclass(frozen=True)
class OrderResult:
    """
    Terminal outcome of a place_order() call.

    success, order_id, transaction_id and message form the public contract.
    The remaining fields are diagnostics for callers and operators.
    """

    success: bool
    order_id: str | None
    message: str
    transaction_id: str | None = None
    failed_step: OrderStep | None = None
    failure_kind: FailureKind | None = None
    tracking_number: str | None = None
    compensated_steps: tuple[str, ...] = ()
    reconciliation_faults: tuple[ReconciliationFault, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def succeeded(
        cls,
        order_id: str,
        transaction_id: str,
        tracking_number: str | None = None,
        warnings: tuple[str, ...] = (),
    ) -> "OrderResult":
        return cls(
            success=True,
            order_id=order_id,
            message="Order placed successfully",
            transaction_id=transaction_id,
            tracking_number=tracking_number,
            warnings=tuple(warnings),
        )

    @classmethod
    def failed(
        cls,
        order_id: str,
        message: str,
        failed_step: OrderStep,
        transaction_id: str | None = None,
        compensated_steps: tuple[str, ...] = (),
        reconciliation_faults: tuple[ReconciliationFault, ...] = (),
    ) -> "OrderResult":
        return cls(
            success=False,
            order_id=order_id,
            message=message,
            transaction_id=transaction_id,
            failed_step=failed_step,
            failure_kind=failed_step.failure_kind,
            compensated_steps=tuple(compensated_steps),
            reconciliation_faults=tuple(reconciliation_faults),
        )

    @property
    def state(self) -> OrderState:
        return OrderState.SUCCEEDED if self.success else OrderState.FAILED

    @property
    def needs_reconciliation(self) -> bool:
        """True if a fault (failed compensation or uncompensated capture) needs an operator."""
        return bool(self.reconciliation_faults)


@dataclass
class OrderStatusReport:
    """Summary kept by the orchestrator for get_order_status()."""

    order_id: str
    state: OrderState
    message: str = ""
    transaction_id: str | None = None
    tracking_number: str | None = None
    warnings: list[str] = field(default_factory=list)

    def describe(self) -> str:
        lines = [
            f"Order Status for {self.order_id}:",
            f"- State: {self.state.value}",
            f"- Payment: {self.transaction_id or 'none'}",
            f"- Shipping: {self.tracking_number or 'not scheduled'}",
        ]
        if self.message:
            lines.append(f"- Message: {self.message}")
        return "\n".join(lines)
