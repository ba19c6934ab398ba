"""
Order fulfillment orchestrator.

Drives the nine-step order saga across four collaborators:

    1. validate payment        (no side effect)
    2. check availability      (no side effect)
    3. validate address        (no side effect)
    4. reserve inventory       -> push "release_reservation"
    5. authorize payment       -> push "void_authorization"
    6. capture payment         -> discard "void_authorization"
    7. commit inventory        -> discard "release_reservation"
    8. schedule shipment       (best effort)
    9. send notifications      (best effort)

A failure in steps 1-7 unwinds the compensation stack in LIFO order and
returns a failed OrderResult. Steps 8-9 only add warnings to a successful
result. place_order() never raises.

Usage:
    >>> orchestrator = OrderOrchestrator.with_defaults(stock={"PROD-123": 10})
    >>> result = await orchestrator.place_order(
    ...     "CUST-001", "alice@example.com", "PROD-123", 1,
    ...     "4111111111111111", "123", "12/25",
    ...     "123 Main Street, Springfield, IL 62701", "99.99",
    ... )
    >>> result.success
    True
"""

import asyncio
import inspect
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from fulfillz.collaborators.base import (
    AvailabilityPolicy,
    InventoryLedger,
    NotificationDispatcher,
    PaymentGateway,
    ShippingScheduler,
)
from fulfillz.compensation import CompensationStack
from fulfillz.core.config import OrchestratorConfig, get_config
from fulfillz.core.exceptions import CompensationError, OrderStepError, StepTimeoutError
from fulfillz.core.logger import get_logger
from fulfillz.listeners import OrderListener
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

logger = get_logger(__name__)

RELEASE_RESERVATION = "release_reservation"
VOID_AUTHORIZATION = "void_authorization"


@dataclass
class _OrderExecution:
    """Mutable state of one place_order() call. Never shared between calls."""

    order_id: str
    request: OrderRequest
    state: OrderState = OrderState.VALIDATING
    stack: CompensationStack = field(default_factory=CompensationStack)
    reservation: ReservationToken | None = None
    authorization: AuthorizationToken | None = None
    transaction: TransactionRecord | None = None
    tracking: TrackingToken | None = None
    warnings: list[str] = field(default_factory=list)

    def advance(self, state: OrderState) -> None:
        if state != self.state:
            logger.debug(f"{self.order_id}: {self.state.value} -> {state.value}")
        self.state = state


class OrderOrchestrator:
    """
    Saga controller for order placement.

    Collaborators are injected so alternate or fake implementations can be
    used without touching the orchestrator.

    Args:
        inventory: Inventory ledger
        payment: Payment gateway
        shipping: Shipping scheduler
        notifications: Notification dispatcher
        config: Orchestrator configuration (default: global config)
        listeners: Lifecycle listeners (default: the listeners built by config)
    """

    def __init__(
        self,
        inventory: InventoryLedger,
        payment: PaymentGateway,
        shipping: ShippingScheduler,
        notifications: NotificationDispatcher,
        *,
        config: OrchestratorConfig | None = None,
        listeners: Iterable[OrderListener] | None = None,
    ):
        self.inventory = inventory
        self.payment = payment
        self.shipping = shipping
        self.notifications = notifications
        self._config = config or get_config()
        self._listeners: list[OrderListener] = (
            list(listeners) if listeners is not None else list(self._config.listeners)
        )
        self._statuses: OrderedDict[str, OrderStatusReport] = OrderedDict()

    @classmethod
    def with_defaults(
        cls,
        stock: dict[str, int] | None = None,
        *,
        availability: AvailabilityPolicy | None = None,
        config: OrchestratorConfig | None = None,
        listeners: Iterable[OrderListener] | None = None,
    ) -> "OrderOrchestrator":
        """Build an orchestrator over the in-memory and simulated collaborators."""
        from fulfillz.collaborators import (
            InMemoryInventoryLedger,
            LoggingNotificationDispatcher,
            SimulatedPaymentGateway,
            SimulatedShippingScheduler,
        )

        return cls(
            InMemoryInventoryLedger(stock, availability=availability),
            SimulatedPaymentGateway(),
            SimulatedShippingScheduler(),
            LoggingNotificationDispatcher(),
            config=config,
            listeners=listeners,
        )

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def listeners(self) -> list[OrderListener]:
        return list(self._listeners)

    def add_listener(self, listener: OrderListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def place_order(
        self,
        customer_id: str,
        customer_email: str,
        product_id: str,
        quantity: int,
        card_number: str,
        cvv: str,
        expiry_date: str,
        shipping_address: str,
        amount: Decimal | float | int | str,
    ) -> OrderResult:
        """
        Place an order with a single call.

        Returns:
            The terminal OrderResult. Failures are returned, never raised.
        """
        order_id = self._new_order_id()
        request = OrderRequest.create(
            customer_id=customer_id,
            customer_email=customer_email,
            product_id=product_id,
            quantity=quantity,
            card_number=card_number,
            cvv=cvv,
            expiry_date=expiry_date,
            shipping_address=shipping_address,
            amount=_coerce_amount(amount),
        )
        execution = _OrderExecution(order_id=order_id, request=request)
        started = time.perf_counter()

        self._remember(OrderStatusReport(order_id=order_id, state=execution.state))
        await self._notify("on_order_start", order_id, request)

        try:
            await self._validate(execution)
            await self._transact(execution)
        except OrderStepError as e:
            result = await self._fail(execution, OrderStep(e.step), str(e))
            await self._finish(execution, result, started)
            return result

        await self._post_commit(execution)
        result = OrderResult.succeeded(
            order_id=order_id,
            transaction_id=execution.transaction.transaction_id,
            tracking_number=execution.tracking.tracking_number if execution.tracking else None,
            warnings=tuple(execution.warnings),
        )
        await self._finish(execution, result, started)
        return result

    def get_order_status(self, order_id: str) -> OrderStatusReport | None:
        """Summary of an order handled by this orchestrator, if still remembered."""
        return self._statuses.get(order_id)

    # ------------------------------------------------------------------
    # Steps 1-3: validation
    # ------------------------------------------------------------------

    async def _validate(self, execution: _OrderExecution) -> None:
        request = execution.request
        await self._run_step(
            execution,
            OrderStep.VALIDATE_PAYMENT,
            self.payment.validate,
            request.card_number,
            request.cvv,
            request.expiry_date,
            precondition=_check_amount,
        )
        await self._run_step(
            execution,
            OrderStep.CHECK_AVAILABILITY,
            self.inventory.check_availability,
            request.product_id,
            request.quantity,
            precondition=_check_quantity,
        )
        await self._run_step(
            execution,
            OrderStep.VALIDATE_ADDRESS,
            self.shipping.validate_address,
            request.shipping_address,
        )

    # ------------------------------------------------------------------
    # Steps 4-7: reversible work
    # ------------------------------------------------------------------

    async def _transact(self, execution: _OrderExecution) -> None:
        request = execution.request
        stack = execution.stack

        reservation = await self._run_step(
            execution,
            OrderStep.RESERVE_INVENTORY,
            self.inventory.reserve,
            request.product_id,
            request.quantity,
        )
        execution.reservation = reservation
        stack.push(
            RELEASE_RESERVATION,
            lambda: self.inventory.release(reservation),
            f"Release reservation {reservation.reservation_id}",
        )

        authorization = await self._run_step(
            execution, OrderStep.AUTHORIZE_PAYMENT, self.payment.authorize, request.amount
        )
        execution.authorization = authorization
        stack.push(
            VOID_AUTHORIZATION,
            lambda: self.payment.void(authorization),
            f"Void authorization {authorization.authorization_id}",
        )

        execution.transaction = await self._run_step(
            execution, OrderStep.CAPTURE_PAYMENT, self.payment.capture, authorization
        )
        # Captured funds cannot be voided; only the reservation is still reversible.
        stack.discard(VOID_AUTHORIZATION)

        await self._run_step(
            execution,
            OrderStep.COMMIT_INVENTORY,
            self.inventory.commit,
            reservation,
            required=False,
        )
        stack.discard(RELEASE_RESERVATION)

    # ------------------------------------------------------------------
    # Steps 8-9: best effort
    # ------------------------------------------------------------------

    async def _post_commit(self, execution: _OrderExecution) -> None:
        request = execution.request
        order_id = execution.order_id

        step = OrderStep.SCHEDULE_SHIPMENT
        execution.advance(step.state)
        await self._notify("on_step_enter", order_id, step)
        started = time.perf_counter()
        try:
            execution.tracking = await self._call(
                self.shipping.schedule, order_id, request.shipping_address
            )
        except TimeoutError:
            timeout = self._config.step_timeout
            await self._warn(
                execution, step, f"{step.failure_message}: timed out after {timeout}s"
            )
        except Exception as e:
            await self._warn(execution, step, f"{step.failure_message}: {e}")
        else:
            if execution.tracking is None:
                await self._warn(execution, step, step.failure_message)
            else:
                await self._notify("on_step_success", order_id, step, time.perf_counter() - started)

        step = OrderStep.SEND_NOTIFICATIONS
        execution.advance(step.state)
        await self._notify("on_step_enter", order_id, step)
        started = time.perf_counter()

        sends: list[tuple[str, Any, tuple]] = [
            (
                "order confirmation",
                self.notifications.send_confirmation,
                (request.customer_email, order_id),
            ),
            (
                "payment receipt",
                self.notifications.send_receipt,
                (request.customer_email, execution.transaction.transaction_id, request.amount),
            ),
        ]
        if execution.tracking is not None:
            sends.append(
                (
                    "shipping notice",
                    self.notifications.send_shipping_notice,
                    (request.customer_email, execution.tracking.tracking_number),
                )
            )

        delivered = True
        for label, send, args in sends:
            try:
                await self._call(send, *args)
            except Exception as e:
                delivered = False
                await self._warn(execution, step, f"{label} not sent: {e}")

        if delivered:
            await self._notify("on_step_success", order_id, step, time.perf_counter() - started)

    async def _warn(self, execution: _OrderExecution, step: OrderStep, message: str) -> None:
        execution.warnings.append(message)
        await self._notify("on_post_commit_warning", execution.order_id, step, message)

    # ------------------------------------------------------------------
    # Failure path
    # ------------------------------------------------------------------

    async def _fail(self, execution: _OrderExecution, step: OrderStep, reason: str) -> OrderResult:
        order_id = execution.order_id

        async def on_start(action: str) -> None:
            await self._notify("on_compensation_start", order_id, action)

        async def on_complete(action: str) -> None:
            await self._notify("on_compensation_complete", order_id, action)

        async def on_failed(action: str, error: CompensationError) -> None:
            await self._notify("on_compensation_failed", order_id, action, error)

        report = await execution.stack.unwind(
            order_id,
            timeout=self._config.compensation_timeout,
            on_start=on_start,
            on_complete=on_complete,
            on_failed=on_failed,
        )
        faults = list(report.faults)

        transaction_id = None
        if execution.transaction is not None:
            # Capture is the point of no return; the refund happens out of band.
            transaction_id = execution.transaction.transaction_id
            logger.critical(
                f"Order {order_id} failed after payment {transaction_id} was captured; "
                "refund required"
            )
            refund = ReconciliationFault(
                order_id=order_id,
                action="refund_payment",
                error=f"Captured payment {transaction_id} must be refunded: {reason}",
                error_type="CapturedPaymentNotRefunded",
            )
            faults.append(refund)
            await self._notify("on_reconciliation_fault", order_id, refund)

        if step.failure_kind is FailureKind.TRANSACTIONAL:
            try:
                await self._call(
                    self.notifications.send_cancellation,
                    execution.request.customer_email,
                    order_id,
                    reason,
                )
            except Exception as e:
                logger.warning(f"Cancellation notice for {order_id} not sent: {e}")

        return OrderResult.failed(
            order_id=order_id,
            message=reason,
            failed_step=step,
            transaction_id=transaction_id,
            compensated_steps=tuple(report.executed),
            reconciliation_faults=tuple(faults),
        )

    async def _finish(
        self, execution: _OrderExecution, result: OrderResult, started: float
    ) -> None:
        execution.advance(result.state)
        duration = time.perf_counter() - started

        self._remember(
            OrderStatusReport(
                order_id=execution.order_id,
                state=result.state,
                message=result.message,
                transaction_id=result.transaction_id,
                tracking_number=result.tracking_number,
                warnings=list(result.warnings),
            )
        )

        event = "on_order_complete" if result.success else "on_order_failed"
        await self._notify(event, execution.order_id, result, duration)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _run_step(
        self,
        execution: _OrderExecution,
        step: OrderStep,
        fn,
        *args,
        required: bool = True,
        precondition: Callable[[OrderRequest], str | None] | None = None,
    ) -> Any:
        """
        Run one forward collaborator call.

        A failed precondition, a falsy result (when required), an exception or
        a timeout all fail the step with OrderStepError carrying the
        caller-facing reason. The precondition runs before the collaborator is
        called and returns the failure reason, or None when the request is fine.
        """
        execution.advance(step.state)
        await self._notify("on_step_enter", execution.order_id, step)
        started = time.perf_counter()

        if precondition is not None:
            problem = precondition(execution.request)
            if problem is not None:
                await self._notify("on_step_failure", execution.order_id, step, problem)
                raise OrderStepError(step.value, problem)

        try:
            result = await self._call(fn, *args)
        except TimeoutError as e:
            timeout_error = StepTimeoutError(step.value, self._config.step_timeout)
            reason = f"{step.failure_message}: {timeout_error}"
            await self._notify("on_step_failure", execution.order_id, step, reason)
            raise OrderStepError(step.value, reason) from e
        except Exception as e:
            reason = f"{step.failure_message}: {e}"
            await self._notify("on_step_failure", execution.order_id, step, reason)
            raise OrderStepError(step.value, reason) from e

        if required and not result:
            await self._notify("on_step_failure", execution.order_id, step, step.failure_message)
            raise OrderStepError(step.value, step.failure_message)

        duration = time.perf_counter() - started
        await self._notify("on_step_success", execution.order_id, step, duration)
        return result

    async def _call(self, fn, *args) -> Any:
        """Call a collaborator under the step timeout. Accepts sync callables too."""
        result = fn(*args)
        if not inspect.isawaitable(result):
            return result
        timeout = self._config.step_timeout
        if timeout is None:
            return await result
        return await asyncio.wait_for(result, timeout=timeout)

    async def _notify(self, event_name: str, *args) -> None:
        """Notify all listeners of an event."""
        for listener in self._listeners:
            try:
                handler = getattr(listener, event_name, None)
                if handler:
                    result = handler(*args)
                    if inspect.iscoroutine(result):
                        await result
            except Exception as e:
                logger.warning(f"Listener {type(listener).__name__}.{event_name} error: {e}")

    def _new_order_id(self) -> str:
        return f"{self._config.order_id_prefix}-{uuid.uuid4().hex[:12].upper()}"

    def _remember(self, report: OrderStatusReport) -> None:
        limit = self._config.status_history
        if limit == 0:
            return
        self._statuses[report.order_id] = report
        self._statuses.move_to_end(report.order_id)
        while len(self._statuses) > limit:
            self._statuses.popitem(last=False)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(inventory={type(self.inventory).__name__}, "
            f"payment={type(self.payment).__name__}, shipping={type(self.shipping).__name__}, "
            f"notifications={type(self.notifications).__name__})"
        )


def _coerce_amount(amount: Any) -> Decimal:
    """Convert an amount to Decimal; unparseable input becomes NaN and fails validation."""
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, bool):
        return Decimal("NaN")
    try:
        return Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return Decimal("NaN")


def _check_amount(request: OrderRequest) -> str | None:
    if request.amount.is_finite() and request.amount > 0:
        return None
    return "Invalid order amount"


def _check_quantity(request: OrderRequest) -> str | None:
    quantity = request.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return "Invalid order quantity"
    return None
