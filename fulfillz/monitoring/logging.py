"""
Structured logging for order fulfillment

Every record emitted while an order runs carries the order id, the current
step and a correlation id, taken from a per-task ContextVar. Console output
is either one JSON object per line or a plain text line with the same fields.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fulfillz.types import OrderState

# Context of the order running in the current task
order_context: ContextVar[dict[str, Any]] = ContextVar("order_context", default={})

_CONTEXT_KEYS = ("order_id", "step", "correlation_id")
_FILTER_DEFAULTS = {"order_id": "unknown", "step": "", "correlation_id": ""}
_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(order_id)s:%(step)s] - %(message)s"


class OrderJsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Order context is written first so that values passed through `extra=`
    replace it.
    """

    extra_fields = (
        "order_id",
        "step",
        "correlation_id",
        "action",
        "state",
        "duration_ms",
        "error_type",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = order_context.get()
        if context:
            entry.update((key, context.get(key)) for key in _CONTEXT_KEYS)

        entry.update(
            (name, getattr(record, name)) for name in self.extra_fields if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class OrderContextFilter(logging.Filter):
    """Copies the current order context onto records that don't set it explicitly."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = order_context.get()
        for key, default in _FILTER_DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, context.get(key) or default)
        return True


class OrderLogger:
    """
    Order-aware logger with automatic context propagation
    """

    def __init__(self, name: str = "fulfillz.orders"):
        self.logger = logging.getLogger(name)

        if not any(isinstance(f, OrderContextFilter) for f in self.logger.filters):
            self.logger.addFilter(OrderContextFilter())

    def set_order_context(
        self,
        order_id: str,
        step: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        """Set order context for the current task"""
        order_context.set(
            {
                "order_id": order_id,
                "step": step,
                "correlation_id": correlation_id or order_id,
            }
        )

    def clear_order_context(self) -> None:
        order_context.set({})

    def order_started(
        self, order_id: str, customer_id: str, product_id: str, quantity: int
    ) -> None:
        self.set_order_context(order_id)
        self.logger.info(
            f"Order started: {order_id} ({quantity} x {product_id} for {customer_id})",
            extra={"order_id": order_id},
        )

    def order_finished(
        self, order_id: str, state: OrderState, message: str, duration_ms: float
    ) -> None:
        """Log terminal outcome"""

        log_level = logging.INFO if state == OrderState.SUCCEEDED else logging.WARNING
        self.logger.log(
            log_level,
            f"Order finished: {order_id} - State: {state.value} - {message}",
            extra={"order_id": order_id, "state": state.value, "duration_ms": duration_ms},
        )
        self.clear_order_context()

    def step_started(self, order_id: str, step: str) -> None:
        self.set_order_context(order_id, step)
        self.logger.info(f"Step started: {step}", extra={"order_id": order_id, "step": step})

    def step_completed(self, order_id: str, step: str, duration_ms: float) -> None:
        self.logger.info(
            f"Step completed: {step}",
            extra={"order_id": order_id, "step": step, "duration_ms": duration_ms},
        )

    def step_failed(self, order_id: str, step: str, reason: str) -> None:
        self.logger.error(
            f"Step failed: {step} - {reason}",
            extra={"order_id": order_id, "step": step},
        )

    def compensation_started(self, order_id: str, action: str) -> None:
        self.logger.warning(
            f"Compensation started: {action}", extra={"order_id": order_id, "action": action}
        )

    def compensation_completed(self, order_id: str, action: str) -> None:
        self.logger.warning(
            f"Compensation completed: {action}", extra={"order_id": order_id, "action": action}
        )

    def compensation_failed(self, order_id: str, action: str, error: Exception) -> None:
        """Log compensation failure - needs manual reconciliation"""

        self.logger.critical(
            f"Compensation FAILED: {action} - {error!s}",
            extra={
                "order_id": order_id,
                "action": action,
                "error_type": type(error).__name__,
            },
        )

    def reconciliation_required(self, order_id: str, action: str, message: str) -> None:
        self.logger.critical(
            f"Reconciliation required: {action} - {message}",
            extra={"order_id": order_id, "action": action},
        )

    def post_commit_warning(self, order_id: str, step: str, message: str) -> None:
        self.logger.warning(
            f"Post-commit problem in {step}: {message}",
            extra={"order_id": order_id, "step": step},
        )


def _console_handler(json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.addFilter(OrderContextFilter())
    handler.setFormatter(OrderJsonFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))
    return handler


def setup_order_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> OrderLogger:
    """
    Point the 'fulfillz' logger at the console and return an OrderLogger.

    Handlers installed by an earlier call are replaced, so calling this
    twice does not duplicate output.

    Args:
        log_level: Level name, case-insensitive
        json_format: JSON lines instead of plain text
        include_console: Attach a stderr handler; without it records
            only reach handlers the application adds itself
    """
    package_logger = logging.getLogger("fulfillz")
    package_logger.setLevel(log_level.upper())

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    if include_console:
        package_logger.addHandler(_console_handler(json_format))

    return OrderLogger()
