"""
Collaborator contracts consumed by the order orchestrator.

In a full system each of these would wrap a remote service. The orchestrator
only depends on these abstract classes, so alternate or fake implementations
can be swapped in without touching it.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from fulfillz.core.logger import get_logger
from fulfillz.types import AuthorizationToken, ReservationToken, TrackingToken, TransactionRecord

logger = get_logger(__name__)

# (product_id, quantity) -> available?
AvailabilityPolicy = Callable[[str, int], bool]

# Settled entries the simulated collaborators remember by default
DEFAULT_HISTORY = 10_000


class SettledHistory:
    """
    Ids of settled entries, oldest first, capped at `limit`.

    add() returns the ids that fell off the end so the owner can forget them.
    Entries that are still open are never added, so they are never evicted.
    """

    def __init__(self, limit: int | None = DEFAULT_HISTORY):
        if limit is not None and limit < 0:
            msg = f"History limit cannot be negative, got {limit}"
            raise ValueError(msg)
        self.limit = limit
        self._ids: OrderedDict[str, None] = OrderedDict()

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, key: str) -> list[str]:
        if self.limit is None:
            return []
        self._ids[key] = None
        self._ids.move_to_end(key)
        evicted = []
        while len(self._ids) > self.limit:
            evicted.append(self._ids.popitem(last=False)[0])
        return evicted


class InventoryLedger(ABC):
    """Stock availability, reservations and permanent decrements."""

    @abstractmethod
    async def check_availability(self, product_id: str, quantity: int) -> bool:
        """Return True if quantity units can currently be reserved."""
        ...

    @abstractmethod
    async def reserve(self, product_id: str, quantity: int) -> ReservationToken | None:
        """Hold stock. Returns None if the hold could not be placed."""
        ...

    @abstractmethod
    async def commit(self, token: ReservationToken) -> None:
        """Turn a reservation into a permanent decrement."""
        ...

    @abstractmethod
    async def release(self, token: ReservationToken) -> None:
        """Give reserved stock back. No-op for released or committed tokens."""
        ...


class PaymentGateway(ABC):
    """Payment instrument validation and the authorize/capture/void cycle."""

    @abstractmethod
    async def validate(self, card_number: str, cvv: str, expiry_date: str) -> bool:
        """Basic format checks on the payment instrument."""
        ...

    @abstractmethod
    async def authorize(self, amount: Decimal) -> AuthorizationToken | None:
        """Hold funds. Returns None when declined."""
        ...

    @abstractmethod
    async def capture(self, token: AuthorizationToken) -> TransactionRecord | None:
        """Settle an authorization. Returns None when the capture fails."""
        ...

    @abstractmethod
    async def void(self, token: AuthorizationToken) -> None:
        """Cancel an authorization. Voiding twice is a no-op."""
        ...


class ShippingScheduler(ABC):
    """Destination validation and shipment scheduling."""

    @abstractmethod
    async def validate_address(self, address: str) -> bool:
        ...

    @abstractmethod
    async def schedule(self, order_id: str, address: str) -> TrackingToken | None:
        ...


@dataclass(frozen=True)
class Notification:
    """A message handed to a dispatcher."""

    kind: str
    recipient: str
    subject: str
    body: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class NotificationDispatcher(ABC):
    """
    Fire-and-forget customer notifications.

    Subclasses implement deliver(). The public send_* methods never raise:
    delivery failures are logged and swallowed here, so nothing a dispatcher
    does can affect orchestration.
    """

    @abstractmethod
    async def deliver(self, notification: Notification) -> None:
        """Deliver a single notification. May raise."""
        ...

    async def send_confirmation(self, email: str, order_id: str) -> None:
        await self._dispatch(
            Notification(
                kind="order_confirmation",
                recipient=email,
                subject=f"Order {order_id} confirmed",
                body={"order_id": order_id},
            )
        )

    async def send_receipt(self, email: str, transaction_id: str, amount: Decimal) -> None:
        await self._dispatch(
            Notification(
                kind="payment_receipt",
                recipient=email,
                subject=f"Payment receipt {transaction_id}",
                body={"transaction_id": transaction_id, "amount": f"{amount:.2f}"},
            )
        )

    async def send_shipping_notice(self, email: str, tracking_number: str) -> None:
        await self._dispatch(
            Notification(
                kind="shipping_notice",
                recipient=email,
                subject="Your order has shipped",
                body={"tracking_number": tracking_number},
            )
        )

    async def send_cancellation(self, email: str, order_id: str, reason: str) -> None:
        await self._dispatch(
            Notification(
                kind="cancellation",
                recipient=email,
                subject=f"Order {order_id} cancelled",
                body={"order_id": order_id, "reason": reason},
            )
        )

    async def _dispatch(self, notification: Notification) -> None:
        try:
            await self.deliver(notification)
        except Exception as e:
            logger.warning(
                f"Notification '{notification.kind}' to {notification.recipient} "
                f"not delivered: {e}"
            )
