"""
In-memory inventory ledger.

Stock per product is split into an available counter and a reserved counter.
reserve() moves units from available to reserved, commit() drops them from
reserved for good, and release() moves them back. All three run under a
per-product asyncio.Lock, so concurrent reservations cannot both take the
same unit.
"""

import asyncio
import random
import uuid
from collections import defaultdict
from enum import Enum

from fulfillz.collaborators.base import (
    DEFAULT_HISTORY,
    AvailabilityPolicy,
    InventoryLedger,
    SettledHistory,
)
from fulfillz.core.exceptions import InventoryError
from fulfillz.core.logger import get_logger
from fulfillz.types import ReservationToken

logger = get_logger(__name__)


class ReservationStatus(Enum):
    RESERVED = "reserved"
    COMMITTED = "committed"
    RELEASED = "released"


def random_availability(rate: float = 0.9, rng: random.Random | None = None) -> AvailabilityPolicy:
    """
    Simulated availability: each check passes with probability `rate`.

    Pass a seeded random.Random for reproducible runs.
    """
    if not 0.0 <= rate <= 1.0:
        msg = f"Availability rate must be between 0 and 1, got {rate}"
        raise ValueError(msg)
    generator = rng or random.Random()

    def policy(product_id: str, quantity: int) -> bool:
        return generator.random() < rate

    return policy


class InMemoryInventoryLedger(InventoryLedger):
    """
    Inventory ledger backed by in-process counters.

    Args:
        stock: Initial available units per product id
        availability: Optional extra policy consulted by check_availability()
        latency: Simulated per-call delay in seconds, taken while holding the
                 product lock
        history: How many committed or released reservations are remembered
                 for idempotent repeats (None keeps all). Open reservations
                 are always kept.
    """

    def __init__(
        self,
        stock: dict[str, int] | None = None,
        *,
        availability: AvailabilityPolicy | None = None,
        latency: float = 0.0,
        history: int | None = DEFAULT_HISTORY,
    ):
        self._available: dict[str, int] = defaultdict(int)
        self._reserved: dict[str, int] = defaultdict(int)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._reservations: dict[str, tuple[ReservationToken, ReservationStatus]] = {}
        self._settled = SettledHistory(history)
        self._availability = availability
        self._latency = latency

        for product_id, units in (stock or {}).items():
            if units < 0:
                msg = f"Initial stock for {product_id} cannot be negative"
                raise ValueError(msg)
            self._available[product_id] = units

    def available(self, product_id: str) -> int:
        """Units that can still be reserved."""
        return self._available.get(product_id, 0)

    def reserved(self, product_id: str) -> int:
        """Units currently held by open reservations."""
        return self._reserved.get(product_id, 0)

    def status(self, token: ReservationToken) -> ReservationStatus | None:
        entry = self._reservations.get(token.reservation_id)
        return entry[1] if entry else None

    async def restock(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            msg = f"Restock quantity must be positive, got {quantity}"
            raise ValueError(msg)
        async with self._locks[product_id]:
            self._available[product_id] += quantity
        logger.info(f"Restocked {quantity} units of {product_id}")

    async def check_availability(self, product_id: str, quantity: int) -> bool:
        logger.info(f"Checking availability for {product_id} (qty: {quantity})")
        available = self.available(product_id) >= quantity
        if available and self._availability is not None:
            available = self._availability(product_id, quantity)
        logger.info(f"Product {product_id} is {'AVAILABLE' if available else 'OUT OF STOCK'}")
        return available

    async def reserve(self, product_id: str, quantity: int) -> ReservationToken | None:
        if quantity <= 0:
            msg = f"Reservation quantity must be positive, got {quantity}"
            raise InventoryError(msg)

        async with self._locks[product_id]:
            await self._simulate_latency()
            if self._available[product_id] < quantity:
                logger.warning(
                    f"Cannot reserve {quantity} units of {product_id}: "
                    f"only {self._available[product_id]} available"
                )
                return None

            self._available[product_id] -= quantity
            self._reserved[product_id] += quantity
            token = ReservationToken(
                reservation_id=f"RES-{uuid.uuid4().hex[:12].upper()}",
                product_id=product_id,
                quantity=quantity,
            )
            self._reservations[token.reservation_id] = (token, ReservationStatus.RESERVED)

        logger.info(f"Reservation created: {token.reservation_id} ({quantity} x {product_id})")
        return token

    async def commit(self, token: ReservationToken) -> None:
        async with self._locks[token.product_id]:
            await self._simulate_latency()
            status = self._require(token)
            if status is ReservationStatus.COMMITTED:
                return
            if status is ReservationStatus.RELEASED:
                msg = f"Reservation {token.reservation_id} was released and cannot be committed"
                raise InventoryError(msg)

            self._reserved[token.product_id] -= token.quantity
            self._settle(token, ReservationStatus.COMMITTED)

        logger.info(f"Inventory updated for reservation: {token.reservation_id}")

    async def release(self, token: ReservationToken) -> None:
        async with self._locks[token.product_id]:
            await self._simulate_latency()
            status = self._require(token)
            if status is not ReservationStatus.RESERVED:
                logger.debug(f"Release of {token.reservation_id} ignored ({status.value})")
                return

            self._reserved[token.product_id] -= token.quantity
            self._available[token.product_id] += token.quantity
            self._settle(token, ReservationStatus.RELEASED)

        logger.info(f"Reservation released: {token.reservation_id}")

    def _settle(self, token: ReservationToken, status: ReservationStatus) -> None:
        self._reservations[token.reservation_id] = (token, status)
        for reservation_id in self._settled.add(token.reservation_id):
            del self._reservations[reservation_id]

    def _require(self, token: ReservationToken) -> ReservationStatus:
        entry = self._reservations.get(token.reservation_id)
        if entry is None:
            msg = f"Unknown reservation: {token.reservation_id}"
            raise InventoryError(msg)
        return entry[1]

    async def _simulate_latency(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)
