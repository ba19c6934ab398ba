"""
Simulated shipping scheduler.
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal

from fulfillz.collaborators.base import DEFAULT_HISTORY, SettledHistory, ShippingScheduler
from fulfillz.core.exceptions import ShippingError
from fulfillz.core.logger import get_logger
from fulfillz.types import TrackingToken

logger = get_logger(__name__)

BASE_SHIPPING_COST = Decimal("5.00")
COST_PER_KG = Decimal("2.50")


class SimulatedShippingScheduler(ShippingScheduler):
    """
    Accepts any non-blank address and hands out tracking numbers.

    Args:
        history: How many shipments are remembered so that scheduling the
            same order again returns its tracking number (None keeps all)
    """

    def __init__(self, history: int | None = DEFAULT_HISTORY) -> None:
        self.shipments: dict[str, TrackingToken] = {}
        self._settled = SettledHistory(history)

    async def validate_address(self, address: str) -> bool:
        logger.info(f"Validating address: {address}")
        valid = address is not None and bool(address.strip())
        logger.info(f"Address is {'VALID' if valid else 'INVALID'}")
        return valid

    async def schedule(self, order_id: str, address: str) -> TrackingToken | None:
        logger.info(f"Scheduling shipment for order {order_id} to {address}")
        if order_id in self.shipments:
            return self.shipments[order_id]

        token = TrackingToken(
            tracking_number=f"TRK-{uuid.uuid4().hex[:12].upper()}",
            order_id=order_id,
            address=address,
        )
        self.shipments[order_id] = token
        for forgotten in self._settled.add(order_id):
            del self.shipments[forgotten]
        logger.info(f"Tracking number: {token.tracking_number}")
        return token

    def calculate_shipping(self, address: str, weight_kg: Decimal | float) -> Decimal:
        """Flat base cost plus a per-kilogram rate, rounded to cents."""
        weight = Decimal(str(weight_kg))
        if weight < 0:
            msg = f"Package weight cannot be negative, got {weight_kg}"
            raise ShippingError(msg)
        cost = (BASE_SHIPPING_COST + weight * COST_PER_KG).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        logger.info(f"Shipping cost for {weight} kg to {address}: ${cost}")
        return cost
