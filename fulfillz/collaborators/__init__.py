"""
Collaborators driven by the order orchestrator.

Abstract contracts live in `base`; the in-memory and simulated
implementations are meant for demos, tests and local development.
"""

from .base import (
    AvailabilityPolicy,
    InventoryLedger,
    Notification,
    NotificationDispatcher,
    PaymentGateway,
    ShippingScheduler,
)
from .inventory import InMemoryInventoryLedger, ReservationStatus, random_availability
from .notification import LoggingNotificationDispatcher
from .payment import AuthorizationStatus, SimulatedPaymentGateway
from .shipping import SimulatedShippingScheduler

__all__ = [
    "AuthorizationStatus",
    "AvailabilityPolicy",
    "InMemoryInventoryLedger",
    "InventoryLedger",
    "LoggingNotificationDispatcher",
    "Notification",
    "NotificationDispatcher",
    "PaymentGateway",
    "ReservationStatus",
    "ShippingScheduler",
    "SimulatedPaymentGateway",
    "SimulatedShippingScheduler",
    "random_availability",
]
