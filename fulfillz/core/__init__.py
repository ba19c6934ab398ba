# ============================================
# FILE: fulfillz/core/__init__.py
# ============================================
"""
Core module for fulfillz - configuration, environment, exceptions and logging.
"""

from fulfillz.core.config import OrchestratorConfig, configure, get_config
from fulfillz.core.env import EnvManager, get_env
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
from fulfillz.core.logger import NullLogger, configure_default_logging, get_logger, set_logger

__all__ = [
    # Config
    "OrchestratorConfig",
    "configure",
    "get_config",
    # Env
    "EnvManager",
    "get_env",
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
    # Logger
    "NullLogger",
    "configure_default_logging",
    "get_logger",
    "set_logger",
]
