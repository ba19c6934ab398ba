"""
Order monitoring and observability utilities

Quick Start:
    >>> from fulfillz.monitoring import setup_order_logging
    >>> logger = setup_order_logging(json_format=True)

    # Prometheus metrics
    >>> from fulfillz.monitoring import PrometheusMetrics, start_metrics_server
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
"""

from .logging import (
    OrderContextFilter,
    OrderJsonFormatter,
    OrderLogger,
    order_context,
    setup_order_logging,
)
from .metrics import OrderMetrics
from .prometheus import PrometheusMetrics, start_metrics_server

__all__ = [
    "OrderContextFilter",
    "OrderJsonFormatter",
    # Logging
    "OrderLogger",
    # Metrics
    "OrderMetrics",
    "PrometheusMetrics",
    "order_context",
    "setup_order_logging",
    "start_metrics_server",
]
