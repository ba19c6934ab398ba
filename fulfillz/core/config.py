"""
OrchestratorConfig - Unified configuration for the order orchestrator.

Wires together collaborator timeouts, order id generation and observability
(logging and metrics listeners).

Example:
    >>> from fulfillz.core.config import OrchestratorConfig, configure
    >>>
    >>> config = OrchestratorConfig(step_timeout=5.0, metrics=True)
    >>> configure(config)

Example (environment / YAML):
    >>> config = OrchestratorConfig.from_env()
    >>> config = OrchestratorConfig.from_file("fulfillz.yaml")
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from fulfillz.core.env import get_env
from fulfillz.core.exceptions import ConfigurationError
from fulfillz.core.logger import get_logger

if TYPE_CHECKING:
    from fulfillz.listeners import OrderListener

logger = get_logger(__name__)


@dataclass
class OrchestratorConfig:
    """
    Configuration for OrderOrchestrator.

    Attributes:
        step_timeout: Seconds allowed for each forward collaborator call (None disables)
        compensation_timeout: Seconds allowed for each compensation action (None disables)
        order_id_prefix: Prefix of generated order ids
        status_history: How many finished orders get_order_status() remembers
        logging: Enable logging (True/False or an OrderListener instance)
        metrics: Enable in-memory metrics (True/False or an OrderListener instance)
    """

    step_timeout: float | None = 30.0
    compensation_timeout: float | None = 10.0
    order_id_prefix: str = "ORD"
    status_history: int = 1000

    logging: bool | OrderListener = True
    metrics: bool | OrderListener = False

    _listeners: list[OrderListener] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        for name in ("step_timeout", "compensation_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                msg = f"{name} must be positive or None, got {value}"
                raise ConfigurationError(msg)
        if self.status_history < 0:
            msg = f"status_history cannot be negative, got {self.status_history}"
            raise ConfigurationError(msg)
        if not self.order_id_prefix:
            msg = "order_id_prefix cannot be empty"
            raise ConfigurationError(msg)

        self._listeners = self._build_listeners()

    def _build_listeners(self) -> list[OrderListener]:
        """Build listeners list from configuration."""
        from fulfillz.listeners import LoggingOrderListener, MetricsOrderListener, OrderListener

        listeners: list[OrderListener] = []

        if isinstance(self.logging, OrderListener):
            listeners.append(self.logging)
        elif self.logging:
            listeners.append(LoggingOrderListener())

        if isinstance(self.metrics, OrderListener):
            listeners.append(self.metrics)
        elif self.metrics:
            listeners.append(MetricsOrderListener())

        return listeners

    @property
    def listeners(self) -> list[OrderListener]:
        """Get configured listeners list."""
        return self._listeners

    def with_timeouts(
        self, step_timeout: float | None, compensation_timeout: float | None = None
    ) -> OrchestratorConfig:
        """Create a new config with different timeouts (immutable update)."""
        return replace(
            self,
            step_timeout=step_timeout,
            compensation_timeout=(
                compensation_timeout
                if compensation_timeout is not None
                else self.compensation_timeout
            ),
        )

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> OrchestratorConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            FULFILLZ_STEP_TIMEOUT: Forward step timeout in seconds ("none" disables)
            FULFILLZ_COMPENSATION_TIMEOUT: Compensation timeout in seconds
            FULFILLZ_ORDER_ID_PREFIX: Prefix for generated order ids
            FULFILLZ_STATUS_HISTORY: Number of orders kept for status queries
            FULFILLZ_LOGGING: Enable logging listener (true/false)
            FULFILLZ_METRICS: Enable metrics listener (true/false)

        Args:
            load_dotenv: If True, loads .env file before reading variables
        """
        env = get_env()
        if load_dotenv:
            env.load()

        return cls(
            step_timeout=env.get_float("FULFILLZ_STEP_TIMEOUT", 30.0),
            compensation_timeout=env.get_float("FULFILLZ_COMPENSATION_TIMEOUT", 10.0),
            order_id_prefix=env.get("FULFILLZ_ORDER_ID_PREFIX", "ORD"),
            status_history=env.get_int("FULFILLZ_STATUS_HISTORY", 1000),
            logging=env.get_bool("FULFILLZ_LOGGING", True),
            metrics=env.get_bool("FULFILLZ_METRICS", False),
        )

    @classmethod
    def from_file(cls, file_path: str | Path, substitute_env: bool = True) -> OrchestratorConfig:
        """
        Load configuration from a YAML file.

        Supports environment variable substitution using ${VAR} syntax:

            orchestrator:
              step_timeout: ${FULFILLZ_STEP_TIMEOUT:-30}
              order_id_prefix: SHOP
            observability:
              logging:
                enabled: true
              metrics:
                enabled: false
        """
        path = Path(file_path)
        if not path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        try:
            with path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in {file_path}: {e}"
            raise ConfigurationError(msg) from e

        if not data:
            return cls()
        if not isinstance(data, dict):
            msg = f"{file_path} must contain a mapping, got {type(data).__name__}"
            raise ConfigurationError(msg)

        if substitute_env:
            env = get_env()
            env.load()
            try:
                data = env.substitute_dict(data)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        orch = data.get("orchestrator", {}) or {}
        obs = data.get("observability", {}) or {}

        return cls(
            step_timeout=_optional_float(orch.get("step_timeout", 30.0), "step_timeout"),
            compensation_timeout=_optional_float(
                orch.get("compensation_timeout", 10.0), "compensation_timeout"
            ),
            order_id_prefix=str(orch.get("order_id_prefix", "ORD")),
            status_history=_count(orch.get("status_history", 1000), "status_history"),
            logging=_enabled(obs.get("logging"), default=True),
            metrics=_enabled(obs.get("metrics"), default=False),
        )


def _optional_float(value: Any, name: str) -> float | None:
    if value is None or (isinstance(value, str) and value.lower() in ("none", "off", "")):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        msg = f"{name} must be a number, got {value!r}"
        raise ConfigurationError(msg) from e


def _count(value: Any, name: str) -> int:
    if isinstance(value, bool):
        msg = f"{name} must be a whole number, got {value!r}"
        raise ConfigurationError(msg)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        msg = f"{name} must be a whole number, got {value!r}"
        raise ConfigurationError(msg) from e


def _enabled(section: Any, default: bool) -> bool:
    if section is None:
        return default
    if isinstance(section, dict):
        section = section.get("enabled", default)
    if isinstance(section, str):
        return section.lower() in ("true", "1", "yes", "on")
    return bool(section)


# Global configuration singleton
_global_config: OrchestratorConfig | None = None


def get_config() -> OrchestratorConfig:
    """Get the global orchestrator configuration."""
    global _global_config
    if _global_config is None:
        _global_config = OrchestratorConfig()
    return _global_config


def configure(config: OrchestratorConfig) -> None:
    """Set the global orchestrator configuration."""
    global _global_config
    _global_config = config
    logger.info(
        f"Orchestrator configured: step_timeout={config.step_timeout}, "
        f"listeners={[type(listener).__name__ for listener in config.listeners]}"
    )
