"""
Logger lookup for fulfillz modules.

Every module asks get_logger(__name__) for its logger. Out of the box that is
a stdlib logger under the 'fulfillz' namespace; an application can route all
fulfillz output elsewhere (structlog, loguru, a test double) with set_logger().

    >>> from fulfillz.core.logger import get_logger, set_logger
    >>> logger = get_logger(__name__)
    >>> previous = set_logger(structlog.get_logger())
    >>> ...
    >>> set_logger(previous)
"""

import logging
from typing import Any

ROOT_LOGGER_NAME = "fulfillz"

_override: Any = None


class NullLogger:
    """Accepts any logging call and drops it."""

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._discard

    @staticmethod
    def _discard(*args, **kwargs) -> None:
        return None


def set_logger(logger: Any) -> Any:
    """
    Route every fulfillz log call to `logger`.

    The replacement needs debug/info/warning/error/critical methods.
    Pass None to return to stdlib logging.

    Returns:
        The previously installed logger (None if stdlib logging was active)
    """
    global _override
    previous, _override = _override, logger
    return previous


def get_logger(name: str = ROOT_LOGGER_NAME) -> Any:
    """Return the installed override, or the stdlib logger called `name`."""
    if _override is not None:
        return _override

    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def configure_default_logging(
    level: int | str = logging.INFO,
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """Plain console logging for scripts that don't configure logging themselves."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=format_string)
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)
