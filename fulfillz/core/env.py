"""
FULFILLZ_* environment variables and `.env` files.

EnvManager reads typed values for OrchestratorConfig.from_env() and expands
${VAR} references in YAML loaded by OrchestratorConfig.from_file().
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

# ${VAR}, ${VAR:-default} or ${VAR:?message}
_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<op>[?-])(?P<operand>[^}]*))?\}")

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})
_DISABLED = frozenset({"none", "off"})


class EnvManager:
    """
    Typed access to the process environment.

    Args:
        project_root: Directory holding the `.env` file (default: cwd)
        auto_load: Load `<project_root>/.env` right away if it exists

    Example:
        >>> env = EnvManager()
        >>> env.get_float("FULFILLZ_STEP_TIMEOUT", 30.0)
        30.0
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False
        if auto_load:
            self.load()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load a `.env` file into os.environ.

        Existing variables win unless `override` is set. Returns False when
        the file does not exist.
        """
        path = Path(env_file) if env_file is not None else self.project_root / ".env"
        if not path.is_file():
            return False
        load_dotenv(path, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        value = os.environ.get(key)
        if value is not None:
            return value
        if required:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = (self.get(key) or "").strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        return self._parse(key, int, default)

    def get_float(self, key: str, default: float | None = None) -> float | None:
        """Float value; "none" or "off" yield None (used to disable timeouts)."""
        value = self.get(key)
        if value is not None and value.strip().lower() in _DISABLED:
            return None
        return self._parse(key, float, default)

    def _parse(self, key: str, convert: Callable[[str], T], default: T) -> T:
        value = self.get(key)
        if value is None or not value.strip():
            return default
        try:
            return convert(value)
        except ValueError:
            return default

    def substitute(self, text: str) -> str:
        """Expand ${VAR}, ${VAR:-default} and ${VAR:?message} references."""
        return _REFERENCE.sub(self._expand, text)

    def substitute_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Copy of `data` with every string leaf expanded."""
        return {key: self._substitute_value(value) for key, value in data.items()}

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.substitute(value)
        if isinstance(value, dict):
            return self.substitute_dict(value)
        if isinstance(value, list):
            return [self._substitute_value(item) for item in value]
        return value

    @staticmethod
    def _expand(match: re.Match) -> str:
        name, op, operand = match.group("name", "op", "operand")
        value = os.environ.get(name)
        if value is not None:
            return value
        if op == "-":
            return operand
        if op == "?":
            raise ValueError(operand or f"Required variable not set: {name}")
        return match.group(0)


_env: EnvManager | None = None


def get_env() -> EnvManager:
    """Process-wide EnvManager, created on first use."""
    global _env
    if _env is None:
        _env = EnvManager()
    return _env
