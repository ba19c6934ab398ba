"""
Compensation stack for the order saga.

Each forward step that creates something reversible pushes a
CompensationAction after it succeeds. On failure the stack is unwound in LIFO
order. A failing action does not stop the unwind; it is reported as a
ReconciliationFault instead.

Example:
    >>> stack = CompensationStack()
    >>> stack.push("release_reservation", lambda: ledger.release(token))
    >>> stack.push("void_authorization", lambda: gateway.void(auth))
    >>> report = await stack.unwind(order_id)
    >>> report.executed
    ['void_authorization', 'release_reservation']
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from fulfillz.core.exceptions import CompensationError
from fulfillz.core.logger import get_logger
from fulfillz.types import ReconciliationFault

logger = get_logger(__name__)

UndoFn = Callable[[], Awaitable[Any] | Any]
UnwindHook = Callable[..., Awaitable[None]]


@dataclass
class CompensationAction:
    """
    Deferred undo operation.

    Runs at most once: a second run() is a no-op, whether the first one
    succeeded or failed.
    """

    name: str
    undo: UndoFn
    description: str | None = None
    executed: bool = False

    async def run(self, timeout: float | None = None) -> bool:
        """
        Execute the undo operation.

        Returns:
            True if the undo ran now, False if it had already run.

        Raises:
            CompensationError: If the undo raised or timed out
        """
        if self.executed:
            return False
        self.executed = True

        try:
            result = self.undo()
            if inspect.isawaitable(result):
                if timeout is not None:
                    await asyncio.wait_for(result, timeout=timeout)
                else:
                    await result
        except TimeoutError as e:
            raise CompensationError(self.name, TimeoutError(f"timed out after {timeout}s")) from e
        except Exception as e:
            raise CompensationError(self.name, e) from e
        return True


@dataclass
class UnwindReport:
    """Outcome of unwinding a compensation stack."""

    executed: list[str] = field(default_factory=list)
    faults: list[ReconciliationFault] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.faults


class CompensationStack:
    """LIFO stack of compensation actions for one order."""

    def __init__(self) -> None:
        self._actions: list[CompensationAction] = []

    def __len__(self) -> int:
        return len(self._actions)

    def __bool__(self) -> bool:
        return bool(self._actions)

    def __contains__(self, name: object) -> bool:
        return any(action.name == name for action in self._actions)

    @property
    def names(self) -> list[str]:
        """Action names, bottom of the stack first."""
        return [action.name for action in self._actions]

    def push(self, name: str, undo: UndoFn, description: str | None = None) -> CompensationAction:
        """Push an undo operation. Call only after the forward step succeeded."""
        action = CompensationAction(name=name, undo=undo, description=description)
        self._actions.append(action)
        logger.debug(f"Compensation pushed: {name} (depth={len(self._actions)})")
        return action

    def discard(self, name: str) -> CompensationAction | None:
        """
        Drop an action that no longer applies without running it.

        Used when a later step makes an earlier undo meaningless, e.g. a
        captured payment can no longer be voided.
        """
        for index in range(len(self._actions) - 1, -1, -1):
            if self._actions[index].name == name:
                action = self._actions.pop(index)
                logger.debug(f"Compensation discarded: {name}")
                return action
        return None

    def clear(self) -> None:
        self._actions.clear()

    async def unwind(
        self,
        order_id: str,
        timeout: float | None = None,
        on_start: UnwindHook | None = None,
        on_complete: UnwindHook | None = None,
        on_failed: UnwindHook | None = None,
    ) -> UnwindReport:
        """
        Run every action in LIFO order and empty the stack.

        Args:
            order_id: Order being rolled back (recorded on faults)
            timeout: Per-action timeout in seconds, None for no limit
            on_start: Awaited with the action name before it runs
            on_complete: Awaited with the action name after it succeeds
            on_failed: Awaited with the action name and the error

        Returns:
            UnwindReport listing executed actions and reconciliation faults
        """
        report = UnwindReport()

        while self._actions:
            action = self._actions.pop()
            if on_start:
                await on_start(action.name)
            try:
                ran = await action.run(timeout=timeout)
            except CompensationError as e:
                fault = ReconciliationFault(
                    order_id=order_id,
                    action=action.name,
                    error=str(e.cause),
                    error_type=type(e.cause).__name__,
                )
                report.faults.append(fault)
                if on_failed:
                    await on_failed(action.name, e)
                continue

            if ran:
                report.executed.append(action.name)
                if on_complete:
                    await on_complete(action.name)

        return report
