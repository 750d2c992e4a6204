"""Task manager interface consumed by the dashboard, plus an in-memory one.

The dashboard only needs two things from a task manager: a way to subscribe
to per-task state changes, and a synchronous query for the full set of task
snapshots.  ``InMemoryTaskManager`` provides both for demos and tests; real
build systems implement ``TaskManager`` over their own scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Protocol, runtime_checkable

from buildwatch.models.tasks import ErrorData, TaskSnapshot, TaskState

logger = logging.getLogger(__name__)

StateChangeHandler = Callable[[str, int, int], None]


class UnknownTaskError(KeyError):
    """Raised when a task name is not registered with the manager."""


class DuplicateTaskError(ValueError):
    """Raised when a task name is registered twice."""


@runtime_checkable
class TaskManager(Protocol):
    """What the dashboard consumes from a task manager."""

    def on_state_change(self, handler: StateChangeHandler) -> None:
        """Call ``handler(task_name, old_state, new_state)`` on every transition."""
        ...

    def get_task_states(self) -> dict[str, TaskSnapshot]:
        """Return the current snapshot of every known task."""
        ...


class InMemoryTaskManager:
    """Minimal task manager holding task snapshots in a dict.

    It does not schedule or execute anything; callers drive the lifecycle
    through :meth:`set_state`, which notifies every subscriber synchronously
    in registration order.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, TaskSnapshot] = {}
        self._handlers: list[StateChangeHandler] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_task(
        self,
        name: str,
        *,
        dependencies: Iterable[str] = (),
        tags: Iterable[str] = (),
        group_as: str | None = None,
        state: TaskState = TaskState.PENDING,
    ) -> TaskSnapshot:
        """Register a task and return its initial snapshot."""
        if name in self._tasks:
            raise DuplicateTaskError(f"Task already registered: {name!r}")

        snapshot = TaskSnapshot(
            state=state,
            dependencies=list(dependencies),
            tags=list(tags),
            group_as=group_as,
        )
        self._tasks[name] = snapshot
        return snapshot

    def on_state_change(self, handler: StateChangeHandler) -> None:
        self._handlers.append(handler)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_task(self, name: str) -> TaskSnapshot:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError(name) from None

    def get_task_states(self) -> dict[str, TaskSnapshot]:
        return dict(self._tasks)

    @property
    def task_names(self) -> list[str]:
        return list(self._tasks)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_state(
        self,
        name: str,
        state: TaskState | int,
        *,
        last_run_ms: int | float | None = None,
        error_data: ErrorData | None = None,
    ) -> TaskSnapshot:
        """Move a task to ``state`` and notify subscribers.

        ``last_run_ms`` is kept from the previous snapshot unless given.
        ``error_data`` is cleared when a task leaves ``FAILED`` unless a new
        value is supplied.
        """
        current = self.get_task(name)
        old_state = current.state

        if error_data is None and state == TaskState.FAILED:
            error_data = current.error_data

        updated = current.model_copy(
            update={
                "state": state,
                "last_run_ms": (
                    last_run_ms if last_run_ms is not None else current.last_run_ms
                ),
                "error_data": error_data,
            }
        )
        self._tasks[name] = updated
        logger.debug("Task %s: %s -> %s", name, old_state, state)

        for handler in list(self._handlers):
            handler(name, old_state, state)

        return updated
