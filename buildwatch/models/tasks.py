"""Task lifecycle models: read-only snapshots supplied by a task manager."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict


class TaskState(IntEnum):
    """Fixed task lifecycle.  Ordering is by numeric value only."""

    NONE = 0
    INITIALIZING = 1
    PENDING = 2
    IN_PROGRESS = 3
    IN_PROGRESS_MUST_RERUN = 4
    FAILED = 5
    SUCCEEDED = 6


# Indexed by state value; anything outside this range is unknown.
TASK_STATE_DESCRIPTIONS: tuple[str, ...] = tuple(state.name for state in TaskState)


def describe_state(state: object) -> str | None:
    """Return the state's name, or ``None`` when it is not a known state."""
    if not isinstance(state, int):
        return None
    if 0 <= state < len(TASK_STATE_DESCRIPTIONS):
        return TASK_STATE_DESCRIPTIONS[state]
    return None


class ErrorData(BaseModel):
    """Output captured from a failed task run."""

    model_config = ConfigDict(frozen=True)

    stdout: str | None = None
    stderr: str | None = None


class TaskSnapshot(BaseModel):
    """Point-in-time state of a single task.

    ``state`` accepts raw integers as well as ``TaskState`` members so that
    values outside the enumeration reach the dashboard unchanged.
    """

    model_config = ConfigDict(frozen=True)

    state: TaskState | int = TaskState.NONE
    dependencies: list[str] = []
    tags: list[str] = []
    group_as: str | None = None
    last_run_ms: int | float | None = None
    error_data: ErrorData | None = None

    def group_key(self, task_name: str) -> str:
        """Display group for this task; defaults to the task's own name."""
        return self.group_as or task_name
