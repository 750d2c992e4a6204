"""buildwatch data models (Pydantic v2, frozen)."""

from buildwatch.models.tasks import (
    TASK_STATE_DESCRIPTIONS,
    ErrorData,
    TaskSnapshot,
    TaskState,
    describe_state,
)

__all__ = [
    "TASK_STATE_DESCRIPTIONS",
    "ErrorData",
    "TaskSnapshot",
    "TaskState",
    "describe_state",
]
