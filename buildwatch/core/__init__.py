"""Throttling and the task manager interface."""

from buildwatch.core.task_manager import (
    DuplicateTaskError,
    InMemoryTaskManager,
    TaskManager,
    UnknownTaskError,
)
from buildwatch.core.throttle import Throttle, throttle

__all__ = [
    "DuplicateTaskError",
    "InMemoryTaskManager",
    "TaskManager",
    "Throttle",
    "UnknownTaskError",
    "throttle",
]
