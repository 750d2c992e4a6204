"""buildwatch: live terminal dashboard for interdependent build tasks.

Subscribes to a task manager's state changes and keeps a throttled,
de-duplicated console summary of the run: progress bar, tag sections,
build status, run times and error dumps.
"""

__version__ = "0.1.0"

from buildwatch.core.task_manager import InMemoryTaskManager, TaskManager
from buildwatch.models.tasks import ErrorData, TaskSnapshot, TaskState
from buildwatch.monitor.dashboard import BuildDashboard, attach_dashboard

__all__ = [
    "BuildDashboard",
    "ErrorData",
    "InMemoryTaskManager",
    "TaskManager",
    "TaskSnapshot",
    "TaskState",
    "attach_dashboard",
    "__version__",
]
