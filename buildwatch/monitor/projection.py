"""DashboardProjection — reduce a task snapshot into display groups and tags.

The projection holds no state.  Every call takes the full task snapshot from
the task manager and recomputes groups, tag buckets and counters from
scratch.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from buildwatch.models.tasks import TaskSnapshot, TaskState

# Any member in one of these states decides the whole group's state.
PRIORITY_STATES: frozenset[int] = frozenset(
    {TaskState.IN_PROGRESS, TaskState.IN_PROGRESS_MUST_RERUN, TaskState.FAILED}
)

PENDING = "pending"
PROCESSING = "processing"
FAILED = "failed"
SUCCEEDED = "succeeded"

_STATE_CATEGORIES: dict[int, str] = {
    TaskState.NONE: PENDING,
    TaskState.INITIALIZING: PENDING,
    TaskState.PENDING: PENDING,
    TaskState.IN_PROGRESS: PROCESSING,
    TaskState.IN_PROGRESS_MUST_RERUN: PROCESSING,
    TaskState.FAILED: FAILED,
    TaskState.SUCCEEDED: SUCCEEDED,
}


def categorize(state: int) -> str | None:
    """Map a state onto one of the four counters.

    ``NONE`` counts as pending.  Values outside ``TaskState`` map to no
    counter; they only lose their label color.
    """
    return _STATE_CATEGORIES.get(state)


class Group(BaseModel):
    """One display entry: every task sharing a ``group_as`` key."""

    model_config = ConfigDict(frozen=True)

    name: str
    state: TaskState | int
    label: str
    task_names: list[str] = []
    last_run_ms: int | float | None = None
    tags: list[str] = []
    has_errors: bool = False


class TagBucket(BaseModel):
    """Groups carrying a tag, with one state for the whole tag."""

    model_config = ConfigDict(frozen=True)

    tag: str
    state: TaskState = TaskState.SUCCEEDED
    groups: list[Group] = []


class TaskCounts(BaseModel):
    """Number of groups in each counter.

    Sums to the number of groups unless some group is in an unknown state.
    """

    model_config = ConfigDict(frozen=True)

    pending: int = 0
    processing: int = 0
    failed: int = 0
    succeeded: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.processing + self.failed + self.succeeded

    @property
    def is_complete(self) -> bool:
        """Nothing running and nothing waiting.  Failures still count as done."""
        return self.processing == 0 and self.pending == 0


class DashboardView(BaseModel):
    """Everything the renderer needs for one frame."""

    model_config = ConfigDict(frozen=True)

    groups: list[Group] = []
    tags: list[TagBucket] = []
    counts: TaskCounts = TaskCounts()

    @property
    def has_errors(self) -> bool:
        return any(group.has_errors for group in self.groups)

    @property
    def is_complete(self) -> bool:
        return self.counts.is_complete


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def sort_task_names(tasks: Mapping[str, TaskSnapshot]) -> list[str]:
    """Order task names roughly in the order they would run.

    A task listed as a direct dependency of another sorts first; otherwise
    tasks with fewer dependencies come first.  The comparison only looks at
    direct dependencies, so it is not a topological sort.
    """

    def compare(a: str, b: str) -> int:
        a_deps = tasks[a].dependencies
        b_deps = tasks[b].dependencies
        if b in a_deps:
            return 1
        if a in b_deps:
            return -1
        return len(a_deps) - len(b_deps)

    return sorted(tasks, key=functools.cmp_to_key(compare))


def format_group_label(
    name: str,
    last_run_ms: int | float | None = None,
    *,
    show_time_elapsed: bool = False,
) -> str:
    """``[ name ]`` with ``:`` spaced out, plus an optional run-time suffix."""
    text = name
    if show_time_elapsed and last_run_ms is not None and last_run_ms >= 0:
        text += f" ({last_run_ms}ms!!)"
    return "[ " + text.replace(":", " : ") + " ]"


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


class DashboardProjection:
    """Pure projection from task snapshots to a :class:`DashboardView`.

    Parameters
    ----------
    show_time_elapsed_per_task:
        Append each group's longest ``last_run_ms`` to its label.
    """

    def __init__(self, *, show_time_elapsed_per_task: bool = False) -> None:
        self.show_time_elapsed_per_task = show_time_elapsed_per_task

    def project(self, tasks: Mapping[str, TaskSnapshot]) -> DashboardView:
        members = self._group_tasks(tasks)
        groups = [self._reduce_group(name, entries) for name, entries in members.items()]

        counts = {PENDING: 0, PROCESSING: 0, FAILED: 0, SUCCEEDED: 0}
        for group in groups:
            category = categorize(group.state)
            if category is not None:
                counts[category] += 1

        return DashboardView(
            groups=groups,
            tags=self._bucket_tags(groups),
            counts=TaskCounts(**counts),
        )

    def _group_tasks(
        self, tasks: Mapping[str, TaskSnapshot]
    ) -> dict[str, list[tuple[str, TaskSnapshot]]]:
        """Bucket tasks by group key, preserving first-seen group order."""
        grouped: dict[str, list[tuple[str, TaskSnapshot]]] = {}
        for task_name in sort_task_names(tasks):
            snapshot = tasks[task_name]
            grouped.setdefault(snapshot.group_key(task_name), []).append(
                (task_name, snapshot)
            )
        return grouped

    def _reduce_group(
        self, name: str, entries: list[tuple[str, TaskSnapshot]]
    ) -> Group:
        state: TaskState | int | None = None
        last_run_ms: int | float | None = None
        tags: list[str] = []
        has_errors = False

        for _, snapshot in entries:
            if state is None or state not in PRIORITY_STATES:
                state = snapshot.state

            if snapshot.last_run_ms is not None and (
                last_run_ms is None or snapshot.last_run_ms > last_run_ms
            ):
                last_run_ms = snapshot.last_run_ms

            for tag in snapshot.tags:
                if tag not in tags:
                    tags.append(tag)

            if snapshot.error_data is not None:
                has_errors = True

        return Group(
            name=name,
            state=state if state is not None else TaskState.NONE,
            label=format_group_label(
                name,
                last_run_ms,
                show_time_elapsed=self.show_time_elapsed_per_task,
            ),
            task_names=[task_name for task_name, _ in entries],
            last_run_ms=last_run_ms,
            tags=tags,
            has_errors=has_errors,
        )

    @staticmethod
    def _bucket_tags(groups: list[Group]) -> list[TagBucket]:
        members: dict[str, list[Group]] = {}
        states: dict[str, TaskState] = {}

        for group in groups:
            for tag in group.tags:
                members.setdefault(tag, []).append(group)
                current = states.setdefault(tag, TaskState.SUCCEEDED)
                if group.state == TaskState.FAILED:
                    # One failure fails the whole tag.
                    states[tag] = TaskState.FAILED
                elif group.state != TaskState.SUCCEEDED and current != TaskState.FAILED:
                    states[tag] = TaskState.IN_PROGRESS

        return [
            TagBucket(tag=tag, state=states[tag], groups=groups_for_tag)
            for tag, groups_for_tag in members.items()
        ]
