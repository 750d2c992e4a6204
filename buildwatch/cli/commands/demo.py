"""``buildwatch demo`` — drive a simulated build through the dashboard.

Registers a small dependent task graph on an ``InMemoryTaskManager``,
attaches a ``BuildDashboard`` and walks every task through its lifecycle.
Tasks named with ``--fail`` fail with captured output, and so does every
task depending on them.
"""

from __future__ import annotations

import random
import time
from typing import Optional

import typer
from rich.console import Console

from buildwatch.config import DashboardSettings
from buildwatch.core.task_manager import InMemoryTaskManager
from buildwatch.models.tasks import ErrorData, TaskState
from buildwatch.monitor.dashboard import attach_dashboard

console = Console()

# name -> (dependencies, tags, group_as)
DEMO_TASKS: dict[str, tuple[list[str], list[str], str | None]] = {
    "setup": ([], ["build"], None),
    "compile:core": (["setup"], ["build"], "compile"),
    "compile:cli": (["setup"], ["build"], "compile"),
    "lint": (["setup"], ["lint"], None),
    "test:unit": (["compile:core", "compile:cli"], ["test"], None),
    "test:integration": (["compile:core", "compile:cli"], ["test"], None),
    "package": (["test:unit", "test:integration"], ["build"], None),
}


def build_demo_manager(tasks: int | None = None) -> InMemoryTaskManager:
    """Register the first ``tasks`` demo tasks (all of them by default).

    Dependencies on tasks that were left out are dropped.
    """
    selected = list(DEMO_TASKS)[:tasks]
    manager = InMemoryTaskManager()
    for name in selected:
        dependencies, tags, group_as = DEMO_TASKS[name]
        manager.add_task(
            name,
            dependencies=[dep for dep in dependencies if dep in selected],
            tags=tags,
            group_as=group_as,
            state=TaskState.INITIALIZING,
        )
    return manager


def run_demo_build(
    manager: InMemoryTaskManager,
    *,
    fail: set[str],
    delay: float,
    rng: random.Random,
) -> None:
    """Walk every task through PENDING -> IN_PROGRESS -> SUCCEEDED/FAILED."""
    for name in manager.task_names:
        manager.set_state(name, TaskState.PENDING)

    failed: set[str] = set()
    for name in manager.task_names:
        dependencies = manager.get_task(name).dependencies
        manager.set_state(name, TaskState.IN_PROGRESS)
        if delay:
            time.sleep(delay)

        run_ms = rng.randint(50, 4000)
        blocked_by = [dep for dep in dependencies if dep in failed]
        if name in fail or blocked_by:
            failed.add(name)
            stderr = (
                f"dependency failed: {', '.join(blocked_by)}"
                if blocked_by
                else f"{name}: exited with status 1"
            )
            manager.set_state(
                name,
                TaskState.FAILED,
                last_run_ms=run_ms,
                error_data=ErrorData(stdout=f"running {name}...", stderr=stderr),
            )
        else:
            manager.set_state(name, TaskState.SUCCEEDED, last_run_ms=run_ms)


def demo_cmd(
    tasks: int = typer.Option(
        len(DEMO_TASKS),
        "--tasks",
        "-t",
        min=1,
        max=len(DEMO_TASKS),
        help="Number of demo tasks to register, in dependency order.",
    ),
    fail: list[str] = typer.Option(
        [],
        "--fail",
        "-f",
        help="Task name to fail (repeatable).",
    ),
    delay: float = typer.Option(
        0.3,
        "--delay",
        "-d",
        help="Seconds each task spends in progress.",
    ),
    runs: int = typer.Option(
        1,
        "--runs",
        "-n",
        min=1,
        help="Number of consecutive runs (later runs restart the dashboard clock).",
    ),
    show_elapsed: Optional[bool] = typer.Option(
        None,
        "--show-elapsed/--no-show-elapsed",
        help="Show each group's last run time.",
    ),
    seed: int = typer.Option(0, "--seed", help="Seed for simulated run times."),
) -> None:
    """Run a simulated build with the dashboard attached."""
    manager = build_demo_manager(tasks)
    unknown = sorted(set(fail) - set(manager.task_names))
    if unknown:
        console.print(f"[bold red]Unknown task(s):[/bold red] {', '.join(unknown)}")
        console.print(f"[dim]Known tasks: {', '.join(manager.task_names)}[/dim]")
        raise typer.Exit(code=1)

    dashboard = attach_dashboard(
        manager,
        console=console,
        settings=DashboardSettings(),
        show_time_elapsed_per_task=show_elapsed,
    )

    rng = random.Random(seed)
    for _ in range(runs):
        run_demo_build(manager, fail=set(fail), delay=delay, rng=rng)
        dashboard.flush()

    if fail:
        raise typer.Exit(code=1)
