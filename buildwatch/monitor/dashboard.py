"""BuildDashboard — wires task manager events to the throttled render pipeline.

On every state change the dashboard:

1. calls the throttled render (at most once per ``render_interval_seconds``),
   which projects the task snapshot, tracks run start/finish, writes the
   block to ``anchor_fn`` when it changed and, once a run is complete and
   some task captured output, calls the throttled error dump;
2. prints the transition line, unthrottled.

All run bookkeeping lives in a :class:`RunState` owned by one dashboard.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.text import Text

from buildwatch.config import DashboardSettings
from buildwatch.core.task_manager import TaskManager
from buildwatch.core.throttle import Throttle, TimerFactory
from buildwatch.monitor.errors import ErrorReporter
from buildwatch.monitor.projection import DashboardProjection, DashboardView
from buildwatch.monitor.renderer import DashboardRenderer, to_ansi
from buildwatch.monitor.timefmt import human_readable_time
from buildwatch.monitor.transitions import TransitionLogger

logger = logging.getLogger(__name__)

AnchorFn = Callable[[str], Any]


class RunState(BaseModel):
    """Run-boundary bookkeeping, mutated only by the render pipeline."""

    start_time: float
    has_completed: bool = False
    run_times: list[str] = []
    last_output: str = ""


class BuildDashboard:
    """Live console dashboard for one task manager.

    Throttled renders and error dumps that fire on a trailing edge run on a
    ``threading.Timer`` thread, not on the thread that emitted the state
    change.  ``anchor_fn`` and ``console`` must tolerate being called from
    there.  Each throttle serializes its own calls; ``render_now`` called
    directly is not serialized against them.

    Parameters
    ----------
    task_manager:
        Source of state-change events and task snapshots.
    anchor_fn:
        Receives each changed dashboard block as an ANSI string.  Defaults
        to printing on ``console``.
    show_time_elapsed_per_task:
        Overrides ``settings.show_time_elapsed_per_task`` when given.
    settings:
        Throttle windows and rendering options.  Read from the environment
        when not provided.
    console:
        Rich console used for rendering and for direct output (transition
        lines, completion notice, error dumps).
    clock, timer_factory:
        Time source in seconds and trailing-call timer, injectable for tests.
    """

    def __init__(
        self,
        task_manager: TaskManager,
        *,
        anchor_fn: AnchorFn | None = None,
        show_time_elapsed_per_task: bool | None = None,
        settings: DashboardSettings | None = None,
        console: Console | None = None,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.task_manager = task_manager
        self.settings = settings or DashboardSettings()
        self.console = console or Console()
        self.anchor_fn: AnchorFn = anchor_fn or self._print_block

        if show_time_elapsed_per_task is None:
            show_time_elapsed_per_task = self.settings.show_time_elapsed_per_task

        self.projection = DashboardProjection(
            show_time_elapsed_per_task=show_time_elapsed_per_task
        )
        self.renderer = DashboardRenderer(width=self.settings.progress_bar_width)
        self.error_reporter = ErrorReporter(self.console)
        self.transition_logger = TransitionLogger(self.console)

        self._clock = clock
        self.state = RunState(start_time=clock())
        self._attached = False

        self.render_task_states = Throttle(
            self.render_now,
            self.settings.render_interval_seconds,
            clock=clock,
            timer_factory=timer_factory,
        )
        self.render_task_errors = Throttle(
            self.report_errors_now,
            self.settings.error_interval_seconds,
            clock=clock,
            timer_factory=timer_factory,
        )

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def attach(self) -> BuildDashboard:
        """Subscribe to the task manager.  Subscribing twice is a no-op."""
        if not self._attached:
            self.task_manager.on_state_change(self.handle_state_change)
            self._attached = True
        return self

    def handle_state_change(self, task_name: str, old_state: int, new_state: int) -> None:
        self.render_task_states()
        self.transition_logger.log(task_name, old_state, new_state)

    # ------------------------------------------------------------------
    # Render pipeline
    # ------------------------------------------------------------------

    def render_now(self) -> bool:
        """Render immediately, bypassing the throttle.

        Also the throttled render target, so it may run on a timer thread.

        Returns ``True`` when a new block was written to ``anchor_fn``.
        """
        view = self.projection.project(self.task_manager.get_task_states())
        now = self._clock()
        just_finished = self._track_run_boundary(view, now)

        block = self.renderer.render(
            view,
            run_times=self.state.run_times,
            elapsed_ms=int((now - self.state.start_time) * 1000),
        )
        output = to_ansi(self.console, block)

        written = output != self.state.last_output
        if written:
            self.anchor_fn("\n" + output)
            self.state.last_output = output

        if just_finished:
            self.console.print(self.renderer.render_completion(), highlight=False)

        if view.has_errors and self.state.has_completed:
            self.render_task_errors()

        return written

    def report_errors_now(self) -> int:
        """Dump captured task output immediately, bypassing the throttle."""
        return self.error_reporter.report(self.task_manager.get_task_states())

    def _track_run_boundary(self, view: DashboardView, now: float) -> bool:
        """Update run start/finish state.  Returns ``True`` when a run just finished."""
        is_complete = view.is_complete
        just_finished = False

        if self.state.has_completed and not is_complete:
            self.state.start_time = now
            logger.info("Build run restarted")
        elif not self.state.has_completed and is_complete:
            elapsed = human_readable_time(int((now - self.state.start_time) * 1000))
            self.state.run_times.append(elapsed)
            just_finished = True
            logger.info("Build run finished in %s", elapsed)

        self.state.has_completed = is_complete
        return just_finished

    # ------------------------------------------------------------------
    # Throttle control
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Run any pending throttled render and error dump now."""
        self.render_task_states.flush()
        self.render_task_errors.flush()

    def cancel(self) -> None:
        """Drop pending throttled calls."""
        self.render_task_states.cancel()
        self.render_task_errors.cancel()

    def _print_block(self, output: str) -> None:
        self.console.print(Text.from_ansi(output), soft_wrap=True, highlight=False)


def attach_dashboard(task_manager: TaskManager, **options: Any) -> BuildDashboard:
    """Create a :class:`BuildDashboard` for ``task_manager`` and subscribe it."""
    return BuildDashboard(task_manager, **options).attach()
