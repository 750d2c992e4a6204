"""Tests for BuildDashboard — run boundaries, de-duplication, throttling, errors."""

from __future__ import annotations

from buildwatch.core.task_manager import InMemoryTaskManager
from buildwatch.models.tasks import ErrorData, TaskState
from buildwatch.monitor.dashboard import BuildDashboard, attach_dashboard

DONE_NOTICE = "Done, all tasks finished running."


def _add_tasks(manager: InMemoryTaskManager, *names: str) -> None:
    for name in names:
        manager.add_task(name, tags=["build"])


def _set_all(manager: InMemoryTaskManager, state: TaskState) -> None:
    for name in manager.task_names:
        manager.set_state(name, state)


# ---------------------------------------------------------------------------
# Test: Output de-duplication
# ---------------------------------------------------------------------------


class TestDeduplication:
    def test_identical_view_is_written_once(self, manager, make_dashboard, anchor):
        _add_tasks(manager, "a", "b")
        dashboard = make_dashboard()

        assert dashboard.render_now() is True
        assert dashboard.render_now() is False
        assert len(anchor) == 1
        assert anchor[0].startswith("\n")

    def test_changed_view_is_written_again(self, manager, make_dashboard, anchor):
        _add_tasks(manager, "a")
        dashboard = make_dashboard()
        dashboard.render_now()
        manager.set_state("a", TaskState.IN_PROGRESS)
        dashboard.render_now()
        assert len(anchor) == 2
        assert "IN PROCESS (1 tasks processing, 0 tasks pending)" in anchor[1]


# ---------------------------------------------------------------------------
# Test: Run boundaries
# ---------------------------------------------------------------------------


class TestRunLifecycle:
    def test_full_run_records_one_duration_and_one_notice(
        self, manager, make_dashboard, anchor, clock, console_output
    ):
        _add_tasks(manager, "a", "b", "c")
        dashboard = make_dashboard()

        dashboard.render_now()
        assert "CURRENT BUILD ELAPSED TIME: 0ms" in anchor[-1]

        manager.set_state("a", TaskState.IN_PROGRESS)
        clock.advance(0.5)
        dashboard.render_now()
        assert dashboard.state.has_completed is False

        clock.advance(1.0)
        _set_all(manager, TaskState.SUCCEEDED)
        dashboard.render_now()
        dashboard.render_now()

        assert dashboard.state.run_times == ["1.5s"]
        assert dashboard.state.has_completed is True
        assert console_output().count(DONE_NOTICE) == 1
        assert "RUN TIMES: 1.5s" in anchor[-1]
        assert "SUCCESSFULLY COMPLETE (3 tasks done)" in anchor[-1]
        assert "CURRENT BUILD ELAPSED TIME" not in anchor[-1]

    def test_restart_resets_elapsed_base(self, manager, make_dashboard, anchor, clock, console_output):
        _add_tasks(manager, "a", "b")
        dashboard = make_dashboard()

        clock.advance(1.5)
        _set_all(manager, TaskState.SUCCEEDED)
        dashboard.render_now()
        assert dashboard.state.run_times == ["1.5s"]

        clock.advance(10.0)
        _set_all(manager, TaskState.PENDING)
        dashboard.render_now()
        assert dashboard.state.start_time == clock.now
        assert dashboard.state.run_times == ["1.5s"]
        assert "CURRENT BUILD ELAPSED TIME: 0ms" in anchor[-1]

        clock.advance(0.5)
        _set_all(manager, TaskState.SUCCEEDED)
        dashboard.render_now()
        assert dashboard.state.run_times == ["1.5s", "500ms"]
        assert "RUN TIMES: 1.5s, 500ms" in anchor[-1]
        assert console_output().count(DONE_NOTICE) == 2

    def test_pending_without_processing_is_not_complete(self, manager, make_dashboard, anchor):
        _add_tasks(manager, "a", "b")
        manager.set_state("a", TaskState.SUCCEEDED)
        dashboard = make_dashboard()
        dashboard.render_now()

        assert dashboard.state.has_completed is False
        assert dashboard.state.run_times == []
        assert "INCOMPLETE (1 tasks pending)" in anchor[-1]

    def test_failures_still_complete_the_run(self, manager, make_dashboard, anchor):
        _add_tasks(manager, "a", "b")
        manager.set_state("a", TaskState.SUCCEEDED)
        manager.set_state("b", TaskState.FAILED)
        dashboard = make_dashboard()
        dashboard.render_now()

        assert dashboard.state.has_completed is True
        assert "FAILED (1 tasks failed)" in anchor[-1]

    def test_unknown_state_does_not_block_completion(
        self, manager, make_dashboard, anchor, console_output
    ):
        _add_tasks(manager, "a", "b")
        manager.set_state("a", TaskState.SUCCEEDED)
        manager.set_state("b", 99)
        dashboard = make_dashboard()
        dashboard.render_now()

        assert dashboard.state.has_completed is True
        assert dashboard.state.run_times == ["0ms"]
        assert console_output().count(DONE_NOTICE) == 1
        assert "SUCCESSFULLY COMPLETE (1 tasks done)" in anchor[-1]

    def test_state_is_per_dashboard(self, manager, make_dashboard):
        _add_tasks(manager, "a")
        manager.set_state("a", TaskState.SUCCEEDED)
        first = make_dashboard()
        second = make_dashboard()
        first.render_now()
        assert first.state.run_times == ["0ms"]
        assert second.state.run_times == []


# ---------------------------------------------------------------------------
# Test: Error dump
# ---------------------------------------------------------------------------


class TestErrorDump:
    def test_errors_dumped_once_run_completes(self, manager, make_dashboard, console_output):
        _add_tasks(manager, "a", "b")
        manager.set_state("a", TaskState.SUCCEEDED)
        manager.set_state(
            "b",
            TaskState.FAILED,
            error_data=ErrorData(stdout="compiling b", stderr="b.c:1: error"),
        )
        dashboard = make_dashboard()
        dashboard.render_now()

        output = console_output()
        assert "ERROR: b" in output
        assert ">>> stdout\ncompiling b" in output
        assert ">>> stderr\nb.c:1: error" in output

    def test_errors_not_dumped_while_running(self, manager, make_dashboard, console_output):
        _add_tasks(manager, "a", "b")
        manager.set_state("a", TaskState.FAILED, error_data=ErrorData(stderr="boom"))
        manager.set_state("b", TaskState.IN_PROGRESS)
        dashboard = make_dashboard()
        dashboard.render_now()
        assert "ERROR: a" not in console_output()

    def test_error_dump_is_throttled(self, manager, make_dashboard, console_output, clock, timers):
        _add_tasks(manager, "a")
        manager.set_state("a", TaskState.FAILED, error_data=ErrorData(stderr="boom"))
        dashboard = make_dashboard()

        dashboard.render_now()
        clock.advance(1.0)
        manager.set_state("a", TaskState.FAILED, error_data=ErrorData(stderr="boom again"))
        dashboard.render_now()
        assert console_output().count("ERROR: a") == 1

        error_timers = [t for t in timers.active if t.interval == 4.0]
        assert len(error_timers) == 1
        error_timers[0].fire()
        assert console_output().count("ERROR: a") == 2
        assert "boom again" in console_output()


# ---------------------------------------------------------------------------
# Test: Event wiring and throttling
# ---------------------------------------------------------------------------


class TestEventWiring:
    def test_attach_subscribes_once(self, manager, make_dashboard, anchor):
        _add_tasks(manager, "a")
        dashboard = make_dashboard()
        dashboard.attach()
        dashboard.attach()

        manager.set_state("a", TaskState.IN_PROGRESS)
        assert len(anchor) == 1

    def test_burst_is_coalesced_but_transitions_are_not(
        self, manager, make_dashboard, anchor, clock, timers, console_output
    ):
        _add_tasks(manager, "a", "b")
        make_dashboard().attach()

        manager.set_state("a", TaskState.IN_PROGRESS)
        clock.advance(0.1)
        manager.set_state("a", TaskState.SUCCEEDED)
        manager.set_state("b", TaskState.IN_PROGRESS)

        assert len(anchor) == 1
        assert console_output().count(" -> ") == 3

        clock.advance(0.9)
        timers.fire_all()
        assert len(anchor) == 2
        assert "IN PROCESS (1 tasks processing, 0 tasks pending)" in anchor[-1]

    def test_flush_runs_pending_render(self, manager, make_dashboard, anchor):
        _add_tasks(manager, "a")
        dashboard = make_dashboard().attach()
        manager.set_state("a", TaskState.IN_PROGRESS)
        manager.set_state("a", TaskState.SUCCEEDED)
        assert len(anchor) == 1

        dashboard.flush()
        assert len(anchor) == 2
        assert "SUCCESSFULLY COMPLETE (1 tasks done)" in anchor[-1]

    def test_cancel_drops_pending_render(self, manager, make_dashboard, anchor, timers):
        _add_tasks(manager, "a")
        dashboard = make_dashboard().attach()
        manager.set_state("a", TaskState.IN_PROGRESS)
        manager.set_state("a", TaskState.SUCCEEDED)
        dashboard.cancel()
        timers.fire_all()
        assert len(anchor) == 1

    def test_unknown_transition_still_renders(self, manager, make_dashboard, anchor, console_output):
        _add_tasks(manager, "a")
        dashboard = make_dashboard()
        dashboard.handle_state_change("a", TaskState.PENDING, 99)
        assert len(anchor) == 1
        assert " -> " not in console_output()


# ---------------------------------------------------------------------------
# Test: Options
# ---------------------------------------------------------------------------


class TestOptions:
    def test_show_time_elapsed_option(self, manager, make_dashboard, anchor):
        manager.add_task("compile:core", tags=["build"])
        manager.set_state("compile:core", TaskState.SUCCEEDED, last_run_ms=1200)
        make_dashboard(show_time_elapsed_per_task=True).render_now()
        assert "[ compile : core (1200ms!!) ]" in anchor[-1]

    def test_option_defaults_to_settings(self, manager, make_dashboard, settings, anchor):
        manager.add_task("lint", tags=["lint"])
        manager.set_state("lint", TaskState.SUCCEEDED, last_run_ms=80)
        enabled = settings.model_copy(update={"show_time_elapsed_per_task": True})
        make_dashboard(settings=enabled).render_now()
        assert "[ lint (80ms!!) ]" in anchor[-1]

    def test_default_anchor_prints_on_console(self, manager, make_dashboard, console_output):
        _add_tasks(manager, "a")
        make_dashboard(anchor_fn=None).render_now()
        assert "BUILD STATUS: INCOMPLETE (1 tasks pending)" in console_output()

    def test_progress_bar_width_from_settings(self, manager, make_dashboard, settings, anchor):
        _add_tasks(manager, "a")
        narrow = settings.model_copy(update={"progress_bar_width": 10})
        make_dashboard(settings=narrow).render_now()
        assert "\n" + "-" * 10 + "\n" in anchor[-1]

    def test_attach_dashboard_returns_subscribed_dashboard(
        self, manager, anchor, settings, console, clock, timers
    ):
        _add_tasks(manager, "a")
        dashboard = attach_dashboard(
            manager,
            anchor_fn=anchor.append,
            settings=settings,
            console=console,
            clock=clock,
            timer_factory=timers,
        )
        assert isinstance(dashboard, BuildDashboard)
        manager.set_state("a", TaskState.IN_PROGRESS)
        assert len(anchor) == 1
