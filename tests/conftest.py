"""Shared test fixtures for buildwatch."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import pytest
from rich.console import Console

from buildwatch.config import DashboardSettings
from buildwatch.core.task_manager import InMemoryTaskManager
from buildwatch.monitor.dashboard import BuildDashboard


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    """Timer that only fires when the test says so."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class ManualTimers:
    """Timer factory recording every timer it builds."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]

    def fire_all(self) -> None:
        for timer in self.active:
            timer.fire()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def console() -> Console:
    """Plain-text console writing to an in-memory buffer."""
    return Console(file=io.StringIO(), color_system=None, width=200)


@pytest.fixture
def console_output(console: Console) -> Callable[[], str]:
    """Everything printed on the test console so far."""
    return lambda: console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def settings() -> DashboardSettings:
    """Settings independent of the caller's environment."""
    return DashboardSettings(
        _env_file=None,
        show_time_elapsed_per_task=False,
        render_interval_seconds=1.0,
        error_interval_seconds=5.0,
        progress_bar_width=80,
    )


@pytest.fixture
def manager() -> InMemoryTaskManager:
    return InMemoryTaskManager()


@pytest.fixture
def anchor() -> list[str]:
    """Collects every block written by the dashboard."""
    return []


@pytest.fixture
def make_dashboard(
    manager: InMemoryTaskManager,
    anchor: list[str],
    settings: DashboardSettings,
    console: Console,
    clock: FakeClock,
    timers: ManualTimers,
) -> Callable[..., BuildDashboard]:
    """Factory fixture: a dashboard wired to fakes, not yet attached."""

    def _factory(**overrides: Any) -> BuildDashboard:
        options: dict[str, Any] = {
            "anchor_fn": anchor.append,
            "settings": settings,
            "console": console,
            "clock": clock,
            "timer_factory": timers,
        }
        options.update(overrides)
        return BuildDashboard(manager, **options)

    return _factory
