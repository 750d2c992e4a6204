"""Rich renderer for the build dashboard.

Turns a ``DashboardView`` into one ``rich.text.Text`` block: a progress bar,
one section per tag, the build status line and the run-time lines.

Color scheme
------------
- grey        : INITIALIZING / PENDING
- bold blue   : IN_PROGRESS / IN_PROGRESS_MUST_RERUN
- bold red    : FAILED
- bold green  : SUCCEEDED
- no style    : NONE and unknown values
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.text import Text

from buildwatch.models.tasks import TaskState
from buildwatch.monitor.projection import DashboardView, Group, TagBucket, TaskCounts
from buildwatch.monitor.timefmt import human_readable_time

DEFAULT_BAR_WIDTH = 80
FILLED_GLYPH = "+"
EMPTY_GLYPH = "-"

# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

NEUTRAL_STYLE = ""

_STATE_STYLES: dict[TaskState, str] = {
    TaskState.NONE: NEUTRAL_STYLE,
    TaskState.INITIALIZING: "bright_black on black",
    TaskState.PENDING: "bright_black on black",
    TaskState.IN_PROGRESS: "bold blue on black",
    TaskState.IN_PROGRESS_MUST_RERUN: "bold blue on black",
    TaskState.FAILED: "bold red on black",
    TaskState.SUCCEEDED: "bold green on black",
}

_TAG_STYLES: dict[TaskState, str] = {
    TaskState.SUCCEEDED: "bold green on black",
    TaskState.FAILED: "bold red on black",
}
_TAG_DEFAULT_STYLE = "bold blue on black"

_HEADING_STYLE = "bold white on black"
_BACKGROUND_STYLE = "on black"


def state_style(state: int) -> str:
    """Style for a group label; unknown states get no style."""
    return _STATE_STYLES.get(state, NEUTRAL_STYLE)


def progress_units(counts: TaskCounts, width: int = DEFAULT_BAR_WIDTH) -> int:
    """Number of filled columns, always within ``[0, width]``.

    Failed groups are left out of the denominator.
    """
    denominator = (counts.succeeded + counts.processing + counts.pending) or 1
    return width * counts.succeeded // denominator


def to_ansi(console: Console, renderable: Text) -> str:
    """Render ``renderable`` to a string using ``console``'s color settings."""
    with console.capture() as capture:
        console.print(renderable, end="", soft_wrap=True, highlight=False)
    return capture.get()


class DashboardRenderer:
    """Builds the dashboard block for one :class:`DashboardView`.

    Parameters
    ----------
    width:
        Progress bar width in columns.
    """

    def __init__(self, *, width: int = DEFAULT_BAR_WIDTH) -> None:
        self.width = width

    def render(
        self,
        view: DashboardView,
        *,
        run_times: Sequence[str] = (),
        elapsed_ms: int | float | None = None,
    ) -> Text:
        """Render the full dashboard block.

        ``elapsed_ms`` is the current run's elapsed time; the elapsed line
        is only shown while the run is incomplete.
        """
        output = Text()
        output.append_text(self.render_progress_bar(view.counts))
        output.append_text(self.render_tags(view.tags))
        output.append_text(self.render_status(view.counts))

        if run_times:
            output.append("RUN TIMES: " + ", ".join(run_times), style=_HEADING_STYLE)
            output.append("\n")

        if not view.is_complete and elapsed_ms is not None:
            output.append(
                "CURRENT BUILD ELAPSED TIME: " + human_readable_time(elapsed_ms),
                style=_HEADING_STYLE,
            )
            output.append("\n")

        return output

    def render_progress_bar(self, counts: TaskCounts) -> Text:
        units = progress_units(counts, self.width)
        filled = FILLED_GLYPH * units
        empty = EMPTY_GLYPH * (self.width - units)

        bar = Text()
        if counts.is_complete:
            bar.append(filled, style="bold green")
            bar.append(empty, style="bold green")
        else:
            bar.append(filled, style="bold cyan")
            bar.append(empty, style="bold blue")
        bar.append("\n\n")
        return bar

    def render_tags(self, tags: Sequence[TagBucket]) -> Text:
        output = Text()
        for bucket in tags:
            output.append(
                bucket.tag.upper() + " Build Tasks: ",
                style=_TAG_STYLES.get(bucket.state, _TAG_DEFAULT_STYLE),
            )
            output.append("\n", style=_BACKGROUND_STYLE)
            output.append_text(self.render_group_labels(bucket.groups))
            output.append(" ", style=_BACKGROUND_STYLE)
            output.append("\n\n")
        return output

    @staticmethod
    def render_group_labels(groups: Sequence[Group]) -> Text:
        labels = Text()
        for index, group in enumerate(groups):
            if index:
                labels.append(" ")
            labels.append(group.label, style=state_style(group.state))
        return labels

    @staticmethod
    def render_status(counts: TaskCounts) -> Text:
        if counts.failed > 0:
            status = f"FAILED ({counts.failed} tasks failed)"
            style = "bold red"
        elif counts.processing > 0:
            status = (
                f"IN PROCESS ({counts.processing} tasks processing, "
                f"{counts.pending} tasks pending)"
            )
            style = "bold blue"
        elif counts.pending > 0:
            status = f"INCOMPLETE ({counts.pending} tasks pending)"
            style = "bold blue"
        else:
            status = f"SUCCESSFULLY COMPLETE ({counts.succeeded} tasks done)"
            style = "bold green"

        line = Text()
        line.append("BUILD STATUS: ", style=_HEADING_STYLE)
        line.append(status, style=style)
        line.append("\n")
        return line

    @staticmethod
    def render_completion() -> Text:
        """One-off announcement printed when a run finishes."""
        return Text("\nDone, all tasks finished running.\n", style="bold green")
