"""Error dump for tasks that captured stdout/stderr."""

from __future__ import annotations

from collections.abc import Mapping

from rich.console import Console
from rich.text import Text

from buildwatch.models.tasks import TaskSnapshot

_HEADER_STYLE = "bold black on red"
_STREAM_STYLE = "bold black on yellow"


def render_task_errors(tasks: Mapping[str, TaskSnapshot]) -> list[Text]:
    """Render captured output for every task that has error data.

    Returns one renderable per printed line block, in task order.  Stream
    contents are printed verbatim (no markup, no highlighting).
    """
    blocks: list[Text] = []
    for task_name, snapshot in tasks.items():
        error = snapshot.error_data
        if error is None:
            continue

        blocks.append(Text(f"ERROR: {task_name}\n", style=_HEADER_STYLE))
        if error.stdout:
            blocks.append(Text(">>> stdout", style=_STREAM_STYLE))
            blocks.append(Text(error.stdout))
        if error.stderr:
            blocks.append(Text(">>> stderr", style=_STREAM_STYLE))
            blocks.append(Text(error.stderr))
    return blocks


class ErrorReporter:
    """Prints :func:`render_task_errors` output on a Rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def report(self, tasks: Mapping[str, TaskSnapshot]) -> int:
        """Print every captured error.  Returns the number of blocks printed."""
        blocks = render_task_errors(tasks)
        for block in blocks:
            self.console.print(block, soft_wrap=True, highlight=False)
        return len(blocks)
