"""One line per task state change, printed as it happens."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.text import Text

from buildwatch.models.tasks import TaskState, describe_state

logger = logging.getLogger(__name__)

SEPARATOR = "\n" + "=" * 80 + "\n"


def format_transition(task_name: str, old_state: int, new_state: int) -> str | None:
    """``( [ name ]  OLD -> NEW)``, lowercased.  ``None`` for unknown states."""
    old_name = describe_state(old_state)
    new_name = describe_state(new_state)
    if old_name is None or new_name is None:
        return None

    message = (
        "( [" + task_name.replace(":", " : ") + " ]  "
        + old_name + " -> " + new_name + ")"
    )
    return message.lower()


class TransitionLogger:
    """Prints every individual transition; never throttled."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def __call__(self, task_name: str, old_state: int, new_state: int) -> None:
        self.log(task_name, old_state, new_state)

    def log(self, task_name: str, old_state: int, new_state: int) -> bool:
        """Print the transition.  Returns ``False`` if it was ignored."""
        message = format_transition(task_name, old_state, new_state)
        if message is None:
            logger.debug(
                "Ignoring transition with unknown state for %s: %r -> %r",
                task_name,
                old_state,
                new_state,
            )
            return False

        if new_state == TaskState.SUCCEEDED:
            self.console.print(Text("\n" + message, style="bright_black"), highlight=False)
            self.console.print(Text(SEPARATOR, style="bold green"), highlight=False)
        else:
            self.console.print(Text(message + "\n", style="bright_black"), highlight=False)
        return True
