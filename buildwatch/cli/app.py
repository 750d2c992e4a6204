"""Main Typer application.

Entry point: ``buildwatch`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from buildwatch import __version__
from buildwatch.cli.commands.demo import demo_cmd
from buildwatch.config import DashboardSettings

app = typer.Typer(
    name="buildwatch",
    help="buildwatch: live terminal dashboard for interdependent build tasks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="demo", help="Run a simulated build with the dashboard attached.")(demo_cmd)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to BUILDWATCH_LOG_LEVEL or WARNING).",
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or DashboardSettings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command(name="version", help="Show the buildwatch version.")
def version_cmd() -> None:
    Console().print(f"buildwatch [bold]{__version__}[/bold]")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
