"""Dashboard configuration — env-driven via pydantic-settings.

Reads ``BUILDWATCH_*`` environment variables and an optional ``.env`` file.

Examples
--------
Override via environment::

    export BUILDWATCH_SHOW_TIME_ELAPSED_PER_TASK=true
    export BUILDWATCH_RENDER_INTERVAL_SECONDS=0.5
    export BUILDWATCH_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DashboardSettings(BaseSettings):
    """Settings for :class:`buildwatch.monitor.dashboard.BuildDashboard`.

    Constructor arguments on the dashboard take precedence over these.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDWATCH_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Rendering
    show_time_elapsed_per_task: bool = False
    progress_bar_width: int = Field(default=80, gt=0)

    # Throttle windows, in seconds
    render_interval_seconds: float = Field(default=1.0, ge=0)
    error_interval_seconds: float = Field(default=5.0, ge=0)

    # Observability
    log_level: str = "WARNING"
