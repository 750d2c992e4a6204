"""Human-readable durations for run and elapsed-time lines."""

from __future__ import annotations

ONE_SECOND_MS = 1000
SIXTY_SECONDS_MS = 60 * ONE_SECOND_MS


def human_readable_time(time_in_ms: int | float) -> str:
    """Format a duration in milliseconds.

    >>> human_readable_time(500)
    '500ms'
    >>> human_readable_time(1500)
    '1.5s'
    >>> human_readable_time(65000)
    '1m 5s'
    """
    if time_in_ms > SIXTY_SECONDS_MS:
        minutes = int(time_in_ms // SIXTY_SECONDS_MS)
        seconds = int((time_in_ms % SIXTY_SECONDS_MS) // ONE_SECOND_MS)
        return f"{minutes}m {seconds}s"
    if time_in_ms > ONE_SECOND_MS:
        return f"{time_in_ms / ONE_SECOND_MS:.1f}s"
    return f"{int(time_in_ms)}ms"
