"""Throttle — coalesce bursts of calls into at most one call per window.

The first call after a quiet period runs immediately (leading edge).  Calls
that arrive inside the window are not run; the most recent of them is kept
and runs once the window closes (trailing edge).  The dashboard wraps its
render pipeline and its error dump in separate throttles.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class _Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], _Timer]


class Throttle:
    """Rate-limit calls to ``func`` to one per ``wait`` seconds.

    A leading call runs on the caller's thread.  A trailing call runs on the
    timer's thread, which for the default ``threading.Timer`` is a daemon
    thread; ``flush()`` runs it on the thread that calls ``flush()``.  Calls
    into ``func`` are serialized by this throttle's lock.

    Parameters
    ----------
    func:
        The callable to throttle.
    wait:
        Window length in seconds.
    leading:
        Run the first call of a quiet period immediately.  With
        ``leading=False`` every call is deferred to the trailing edge.
    clock:
        Monotonic time source in seconds.
    timer_factory:
        Builds the timer that fires the trailing call.  Defaults to
        ``threading.Timer``.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait: float,
        *,
        leading: bool = True,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        if wait < 0:
            raise ValueError(f"Throttle wait must be >= 0, got {wait!r}")

        self._func = func
        self._wait = wait
        self._leading = leading
        self._clock = clock
        self._timer_factory = timer_factory or _daemon_timer
        self._lock = threading.RLock()
        self._timer: _Timer | None = None
        self._last_invoked: float | None = None
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | None = None

    @property
    def wait(self) -> float:
        return self._wait

    @property
    def pending(self) -> bool:
        """Whether a trailing call is waiting for the window to close."""
        return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            now = self._clock()
            if not self._leading and self._timer is None and self._remaining(now) <= 0:
                # Trailing-only: a burst opens its window on its first call.
                self._last_invoked = now

            remaining = self._remaining(now)
            if remaining <= 0 and self._timer is None:
                self._invoke(now, args, kwargs)
                return

            self._pending = (args, kwargs)
            if self._timer is None:
                logger.debug(
                    "Deferring %s by %.3fs", _name(self._func), remaining
                )
                self._timer = self._timer_factory(max(remaining, 0.0), self._trailing)
                self._timer.start()

    def flush(self) -> None:
        """Run the pending trailing call now, if there is one."""
        with self._lock:
            self._cancel_timer()
            if self._pending is not None:
                args, kwargs = self._pending
                self._invoke(self._clock(), args, kwargs)

    def cancel(self) -> None:
        """Drop the pending trailing call and reset the window."""
        with self._lock:
            self._cancel_timer()
            self._pending = None
            self._last_invoked = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remaining(self, now: float) -> float:
        if self._last_invoked is None:
            return 0.0
        return self._wait - (now - self._last_invoked)

    def _trailing(self) -> None:
        with self._lock:
            self._timer = None
            if self._pending is None:
                return
            args, kwargs = self._pending
            self._invoke(self._clock(), args, kwargs)

    def _invoke(self, now: float, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._pending = None
        self._last_invoked = now
        self._func(*args, **kwargs)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def throttle(
    wait: float, **options: Any
) -> Callable[[Callable[..., Any]], Throttle]:
    """Decorator form of :class:`Throttle`."""

    def decorator(func: Callable[..., Any]) -> Throttle:
        return Throttle(func, wait, **options)

    return decorator


def _daemon_timer(interval: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


def _name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", repr(func))
