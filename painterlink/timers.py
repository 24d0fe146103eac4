"""Single-shot timers driving the delayed parts of the link."""

from __future__ import annotations

import abc
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

TimerFactory = Callable[[], "Timer"]


class Timer(abc.ABC):
    """A restartable single-shot timer.

    Starting an active timer restarts it; stopping an inactive one is a
    no-op.
    """

    @abc.abstractmethod
    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        """Call *callback* once after *interval_ms* milliseconds."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Cancel the pending call, if any."""

    @property
    @abc.abstractmethod
    def is_active(self) -> bool:
        """Return True while a call is pending."""


class ThreadingTimer(Timer):
    """Timer backed by :class:`threading.Timer`.

    The callback runs on a daemon worker thread; callers serialize their
    own state.
    """

    def __init__(self) -> None:
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(interval_ms / 1000.0, self._fire, args=(callback,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def stop(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def is_active(self) -> bool:
        return self._timer is not None

    def _fire(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                # stopped or restarted meanwhile
                return
            self._timer = None
        try:
            callback()
        except Exception:
            logger.exception("Timer callback failed")
