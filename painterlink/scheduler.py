"""ExportScheduler — automatic map export when the host engine goes idle.

When auto-link is enabled and the host compute engine becomes idle, the
selected texture set is pushed to the peer after ``linkQuickInterval``.
Large texture sets are first sent at a degraded resolution, then re-sent
at full resolution after ``linkHQInterval``.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Callable

from painterlink.config import LinkOptions
from painterlink.host import MapExporter
from painterlink.models import MapExportConfig, Resolution
from painterlink.state import LinkState, LinkStatus
from painterlink.timers import ThreadingTimer, TimerFactory

logger = logging.getLogger(__name__)

SendMaps = Callable[[list[str], MapExportConfig | None], None]


class ExportScheduler:
    """Debounced two-phase auto-export.

    Parameters
    ----------
    link_state:
        Link state machine, read only.
    map_exporter:
        Source of the selected texture set and its resolution.
    send_maps:
        Export entry point, called with the texture set names and an
        optional export config.
    options:
        Intervals and resolution thresholds.
    timer_factory:
        Creates the quick and HQ timers.
    lock:
        Lock shared with the owner; timer callbacks run under it.
    enabled:
        Initial auto-link flag.
    """

    def __init__(
        self,
        link_state: LinkState,
        map_exporter: MapExporter,
        send_maps: SendMaps,
        options: LinkOptions,
        *,
        timer_factory: TimerFactory = ThreadingTimer,
        lock: threading.RLock | None = None,
        enabled: bool = True,
    ) -> None:
        self._state = link_state
        self._exporter = map_exporter
        self._send_maps = send_maps
        self._options = options
        self._lock = lock or threading.RLock()
        self._enabled = enabled
        self._quick_timer = timer_factory()
        self._hq_timer = timer_factory()
        # bumped on every start or stop; a callback carrying an older value is stale
        self._quick_generation = 0
        self._hq_generation = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def has_pending(self) -> bool:
        """Return True while a quick or HQ export is pending."""
        return self._quick_timer.is_active or self._hq_timer.is_active

    def set_enabled(self, enabled: bool) -> None:
        """Toggle auto-link; turning it on triggers one export right away."""
        with self._lock:
            was_enabled = self._enabled
            self._enabled = enabled
            if enabled and not was_enabled:
                logger.info("Auto-link enabled")
                self.auto_link()
            elif not enabled and was_enabled:
                logger.info("Auto-link disabled")
                self.cancel()

    def cancel(self) -> None:
        """Stop both timers."""
        with self._lock:
            self._stop_quick()
            self._stop_hq()

    def on_computation_status_changed(self, busy: bool) -> None:
        """React to the host compute engine becoming busy or idle."""
        with self._lock:
            self.cancel()
            if (
                self._state.status is LinkStatus.CONNECTED
                and not busy
                and self._enabled
            ):
                self._quick_generation += 1
                self._quick_timer.start(
                    self._options.quick_interval,
                    functools.partial(self._on_quick_timeout, self._quick_generation),
                )

    def auto_link(self) -> None:
        """Send the selected texture set, degraded first if it is large."""
        with self._lock:
            if not self._state.is_linked:
                return
            self._stop_hq()

            name = self._exporter.selected_texture_set()
            if name is None:
                logger.debug("Auto-link skipped: no texture set selected")
                return

            resolution = self._exporter.texture_set_resolution(name)
            threshold = self._options.hq_threshold
            if resolution.area <= threshold * threshold:
                self._send_maps([name], None)
                return

            degraded = degraded_resolution(resolution, self._options.degraded_resolution)
            logger.debug(
                "Quick export of %s at %dx%d", name, degraded.width, degraded.height,
            )
            self._send_maps([name], MapExportConfig(resolution=degraded))
            self._stop_quick()
            self._hq_generation += 1
            self._hq_timer.start(
                self._options.hq_interval,
                functools.partial(self._on_hq_timeout, self._hq_generation),
            )

    def _stop_quick(self) -> None:
        self._quick_generation += 1
        self._quick_timer.stop()

    def _stop_hq(self) -> None:
        self._hq_generation += 1
        self._hq_timer.stop()

    def _on_quick_timeout(self, generation: int) -> None:
        with self._lock:
            if generation != self._quick_generation:
                logger.debug("Dropping superseded quick export")
                return
            self.auto_link()

    def _on_hq_timeout(self, generation: int) -> None:
        with self._lock:
            if generation != self._hq_generation:
                logger.debug("Dropping superseded high quality export")
                return
            if not self._state.is_linked:
                return
            name = self._exporter.selected_texture_set()
            if name is None:
                return
            logger.debug("High quality export of %s", name)
            self._send_maps([name], None)


def degraded_resolution(resolution: Resolution, width: int) -> Resolution:
    """Scale *resolution* down to *width*, keeping its aspect ratio."""
    height = max(1, int(width * (resolution.height / resolution.width)))
    return Resolution(width=width, height=height)
