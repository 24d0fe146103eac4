"""PainterLink — the single entry point a host plugin instantiates.

Usage::

    from painterlink import PainterLink

    link = PainterLink(project, exporter, shaders, channel)
    # host engine events
    link.on_computation_status_changed(busy=False)
    # toolbar actions
    link.set_auto_link_enabled(True)
    link.send_selected_maps()
    # on plugin unload
    link.shutdown()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from painterlink.channel.base import CommandChannel
from painterlink.config import LinkOptions, load_options
from painterlink.controller import LinkStatusReport, SyncController
from painterlink.host import MapExporter, ProjectHost, ShaderHost
from painterlink.protocol import Command
from painterlink.timers import ThreadingTimer, TimerFactory

logger = logging.getLogger(__name__)


class PainterLink:
    """Wires a channel and the host collaborators into a SyncController.

    Parameters
    ----------
    project, exporter, shaders:
        Host collaborators.
    channel:
        Channel to the peer. Inbound commands are routed to the
        controller and a lost connection disconnects the link.
    options:
        Link options. When omitted they are loaded from *settings_path*
        and the environment.
    settings_path:
        Optional JSON settings file.
    timer_factory:
        Timer implementation; a host with its own event loop should
        provide one firing on that loop.
    export_enabled_sink:
        Called with the linked flag whenever it changes.
    """

    def __init__(
        self,
        project: ProjectHost,
        exporter: MapExporter,
        shaders: ShaderHost,
        channel: CommandChannel,
        options: LinkOptions | None = None,
        *,
        settings_path: str | Path | None = None,
        timer_factory: TimerFactory = ThreadingTimer,
        export_enabled_sink: Callable[[bool], None] | None = None,
    ) -> None:
        self.options = options or load_options(settings_path)
        _apply_log_level(self.options.log_level)

        self.channel = channel
        self.controller = SyncController(
            project,
            exporter,
            shaders,
            channel,
            self.options,
            timer_factory=timer_factory,
            export_enabled_sink=export_enabled_sink,
        )

        channel.register_handler(Command.CREATE_PROJECT, self.controller.handle_create_project)
        channel.register_handler(Command.OPEN_PROJECT, self.controller.handle_open_project)
        channel.register_handler(
            Command.SEND_PROJECT_INFO, self.controller.handle_send_project_info,
        )
        channel.add_connectivity_listener(self._on_connectivity_changed)

    @property
    def is_linked(self) -> bool:
        return self.controller.state.is_linked

    def on_computation_status_changed(self, busy: bool) -> None:
        """Forward the host compute engine busy flag."""
        self.controller.on_computation_status_changed(busy)

    def set_auto_link_enabled(self, enabled: bool) -> None:
        self.controller.set_auto_link_enabled(enabled)

    def send_selected_maps(self) -> None:
        """Manually push the selected texture set to the peer."""
        self.controller.send_selected_maps()

    def project_ready(self) -> None:
        """Signal that a project requested by the peer finished loading."""
        self.controller.on_project_ready()

    def status(self) -> LinkStatusReport:
        return self.controller.status()

    def shutdown(self) -> None:
        """Disconnect the peer and close the channel."""
        self.controller.disconnect()
        self.channel.close()

    def _on_connectivity_changed(self, connected: bool) -> None:
        if connected:
            logger.info("Peer channel connected")
            return
        self.controller.disconnect()


def _apply_log_level(level: Any) -> None:
    """Set the level of the package logger; handlers are left to the host."""
    try:
        logging.getLogger("painterlink").setLevel(str(level).upper())
    except ValueError:
        logger.warning("Unknown log level %r, keeping the current one", level)
